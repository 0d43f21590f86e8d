from __future__ import annotations

from pathlib import Path

import pytest

from visa_slot_checker.config import AppConfig, TimeoutConfig, load_config


_ENV_KEYS = (
    "PORTAL_BASE_URL",
    "PORTAL_LOGIN_PATH",
    "PORTAL_SLOTS_API_PATH",
    "PORTAL_SLOTS_API_METHOD",
    "NAVIGATION_TIMEOUT_MS",
    "SELECTOR_TIMEOUT_MS",
    "SETTLE_DELAY_MS",
    "KEYSTROKE_DELAY_MS",
    "BROWSER_HEADFUL",
    "VERIFY_LOGIN",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults_without_yaml(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.portal.login_url == "https://www.usvisascheduling.com/en-US/login/"
    assert cfg.portal.slots_api_method == "POST"
    assert cfg.timeouts.navigation_timeout_ms == 45_000
    assert cfg.timeouts.selector_timeout_ms == 20_000
    assert cfg.timeouts.settle_delay_ms == 2_000
    assert cfg.browser.headless is True
    assert cfg.verify_login is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTAL_BASE_URL", "https://staging.example.com/")
    monkeypatch.setenv("SELECTOR_TIMEOUT_MS", "7000")
    monkeypatch.setenv("BROWSER_HEADFUL", "yes")
    monkeypatch.setenv("VERIFY_LOGIN", "1")
    cfg = load_config(None)
    assert cfg.portal.base_url == "https://staging.example.com"
    assert cfg.timeouts.selector_timeout_ms == 7000
    assert cfg.browser.headless is False
    assert cfg.verify_login is True


def test_yaml_overrides_env_and_expands_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MY_PORTAL_HOST", "portal.example.com")
    cfg_path = _write(
        tmp_path,
        "cfg.yaml",
        """
portal:
  base_url: "https://${MY_PORTAL_HOST}"
  login_path: "sign-in"
timeouts:
  settle_delay_ms: 0
""",
    )
    cfg = load_config(cfg_path)
    assert cfg.portal.base_url == "https://portal.example.com"
    assert cfg.portal.login_path == "/sign-in"
    assert cfg.timeouts.settle_delay_ms == 0
    # Untouched sections keep their env/default values.
    assert cfg.timeouts.navigation_timeout_ms == 45_000


@pytest.mark.parametrize("value", [0, -1, 10_000_000])
def test_unbounded_or_negative_timeouts_rejected(value: int) -> None:
    with pytest.raises(Exception):
        TimeoutConfig(navigation_timeout_ms=value)
    with pytest.raises(Exception):
        TimeoutConfig(selector_timeout_ms=value)


def test_invalid_env_timeout_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVIGATION_TIMEOUT_MS", "forever")
    with pytest.raises(Exception):
        load_config(None)


def test_base_url_must_be_absolute() -> None:
    with pytest.raises(Exception):
        AppConfig.model_validate({"portal": {"base_url": "usvisascheduling.com"}})


def test_unsupported_method_rejected() -> None:
    with pytest.raises(Exception):
        AppConfig.model_validate({"portal": {"slots_api_method": "DELETE"}})
