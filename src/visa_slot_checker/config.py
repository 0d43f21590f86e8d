from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

# Upper bound for any single wait. Unbounded waits (timeout=0) are rejected.
MAX_WAIT_MS = 600_000

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        # Let the model validator produce a readable error.
        return -1


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config so most deployments only need `.env`; YAML remains an optional override.
    """
    return {
        "portal": {
            "base_url": os.getenv("PORTAL_BASE_URL", "https://www.usvisascheduling.com"),
            "login_path": os.getenv("PORTAL_LOGIN_PATH", "/en-US/login/"),
            "slots_api_path": os.getenv(
                "PORTAL_SLOTS_API_PATH",
                "/en-US/api/v1/schedule-group/get-family-consular-schedule-entries",
            ),
            "slots_api_method": os.getenv("PORTAL_SLOTS_API_METHOD", "POST"),
        },
        "timeouts": {
            "navigation_timeout_ms": _env_int("NAVIGATION_TIMEOUT_MS", 45_000),
            "selector_timeout_ms": _env_int("SELECTOR_TIMEOUT_MS", 20_000),
            "settle_delay_ms": _env_int("SETTLE_DELAY_MS", 2_000),
            "keystroke_delay_ms": _env_int("KEYSTROKE_DELAY_MS", 50),
        },
        "browser": {
            "headless": not _env_bool("BROWSER_HEADFUL", default=False),
            "user_agent": os.getenv("BROWSER_USER_AGENT", DEFAULT_USER_AGENT),
            "channel": os.getenv("BROWSER_CHANNEL", ""),
        },
        "debug": {
            "debug_dir": os.getenv("DEBUG_DIR", "data/debug"),
            "save_on_failure": _env_bool("DEBUG_SAVE_ON_FAILURE", default=True),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
        "verify_login": _env_bool("VERIFY_LOGIN", default=False),
    }


class PortalConfig(BaseModel):
    base_url: str = "https://www.usvisascheduling.com"
    login_path: str = "/en-US/login/"
    slots_api_path: str = "/en-US/api/v1/schedule-group/get-family-consular-schedule-entries"
    slots_api_method: str = "POST"

    @model_validator(mode="after")
    def _normalize(self) -> "PortalConfig":
        base_url = (self.base_url or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("portal.base_url must be a full URL like 'https://www.usvisascheduling.com'")
        self.base_url = base_url

        for name in ("login_path", "slots_api_path"):
            path = (getattr(self, name) or "").strip()
            if not path.startswith("/"):
                path = "/" + path
            setattr(self, name, path)

        method = (self.slots_api_method or "").strip().upper()
        if method not in {"GET", "POST"}:
            raise ValueError("portal.slots_api_method must be GET or POST")
        self.slots_api_method = method
        return self

    @property
    def login_url(self) -> str:
        return f"{self.base_url}{self.login_path}"

    @property
    def slots_api_url(self) -> str:
        return f"{self.base_url}{self.slots_api_path}"


class TimeoutConfig(BaseModel):
    """
    The single timeout surface for the pipeline. Every wait is bounded.
    """

    navigation_timeout_ms: int = 45_000
    selector_timeout_ms: int = 20_000
    settle_delay_ms: int = 2_000
    # Per-keystroke typing delay (human-like input cadence), not a performance knob.
    keystroke_delay_ms: int = 50

    @field_validator("navigation_timeout_ms", "selector_timeout_ms")
    @classmethod
    def _bounded_wait(cls, v: int) -> int:
        if v <= 0 or v > MAX_WAIT_MS:
            raise ValueError(f"timeouts must be between 1 and {MAX_WAIT_MS} ms")
        return v

    @field_validator("settle_delay_ms", "keystroke_delay_ms")
    @classmethod
    def _bounded_delay(cls, v: int) -> int:
        if v < 0 or v > MAX_WAIT_MS:
            raise ValueError(f"delays must be between 0 and {MAX_WAIT_MS} ms")
        return v


class BrowserConfig(BaseModel):
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = 1920
    viewport_height: int = 1080
    locale: str = "en-US"
    # Optional system browser channel ("chrome", "msedge"); empty = Playwright's bundled Chromium.
    channel: str = ""
    extra_args: list[str] = Field(default_factory=list)


class DebugConfig(BaseModel):
    debug_dir: str = "data/debug"
    save_on_failure: bool = True
    snippet_chars: int = 500


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    timeouts: TimeoutConfig = TimeoutConfig()
    browser: BrowserConfig = BrowserConfig()
    debug: DebugConfig = DebugConfig()
    logging: LoggingConfig = LoggingConfig()
    # Opt-in positive login check before the data fetch (off: the fetch status reveals auth failures).
    verify_login: bool = False


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
