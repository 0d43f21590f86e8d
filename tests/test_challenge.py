from __future__ import annotations

from fakes import CHALLENGE_HTML, LOGIN_HTML

from visa_slot_checker.portal.challenge import classify, snippet_of
from visa_slot_checker.portal.selectors import PortalSelectors


def test_cloudflare_interstitial_is_flagged() -> None:
    verdict = classify(CHALLENGE_HTML, "https://www.usvisascheduling.com/en-US/login/")
    assert verdict.is_challenge is True
    assert verdict.reason and "just a moment" in verdict.reason


def test_attention_required_is_case_insensitive() -> None:
    verdict = classify("<title>ATTENTION REQUIRED! | Cloudflare</title>", "")
    assert verdict.is_challenge is True


def test_challenge_url_signature_is_flagged() -> None:
    verdict = classify("<html></html>", "https://portal.example.com/?__cf_chl_rt_tk=abc")
    assert verdict.is_challenge is True
    assert "__cf_chl" in (verdict.reason or "")


def test_ordinary_login_form_is_not_a_challenge() -> None:
    verdict = classify(LOGIN_HTML, "https://www.usvisascheduling.com/en-US/login/")
    assert verdict.is_challenge is False
    assert verdict.reason is None


def test_empty_or_missing_input_does_not_raise() -> None:
    assert classify(None, None).is_challenge is False
    assert classify("", "").is_challenge is False


def test_custom_markers() -> None:
    sel = PortalSelectors(challenge_content_markers=("pardon our interruption",), challenge_url_markers=())
    assert classify("<h1>Pardon Our Interruption</h1>", "", selectors=sel).is_challenge is True
    assert classify(CHALLENGE_HTML, "", selectors=sel).is_challenge is False


def test_snippet_collapses_whitespace_and_truncates() -> None:
    assert snippet_of("  a \n\n b\t c ") == "a b c"
    assert snippet_of("x" * 20, limit=5) == "xxxxx..."
    assert snippet_of(None) == ""


def test_login_page_with_cloudflare_detection_script_is_not_a_challenge() -> None:
    html = LOGIN_HTML.replace(
        "</body>",
        "<script>(function(){window.__CF$cv$params={r:'8f1c',t:'MTcw'};var a=document.createElement('script');"
        "a.src='/cdn-cgi/challenge-platform/scripts/jsd/main.js';document.getElementsByTagName('head')[0]"
        ".appendChild(a);})();</script></body>",
    )
    verdict = classify(html, "https://www.usvisascheduling.com/en-US/login/")
    assert verdict.is_challenge is False
