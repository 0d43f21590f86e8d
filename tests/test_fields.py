from __future__ import annotations

from fakes import FakeElement, FakePage

from visa_slot_checker.portal.fields import FieldLocator, FieldRole
from visa_slot_checker.portal.selectors import PortalSelectors


def test_returns_none_when_nothing_matches() -> None:
    page = FakePage(elements={})
    loc = FieldLocator()
    assert loc.locate(page, FieldRole.USERNAME) is None
    assert loc.locate(page, FieldRole.PASSWORD) is None
    assert loc.locate(page, FieldRole.SUBMIT) is None


def test_highest_priority_candidate_wins() -> None:
    stable = FakeElement("stable")
    generic = FakeElement("generic")
    page = FakePage(elements={'input[type="text"]': [generic], "input#signInName": [stable]})
    assert FieldLocator().locate(page, "username") is stable


def test_generic_type_match_is_last_resort() -> None:
    email = FakeElement("email")
    page = FakePage(elements={'input[type="email"]': [email]})
    assert FieldLocator().locate(page, FieldRole.USERNAME) is email

    pwd = FakeElement("pwd")
    page = FakePage(elements={'input[type="password"]': [pwd]})
    assert FieldLocator().locate(page, FieldRole.PASSWORD) is pwd


def test_hidden_matches_are_skipped() -> None:
    hidden = FakeElement("hidden", visible=False)
    shown = FakeElement("shown")
    page = FakePage(elements={"input#signInName": [hidden], 'input[name="username"]': [shown]})
    assert FieldLocator().locate(page, FieldRole.USERNAME) is shown


def test_submit_falls_back_to_button_text() -> None:
    sel = PortalSelectors()
    other = FakeElement("help", text="Forgot your password?")
    sign_in = FakeElement("sign-in", text="  SIGN IN ")
    page = FakePage(elements={sel.submit_button_like: [other, sign_in]})
    assert FieldLocator(sel).locate(page, FieldRole.SUBMIT) is sign_in


def test_submit_text_fallback_reads_input_value() -> None:
    sel = PortalSelectors()
    btn = FakeElement("input-button", attrs={"value": "Continue"})
    page = FakePage(elements={sel.submit_button_like: [btn]})
    assert FieldLocator(sel).locate(page, FieldRole.SUBMIT) is btn


def test_submit_css_candidate_beats_text_search() -> None:
    sel = PortalSelectors()
    css = FakeElement("css")
    text = FakeElement("text", text="Login")
    page = FakePage(elements={'button[type="submit"]': [css], sel.submit_button_like: [text]})
    assert FieldLocator(sel).locate(page, FieldRole.SUBMIT) is css


def test_submit_without_matching_text_is_none() -> None:
    sel = PortalSelectors()
    page = FakePage(elements={sel.submit_button_like: [FakeElement("x", text="Cancel")]})
    assert FieldLocator(sel).locate(page, FieldRole.SUBMIT) is None


def test_query_errors_are_treated_as_no_match() -> None:
    class BrokenPage:
        def query_selector_all(self, selector: str):
            raise RuntimeError("Execution context was destroyed")

    assert FieldLocator().locate(BrokenPage(), FieldRole.USERNAME) is None


def test_locate_all_reports_each_role() -> None:
    from fakes import login_form_elements

    found = FieldLocator().locate_all(FakePage(elements=login_form_elements()))
    assert set(found) == {"username", "password", "submit"}
    assert all(v is not None for v in found.values())
