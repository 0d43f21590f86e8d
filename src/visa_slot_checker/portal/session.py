from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import PortalConfig, TimeoutConfig
from .challenge import classify, snippet_of
from .errors import (
    BotChallengeError,
    FieldNotFoundError,
    FormNotFoundError,
    LoginRejectedError,
    NavigationTimeoutError,
    SubmitNotFoundError,
)
from .fields import FieldLocator, FieldRole
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    START = "start"
    NAVIGATED = "navigated"
    CHALLENGE_CHECK = "challenge_check"
    FORM_LOCATED = "form_located"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class PortalCredentials:
    username: str
    password: str = field(repr=False)


class SessionAcquirer:
    """
    Log into the scheduling portal on a fresh page.

    Single attempt: every failure raises a `PortalError` subclass and is terminal for the run.
    """

    def __init__(
        self,
        *,
        portal: PortalConfig,
        timeouts: TimeoutConfig,
        selectors: Optional[PortalSelectors] = None,
        verify_login: bool = False,
        snippet_chars: int = 500,
    ) -> None:
        self.portal = portal
        self.timeouts = timeouts
        self.selectors = selectors or PortalSelectors()
        self.locator = FieldLocator(self.selectors)
        self.verify_login = verify_login
        self.snippet_chars = snippet_chars
        self.state = SessionState.START

    def acquire(self, page, creds: PortalCredentials) -> None:
        self._set_state(SessionState.START)
        try:
            self._navigate(page)
            self._check_challenge(page)
            self._wait_for_form(page)
            self._submit_credentials(page, creds)
            if self.verify_login:
                self._verify_authenticated(page)
        except Exception:
            self._set_state(SessionState.FAILED)
            raise
        self._set_state(SessionState.AUTHENTICATED)

    def _navigate(self, page) -> None:
        logger.info("Opening portal login page...")
        try:
            # "networkidle" maps to puppeteer's "page stopped actively loading"; bounded by the timeout.
            page.goto(
                self.portal.login_url,
                wait_until="networkidle",
                timeout=self.timeouts.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Login page did not finish loading within {self.timeouts.navigation_timeout_ms} ms."
            ) from e
        self._set_state(SessionState.NAVIGATED)

    def _check_challenge(self, page) -> None:
        # Client-side redirects and challenge scripts render after load.
        if self.timeouts.settle_delay_ms > 0:
            page.wait_for_timeout(self.timeouts.settle_delay_ms)
        self._set_state(SessionState.CHALLENGE_CHECK)
        self._raise_if_challenge(page)

    def _raise_if_challenge(self, page) -> None:
        content = _page_content(page)
        verdict = classify(content, _page_url(page), selectors=self.selectors)
        if verdict.is_challenge:
            logger.warning("Bot-verification page detected (%s).", verdict.reason)
            raise BotChallengeError(
                "Login blocked by a bot-verification challenge page.",
                reason=verdict.reason,
                snippet=snippet_of(content, self.snippet_chars),
            )

    def _wait_for_form(self, page) -> None:
        logger.info("Waiting for login form...")
        any_username = ", ".join(self.selectors.username_candidates)
        try:
            page.wait_for_selector(any_username, state="attached", timeout=self.timeouts.selector_timeout_ms)
        except PlaywrightTimeoutError as e:
            # A challenge that rendered late still means "blocked", not "layout changed".
            self._raise_if_challenge(page)
            raise FormNotFoundError(
                f"Login form did not appear within {self.timeouts.selector_timeout_ms} ms "
                "(the portal layout may have changed).",
                snippet=snippet_of(_page_content(page), self.snippet_chars),
            ) from e
        self._set_state(SessionState.FORM_LOCATED)

    def _submit_credentials(self, page, creds: PortalCredentials) -> None:
        user_input = self.locator.locate(page, FieldRole.USERNAME)
        if user_input is None:
            raise self._field_missing(page, "username")
        pwd_input = self.locator.locate(page, FieldRole.PASSWORD)
        if pwd_input is None:
            raise self._field_missing(page, "password")

        delay = self.timeouts.keystroke_delay_ms
        user_input.fill("")
        user_input.type(creds.username, delay=delay)
        pwd_input.fill("")
        pwd_input.type(creds.password, delay=delay)

        submit = self.locator.locate(page, FieldRole.SUBMIT)
        if submit is None:
            raise SubmitNotFoundError("Login form submit control not found.")

        try:
            with page.expect_navigation(
                wait_until="domcontentloaded",
                timeout=self.timeouts.navigation_timeout_ms,
            ):
                submit.click()
        except PlaywrightTimeoutError:
            # Some successful logins are single-page transitions with no navigation event.
            logger.info("No navigation observed after submitting credentials; continuing.")
        self._set_state(SessionState.CREDENTIALS_SUBMITTED)

    def _field_missing(self, page, field: str) -> FieldNotFoundError:
        found = self.locator.locate_all(page)
        logger.warning(
            "Login form %s field not found (roles located: %s).",
            field,
            ", ".join(role for role, el in found.items() if el is not None) or "none",
        )
        return FieldNotFoundError(field, snippet=snippet_of(_page_content(page), self.snippet_chars))

    def _verify_authenticated(self, page) -> None:
        if self.timeouts.settle_delay_ms > 0:
            page.wait_for_timeout(self.timeouts.settle_delay_ms)

        url = _page_url(page).split("?", 1)[0].rstrip("/").lower()
        still_on_login = url.endswith(self.portal.login_path.rstrip("/").lower())
        if still_on_login and self.locator.locate(page, FieldRole.PASSWORD) is not None:
            reason = self._login_failure_reason(page)
            raise LoginRejectedError(
                reason or "Portal login did not complete (still on the login form after submitting credentials)."
            )

    def _login_failure_reason(self, page) -> Optional[str]:
        try:
            txt = page.inner_text("body") or ""
        except Exception:
            return None
        for pattern in self.selectors.login_error_patterns:
            m = re.search(pattern, txt, re.I)
            if m:
                return f"Login failed: the portal reports {m.group(0).strip()!r}."
        return None

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            logger.debug("Session state %s -> %s", self.state.value, state.value)
        self.state = state


def _page_content(page) -> str:
    try:
        return page.content() or ""
    except Exception:
        logger.debug("Could not read page content.", exc_info=True)
        return ""


def _page_url(page) -> str:
    try:
        return page.url or ""
    except Exception:
        return ""
