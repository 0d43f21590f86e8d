from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    BOT_CHALLENGE = "BotChallenge"
    FORM_NOT_FOUND = "FormNotFound"
    FIELD_NOT_FOUND = "FieldNotFound"
    SUBMIT_NOT_FOUND = "SubmitNotFound"
    NAVIGATION_TIMEOUT = "NavigationTimeout"
    FETCH_ERROR = "FetchError"
    LOGIN_REJECTED = "LoginRejected"
    UNKNOWN_FAILURE = "UnknownFailure"


class PortalError(RuntimeError):
    """
    Base class for classified portal failures. Every failure is terminal for the run.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN_FAILURE

    def __init__(self, message: str, *, snippet: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.snippet = snippet


class BotChallengeError(PortalError):
    """
    The portal served a bot-verification page instead of the login form ("blocked").
    """

    kind = ErrorKind.BOT_CHALLENGE

    def __init__(self, message: str, *, reason: Optional[str] = None, snippet: Optional[str] = None) -> None:
        super().__init__(message, snippet=snippet)
        self.reason = reason


class FormNotFoundError(PortalError):
    """
    No username field appeared and no challenge was detected ("site layout changed").
    """

    kind = ErrorKind.FORM_NOT_FOUND


class FieldNotFoundError(PortalError):
    kind = ErrorKind.FIELD_NOT_FOUND

    def __init__(self, field: str, *, snippet: Optional[str] = None) -> None:
        super().__init__(f"Login form {field} field not found.", snippet=snippet)
        self.field = field


class SubmitNotFoundError(PortalError):
    kind = ErrorKind.SUBMIT_NOT_FOUND


class NavigationTimeoutError(PortalError):
    kind = ErrorKind.NAVIGATION_TIMEOUT


class LoginRejectedError(PortalError):
    kind = ErrorKind.LOGIN_REJECTED


class FetchError(PortalError):
    """
    The authenticated data request returned a non-2xx status (or an unusable body).
    """

    kind = ErrorKind.FETCH_ERROR

    def __init__(self, message: str, *, http_status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.http_status = http_status
        self.body = body
