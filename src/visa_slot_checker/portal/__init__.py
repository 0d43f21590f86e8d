from .challenge import ChallengeVerdict, classify
from .errors import ErrorKind, PortalError
from .fetcher import FetchResponse, SlotFetcher
from .fields import FieldLocator, FieldRole
from .session import PortalCredentials, SessionAcquirer, SessionState

__all__ = [
    "ChallengeVerdict",
    "classify",
    "ErrorKind",
    "PortalError",
    "FetchResponse",
    "SlotFetcher",
    "FieldLocator",
    "FieldRole",
    "PortalCredentials",
    "SessionAcquirer",
    "SessionState",
]
