from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .portal.errors import ErrorKind, FetchError, PortalError


class SlotRecord(BaseModel):
    location: str = "Unknown"
    consulate: str = "Unknown"
    date: Optional[str] = None
    time: Optional[str] = None
    # The portal only ever lists open slots; absence means unavailable.
    available: bool = True

    @field_validator("location", "consulate")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        return v.strip() if v and v.strip() else "Unknown"


class SlotCheckRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    appd: str = Field(min_length=1)

    @field_validator("username", "appd")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class SlotCheckSuccess(BaseModel):
    success: Literal[True] = True
    slots: list[SlotRecord] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_slots(self) -> int:
        return len(self.slots)

    def to_payload(self) -> dict:
        return {
            "success": True,
            "slots": [s.model_dump() for s in self.slots],
            "totalSlots": self.total_slots,
            "checkedAt": self.checked_at.isoformat(),
        }


class SlotCheckFailure(BaseModel):
    success: Literal[False] = False
    error_kind: ErrorKind = ErrorKind.UNKNOWN_FAILURE
    message: str = ""
    http_status: Optional[int] = None
    # Truncated page content, for diagnosing challenge/layout failures. Not part of the payload.
    snippet: Optional[str] = None

    @classmethod
    def from_error(cls, err: PortalError) -> "SlotCheckFailure":
        return cls(
            error_kind=err.kind,
            message=err.message,
            http_status=err.http_status if isinstance(err, FetchError) else None,
            snippet=err.snippet,
        )

    def to_payload(self) -> dict:
        out: dict = {"success": False, "error": self.error_kind.value}
        if self.message:
            out["message"] = self.message
        if self.http_status is not None:
            out["httpStatus"] = self.http_status
        return out
