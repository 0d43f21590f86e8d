from __future__ import annotations

import pytest
from pydantic import ValidationError

from visa_slot_checker.models import SlotCheckFailure, SlotCheckRequest, SlotRecord
from visa_slot_checker.portal.errors import BotChallengeError, ErrorKind, FieldNotFoundError


@pytest.mark.parametrize(
    "fields",
    [
        {"username": "", "password": "p", "appd": "A"},
        {"username": "u", "password": "", "appd": "A"},
        {"username": "u", "password": "p", "appd": "   "},
        {"username": "u", "password": "p"},
    ],
)
def test_request_requires_all_fields(fields: dict) -> None:
    with pytest.raises(ValidationError):
        SlotCheckRequest(**fields)


def test_request_repr_hides_password() -> None:
    req = SlotCheckRequest(username="u", password="hunter22", appd="A")
    assert "hunter22" not in repr(req)


def test_slot_record_blank_location_becomes_unknown() -> None:
    assert SlotRecord(location="  ", consulate="", date="2024-01-01").location == "Unknown"


def test_failure_payload_from_error() -> None:
    err = BotChallengeError("blocked", reason="content contains 'just a moment'", snippet="Just a moment...")
    failure = SlotCheckFailure.from_error(err)
    assert failure.error_kind is ErrorKind.BOT_CHALLENGE
    assert failure.snippet == "Just a moment..."
    assert failure.to_payload() == {"success": False, "error": "BotChallenge", "message": "blocked"}


def test_field_not_found_message_names_field() -> None:
    failure = SlotCheckFailure.from_error(FieldNotFoundError("password"))
    assert failure.to_payload()["message"] == "Login form password field not found."
