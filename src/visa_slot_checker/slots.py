from __future__ import annotations

import logging
from typing import Any, Optional

from .models import SlotRecord


logger = logging.getLogger(__name__)

# Slot-bearing keys on a location group, in priority order (first present wins).
SLOT_CONTAINER_KEYS = ("days", "slots", "availableDates")
# Wrapper keys on the response root (or a nested wrapper) holding the list of location groups.
WRAPPER_KEYS = ("locations", "results")

LOCATION_NAME_KEYS = ("locationName", "location", "name")
CONSULATE_NAME_KEYS = ("consulateName", "consulate")
DATE_KEYS = ("date", "appointmentDate")
TIME_KEYS = ("time", "appointmentTime")

# Input is tree-shaped JSON, so there are no cycles; this only guards against pathological nesting.
MAX_DEPTH = 16


def normalize_slots(raw: object) -> list[SlotRecord]:
    """
    Flatten the portal's loosely-structured schedule response into `SlotRecord`s.

    Accepted shapes:
    - a list of location groups, each carrying `days`, `slots`, `availableDates` or a bare `date`
    - an object wrapping such a list under `locations` or `results`

    Never raises: malformed sub-structures are skipped, and an unexpected error returns whatever was
    collected up to that point. Entries without a usable date are kept with `date=None`.
    """
    out: list[SlotRecord] = []
    try:
        _walk(raw, out, depth=0)
    except Exception:
        logger.warning("Slot normalization aborted after %d record(s).", len(out), exc_info=True)
    return out


def _walk(node: Any, out: list[SlotRecord], *, depth: int) -> None:
    if depth > MAX_DEPTH:
        logger.debug("Slot response nested deeper than %d levels; skipping.", MAX_DEPTH)
        return

    if isinstance(node, list):
        for item in node:
            if isinstance(item, list):
                _walk(item, out, depth=depth + 1)
            elif isinstance(item, dict):
                if _is_wrapper(item):
                    _walk(_wrapped_list(item), out, depth=depth + 1)
                else:
                    _emit_group(item, out)
            else:
                logger.debug("Skipping non-object location group: %r", type(item).__name__)
        return

    if isinstance(node, dict):
        inner = _wrapped_list(node)
        if inner is not None:
            _walk(inner, out, depth=depth + 1)


def _is_wrapper(group: dict) -> bool:
    if any(group.get(k) is not None for k in SLOT_CONTAINER_KEYS) or "date" in group:
        return False
    return _wrapped_list(group) is not None


def _wrapped_list(node: dict) -> Optional[list]:
    for key in WRAPPER_KEYS:
        value = node.get(key)
        if isinstance(value, list):
            return value
    return None


def _emit_group(group: dict, out: list[SlotRecord]) -> None:
    location = _first_text(group, LOCATION_NAME_KEYS) or "Unknown"
    consulate = _first_text(group, CONSULATE_NAME_KEYS) or location

    for key in SLOT_CONTAINER_KEYS:
        entries = group.get(key)
        # A null container counts as absent.
        if entries is None:
            continue
        if not isinstance(entries, list):
            logger.debug("Location %r has non-list %s; skipping.", location, key)
            return
        for entry in entries:
            record = _record_from_entry(entry, location=location, consulate=consulate)
            if record is not None:
                out.append(record)
        return

    if "date" in group:
        out.append(
            SlotRecord(
                location=location,
                consulate=consulate,
                date=_text_or_none(group.get("date")),
                time=_text_or_none(_first_present(group, TIME_KEYS)),
            )
        )


def _record_from_entry(entry: Any, *, location: str, consulate: str) -> Optional[SlotRecord]:
    if isinstance(entry, dict):
        return SlotRecord(
            location=location,
            consulate=consulate,
            date=_text_or_none(_first_present(entry, DATE_KEYS)),
            time=_text_or_none(_first_present(entry, TIME_KEYS)),
        )
    # Some variants list bare dates (e.g. availableDates: ["2024-01-01", ...]).
    if isinstance(entry, str):
        return SlotRecord(location=location, consulate=consulate, date=entry or None)
    logger.debug("Skipping malformed slot entry for %r: %r", location, entry)
    return None


def _first_present(d: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = d.get(key)
        if value is not None and value != "":
            return value
    return None


def _first_text(d: dict, keys: tuple[str, ...]) -> str:
    # Skip non-scalar values (e.g. {"location": {"id": 3}}) and keep looking down the key list.
    for key in keys:
        value = d.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    return ""


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None
