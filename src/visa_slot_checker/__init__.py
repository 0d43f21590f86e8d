from .models import SlotCheckFailure, SlotCheckRequest, SlotCheckSuccess, SlotRecord
from .pipeline import check_slots
from .slots import normalize_slots

__all__ = [
    "check_slots",
    "normalize_slots",
    "SlotRecord",
    "SlotCheckRequest",
    "SlotCheckSuccess",
    "SlotCheckFailure",
]
