"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import FreeSlotError, InvalidConstraints, InvalidInterval, ScheduleAPIError
from .models import (
    BusyInterval,
    FreeSlot,
    FreeSlotResult,
    Group,
    Participant,
    ScheduleEntry,
    SearchConstraints,
    TimeRange,
)
from .slot_calculator import FreeSlotCalculator

__all__ = [
    "BusyInterval",
    "FreeSlot",
    "FreeSlotCalculator",
    "FreeSlotError",
    "FreeSlotResult",
    "Group",
    "InvalidConstraints",
    "InvalidInterval",
    "Participant",
    "ScheduleAPIError",
    "ScheduleEntry",
    "SearchConstraints",
    "TimeRange",
]
