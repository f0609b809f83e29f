"""
Domain-specific exception hierarchy for the group free-slot finder.
"""


class FreeSlotError(Exception):
    """Base class for all application-level errors."""


class InvalidConstraints(FreeSlotError, ValueError):
    """Raised when search constraints or a request document are malformed."""


class InvalidInterval(FreeSlotError, ValueError):
    """Raised when a schedule record does not start before it ends."""


class ScheduleAPIError(FreeSlotError):
    """Raised when schedule or group data cannot be fetched or parsed."""

    def __init__(self, message: str, participant_id: str | None = None) -> None:
        super().__init__(message)
        self.participant_id = participant_id
