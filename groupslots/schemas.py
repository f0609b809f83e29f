"""
Request and response documents of the free-slot query, using Pydantic.

Field names follow the JSON wire format (camelCase aliases); Python code
uses the snake_case attribute names.
"""

from datetime import date, time
from typing import Any, Dict, List, Mapping, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .domain.exceptions import InvalidConstraints
from .domain.models import (
    DEFAULT_TIMEZONE,
    FreeSlot,
    FreeSlotResult,
    Participant,
    ScheduleEntry,
    SearchConstraints,
    get_timezone,
)

ALL_DAYS = [1, 2, 3, 4, 5, 6, 7]


class BusySchedule(BaseModel):
    """One busy schedule entry, timestamps as ISO 8601 strings."""
    model_config = ConfigDict(populate_by_name=True)

    start: str = Field(..., description="ISO 8601 start; local to the request timezone if no offset")
    end: str = Field(..., description="ISO 8601 end; local to the request timezone if no offset")
    title: str = Field(default="", description="Optional schedule title")


class ParticipantSchedules(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Opaque participant identifier")
    name: str = Field(default="", description="Display name")
    busy_schedules: List[BusySchedule] = Field(default_factory=list, alias="busySchedules")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        """Numeric ids are accepted and kept as strings."""
        return str(value) if isinstance(value, int) else value


class FreeSlotRequest(BaseModel):
    """Input of a free-slot query."""
    model_config = ConfigDict(populate_by_name=True)

    participants: List[ParticipantSchedules] = Field(default_factory=list)
    group_id: Optional[str] = Field(default=None, alias="groupId")
    user_ids: Optional[List[str]] = Field(default=None, alias="userIds")
    start_date: date = Field(..., alias="startDate", description="YYYY-MM-DD")
    end_date: date = Field(..., alias="endDate", description="YYYY-MM-DD, inclusive")
    min_duration_minutes: int = Field(default=60, alias="minDurationMinutes")
    working_hours_start: time = Field(default=time(9, 0), alias="workingHoursStart")
    working_hours_end: time = Field(default=time(22, 0), alias="workingHoursEnd")
    days_of_week: List[int] = Field(default_factory=lambda: list(ALL_DAYS), alias="daysOfWeek")
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="IANA timezone name")

    @field_validator("group_id", mode="before")
    @classmethod
    def coerce_group_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("user_ids", mode="before")
    @classmethod
    def coerce_user_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) if isinstance(item, int) else item for item in value]
        return value

    def to_constraints(self) -> SearchConstraints:
        """
        Build validated search constraints.

        Raises:
            InvalidConstraints: If any constraint invariant is violated
        """
        return SearchConstraints(
            start_date=self.start_date,
            end_date=self.end_date,
            min_duration_minutes=self.min_duration_minutes,
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            days_of_week=frozenset(self.days_of_week),
            timezone=self.timezone,
        )

    def to_participants(self) -> List[Participant]:
        """Convert inline participants into domain participants."""
        return [
            Participant(
                id=participant.id,
                name=participant.name,
                schedules=[
                    ScheduleEntry(
                        start=parse_timestamp(schedule.start, self.timezone),
                        end=parse_timestamp(schedule.end, self.timezone),
                        title=schedule.title,
                    )
                    for schedule in participant.busy_schedules
                ],
            )
            for participant in self.participants
        ]


class SearchPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    min_duration_minutes: int = Field(..., alias="minDurationMinutes")


class FreeSlotOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(..., alias="startTime", description="ISO 8601 with offset")
    end_time: str = Field(..., alias="endTime", description="ISO 8601 with offset")
    duration_minutes: int = Field(..., alias="durationMinutes")
    day_of_week: str = Field(..., alias="dayOfWeek")

    @classmethod
    def from_slot(cls, slot: FreeSlot) -> "FreeSlotOut":
        return cls(
            start_time=slot.start.isoformat(),
            end_time=slot.end.isoformat(),
            duration_minutes=slot.duration_minutes,
            day_of_week=slot.day_of_week,
        )


class FreeSlotResponse(BaseModel):
    """Output of a free-slot query."""
    model_config = ConfigDict(populate_by_name=True)

    group_id: Optional[str] = Field(default=None, alias="groupId")
    group_name: Optional[str] = Field(default=None, alias="groupName")
    participant_count: int = Field(..., alias="participantCount")
    search_period: SearchPeriod = Field(..., alias="searchPeriod")
    free_slots: List[FreeSlotOut] = Field(default_factory=list, alias="freeSlots")
    total_free_slots_found: int = Field(..., alias="totalFreeSlotsFound")
    excluded_participant_ids: Optional[List[str]] = Field(default=None, alias="excludedParticipantIds")

    @classmethod
    def from_result(cls, result: FreeSlotResult) -> "FreeSlotResponse":
        constraints = result.constraints
        return cls(
            group_id=result.group_id,
            group_name=result.group_name,
            participant_count=result.participant_count,
            search_period=SearchPeriod(
                start_date=constraints.start_date,
                end_date=constraints.end_date,
                min_duration_minutes=constraints.min_duration_minutes,
            ),
            free_slots=[FreeSlotOut.from_slot(slot) for slot in result.free_slots],
            total_free_slots_found=result.total_free_slots_found,
            excluded_participant_ids=list(result.excluded_participant_ids) or None,
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_request(payload: Mapping[str, Any]) -> FreeSlotRequest:
    """
    Validate a raw request document.

    Raises:
        InvalidConstraints: If the document does not match the request schema
    """
    try:
        return FreeSlotRequest.model_validate(dict(payload))
    except ValidationError as exc:
        raise InvalidConstraints(f"Invalid free-slot request: {exc}") from exc


def parse_timestamp(value: str, timezone: str) -> DateTime:
    """
    Parse an ISO 8601 timestamp.

    Timestamps without an offset are read as local time in ``timezone``.

    Raises:
        InvalidConstraints: If the value is not an ISO 8601 date-time
    """
    tz = get_timezone(timezone)
    try:
        parsed = pendulum.parse(value, tz=tz)
    except (TypeError, ValueError) as exc:
        raise InvalidConstraints(f"Could not parse timestamp '{value}': {exc}") from exc

    if not isinstance(parsed, DateTime):
        raise InvalidConstraints(f"Could not parse timestamp '{value}': not a date-time")

    return parsed
