"""
Domain models for time ranges, search constraints and free slots.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, List, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidConstraints, InvalidInterval

DEFAULT_TIMEZONE = "Asia/Seoul"

# ISO weekday numbering, 1=Monday .. 7=Sunday
WEEKDAY_NAMES = {
    1: "MONDAY",
    2: "TUESDAY",
    3: "WEDNESDAY",
    4: "THURSDAY",
    5: "FRIDAY",
    6: "SATURDAY",
    7: "SUNDAY",
}


def get_timezone(name: str) -> pendulum.Timezone:
    """
    Look up an IANA timezone.

    Raises:
        InvalidConstraints: If the name is unknown
    """
    try:
        return pendulum.timezone(name)
    except (KeyError, ValueError) as exc:
        raise InvalidConstraints(f"Unknown timezone: '{name}'") from exc


def localize(value: datetime, timezone: str) -> DateTime:
    """Read a naive datetime as wall-clock time in ``timezone``; aware datetimes are converted."""
    return pendulum.instance(get_timezone(timezone).convert(value))


def start_of_day(day: date, timezone: str) -> DateTime:
    """Midnight of ``day`` in ``timezone``."""
    return pendulum.datetime(day.year, day.month, day.day, tz=get_timezone(timezone))


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end. Both ends are timezone-aware.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        object.__setattr__(self, "start", pendulum.instance(self.start))
        object.__setattr__(self, "end", pendulum.instance(self.end))
        # Compare instants; same-zone comparisons ignore the DST fold
        if self.start.timestamp() >= self.end.timestamp():
            raise InvalidInterval(f"Start time {self.start} must be before end time {self.end}")

    def duration_seconds(self) -> float:
        return self.end.timestamp() - self.start.timestamp()

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int(self.duration_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def in_timezone(self, timezone: str) -> "TimeRange":
        tz = get_timezone(timezone)
        return TimeRange(start=self.start.in_timezone(tz), end=self.end.in_timezone(tz))

    def to_utc(self) -> "TimeRange":
        return TimeRange(start=self.start.in_timezone("UTC"), end=self.end.in_timezone("UTC"))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class ScheduleEntry:
    """
    A raw schedule record as delivered by the schedule-lookup service.

    Nothing is validated here; see ``to_time_range``. Naive timestamps are
    read in the query timezone.
    """
    start: datetime
    end: datetime
    title: str = ""
    status: Optional[str] = None

    def to_time_range(self, timezone: str = DEFAULT_TIMEZONE) -> TimeRange:
        """Validate the record, raising InvalidInterval if start >= end."""
        start = localize(self.start, timezone)
        end = localize(self.end, timezone)
        if start.timestamp() >= end.timestamp():
            label = f" '{self.title}'" if self.title else ""
            raise InvalidInterval(
                f"Schedule{label} starts at {start.isoformat()} but ends at {end.isoformat()}"
            )
        return TimeRange(start=start, end=end)


@dataclass(frozen=True)
class BusyInterval:
    """A busy time range attributed to one participant."""
    participant_id: str
    time_range: TimeRange

    @property
    def start(self) -> datetime:
        return self.time_range.start

    @property
    def end(self) -> datetime:
        return self.time_range.end


@dataclass
class Participant:
    """A group member taking part in a free-slot query."""
    id: str
    name: str = ""
    schedules: List[ScheduleEntry] = field(default_factory=list)

    def display_name(self) -> str:
        """Get display name, falling back to the id."""
        return self.name or self.id


@dataclass(frozen=True)
class SearchConstraints:
    """
    Value object describing where and when free time may be reported.

    Dates and working hours are interpreted in ``timezone``. Construction
    fails with InvalidConstraints if any invariant is violated.
    """
    start_date: date
    end_date: date
    min_duration_minutes: int
    working_hours_start: time
    working_hours_end: time
    days_of_week: FrozenSet[int]
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        if not isinstance(self.start_date, date) or not isinstance(self.end_date, date):
            raise InvalidConstraints("start_date and end_date must be calendar dates")

        # datetime is a date subclass; keep the calendar part only
        start, end = self.start_date, self.end_date
        object.__setattr__(self, "start_date", pendulum.date(start.year, start.month, start.day))
        object.__setattr__(self, "end_date", pendulum.date(end.year, end.month, end.day))
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))

        if self.start_date > self.end_date:
            raise InvalidConstraints(
                f"start_date {self.start_date} must not be after end_date {self.end_date}"
            )
        if self.working_hours_start >= self.working_hours_end:
            raise InvalidConstraints(
                f"working_hours_start {self.working_hours_start:%H:%M} must be before "
                f"working_hours_end {self.working_hours_end:%H:%M}"
            )
        if not self.days_of_week:
            raise InvalidConstraints("days_of_week must contain at least one weekday")
        invalid_days = sorted(day for day in self.days_of_week if day not in WEEKDAY_NAMES)
        if invalid_days:
            raise InvalidConstraints(
                f"days_of_week must be between 1 (Monday) and 7 (Sunday), got {invalid_days}"
            )
        if self.min_duration_minutes <= 0:
            raise InvalidConstraints(
                f"min_duration_minutes must be greater than zero, got {self.min_duration_minutes}"
            )
        get_timezone(self.timezone)

    def window(self) -> TimeRange:
        """The whole query window: start_date 00:00 up to the day after end_date."""
        return TimeRange(
            start=start_of_day(self.start_date, self.timezone),
            end=start_of_day(self.end_date.add(days=1), self.timezone),
        ).to_utc()

    def is_allowed_day(self, day: date) -> bool:
        return day.isoweekday() in self.days_of_week

    def eligible_dates(self) -> List[date]:
        """Every date in [start_date, end_date] whose weekday is allowed."""
        dates: List[date] = []
        current = self.start_date

        while current <= self.end_date:
            if self.is_allowed_day(current):
                dates.append(current)
            current = current.add(days=1)

        return dates

    def workday_window(self, day: date) -> TimeRange | None:
        """
        Working hours of a single day as a UTC-normalized TimeRange.

        Returns None if the hours vanish on that day, e.g. when both ends fall
        into the gap of a daylight saving change.
        """
        midnight = start_of_day(day, self.timezone)
        start = midnight.set(
            hour=self.working_hours_start.hour,
            minute=self.working_hours_start.minute,
        )
        end = midnight.set(
            hour=self.working_hours_end.hour,
            minute=self.working_hours_end.minute,
        )

        if start.timestamp() >= end.timestamp():
            return None

        return TimeRange(start=start, end=end).to_utc()

    def workday_windows(self) -> List[TimeRange]:
        windows = (self.workday_window(day) for day in self.eligible_dates())
        return [window for window in windows if window is not None]


@dataclass(frozen=True)
class FreeSlot:
    """
    A time range in which every participant is free.

    The range is expressed in the query timezone; ``day_of_week`` is the
    weekday of its start there.
    """
    time_range: TimeRange
    duration_minutes: int
    day_of_week: str

    @classmethod
    def from_time_range(cls, time_range: TimeRange, timezone: str) -> "FreeSlot":
        local = time_range.in_timezone(timezone)
        return cls(
            time_range=local,
            duration_minutes=local.duration_minutes(),
            day_of_week=WEEKDAY_NAMES[local.start.isoweekday()],
        )

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:mm - HH:mm (N min)
        """
        weekday = self.day_of_week.capitalize()
        date_str = self.start.format("YYYY-MM-DD")
        time_str = f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')}"

        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes} min)"


@dataclass
class FreeSlotResult:
    """Free slots of one query together with the query metadata."""
    participant_count: int
    constraints: SearchConstraints
    free_slots: List[FreeSlot] = field(default_factory=list)
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    excluded_participant_ids: List[str] = field(default_factory=list)

    @property
    def total_free_slots_found(self) -> int:
        return len(self.free_slots)

    def is_empty(self) -> bool:
        return not self.free_slots


@dataclass
class Group:
    """A group as reported by the membership service."""
    id: str
    name: str = ""
    members: List[Participant] = field(default_factory=list)

    def find_member(self, identifier: str) -> Participant | None:
        """Find a member by id or (case-insensitive) name."""
        for member in self.members:
            if member.id == identifier:
                return member
        for member in self.members:
            if member.name and member.name.lower() == identifier.lower():
                return member
        return None
