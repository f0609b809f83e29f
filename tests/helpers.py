"""
Shared helpers for the test suite.
"""

from datetime import time

import pendulum

from groupslots.domain.models import Participant, ScheduleEntry, SearchConstraints

TZ = "Asia/Seoul"


def dt(text: str, tz: str = TZ):
    """Parse 'YYYY-MM-DD HH:mm' as local time."""
    return pendulum.parse(text, tz=tz)


def busy(start: str, end: str, title: str = "") -> ScheduleEntry:
    return ScheduleEntry(start=dt(start), end=dt(end), title=title)


def participant(participant_id: str, *schedules: ScheduleEntry) -> Participant:
    return Participant(id=participant_id, name=participant_id.title(), schedules=list(schedules))


def constraints(
    start: str = "2024-11-25",
    end: str = "2024-11-25",
    min_duration: int = 30,
    hours: tuple = (time(9, 0), time(22, 0)),
    days=(1, 2, 3, 4, 5, 6, 7),
    tz: str = TZ,
) -> SearchConstraints:
    return SearchConstraints(
        start_date=pendulum.parse(start).date(),
        end_date=pendulum.parse(end).date(),
        min_duration_minutes=min_duration,
        working_hours_start=hours[0],
        working_hours_end=hours[1],
        days_of_week=frozenset(days),
        timezone=tz,
    )

