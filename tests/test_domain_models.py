"""
Tests for domain models.
"""

from datetime import date, time

import pendulum
import pytest

from groupslots.domain.exceptions import InvalidConstraints, InvalidInterval
from groupslots.domain.models import FreeSlot, Group, Participant, ScheduleEntry, TimeRange

from helpers import TZ, constraints, dt


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = dt("2024-11-25 09:00")
        end = dt("2024-11-25 17:00")

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_invalid_time_range_raises_error(self):
        """Test that creating an inverted time range raises InvalidInterval."""
        with pytest.raises(InvalidInterval, match="Start time .* must be before end time"):
            TimeRange(start=dt("2024-11-25 17:00"), end=dt("2024-11-25 09:00"))

    def test_empty_time_range_raises_error(self):
        """A zero-length range is not a valid half-open interval."""
        with pytest.raises(InvalidInterval):
            TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 09:00"))

    def test_invalid_interval_is_a_value_error(self):
        with pytest.raises(ValueError):
            TimeRange(start=dt("2024-11-25 10:00"), end=dt("2024-11-25 09:00"))

    def test_duration_floors_partial_minutes(self):
        tr = TimeRange(start=dt("2024-11-25 09:00:00"), end=dt("2024-11-25 09:30:59"))

        assert tr.duration_minutes() == 30

    def test_overlaps(self):
        """Test overlap detection; touching ranges do not overlap."""
        tr1 = TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 12:00"))
        tr2 = TimeRange(start=dt("2024-11-25 11:00"), end=dt("2024-11-25 14:00"))
        tr3 = TimeRange(start=dt("2024-11-25 14:00"), end=dt("2024-11-25 17:00"))

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)
        assert not tr2.overlaps(tr3)

    def test_intersect(self):
        """Test intersection calculation."""
        tr1 = TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 12:00"))
        tr2 = TimeRange(start=dt("2024-11-25 11:00"), end=dt("2024-11-25 14:00"))

        intersection = tr1.intersect(tr2)

        assert intersection is not None
        assert intersection.start == dt("2024-11-25 11:00")
        assert intersection.end == dt("2024-11-25 12:00")

    def test_intersect_no_overlap(self):
        """Test intersection with no overlap returns None."""
        tr1 = TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 12:00"))
        tr2 = TimeRange(start=dt("2024-11-25 14:00"), end=dt("2024-11-25 17:00"))

        assert tr1.intersect(tr2) is None

    def test_comparison_is_by_instant(self):
        """The same instant in different offsets is equal."""
        local = TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 10:00"))
        utc = TimeRange(
            start=pendulum.parse("2024-11-25T00:00:00+00:00"),
            end=pendulum.parse("2024-11-25T01:00:00+00:00"),
        )

        assert local == utc
        assert utc.in_timezone(TZ).start.hour == 9


class TestScheduleEntry:

    def test_to_time_range(self):
        entry = ScheduleEntry(start=dt("2024-11-25 10:00"), end=dt("2024-11-25 11:00"), title="Lecture")

        assert entry.to_time_range() == TimeRange(start=entry.start, end=entry.end)

    def test_inverted_entry_is_rejected(self):
        entry = ScheduleEntry(start=dt("2024-11-25 11:00"), end=dt("2024-11-25 10:00"), title="Lecture")

        with pytest.raises(InvalidInterval, match="Lecture"):
            entry.to_time_range()


class TestSearchConstraints:
    """Tests for SearchConstraints validation and calendar helpers."""

    def test_dates_are_normalized(self):
        c = constraints(start="2024-11-25", end="2024-11-27")

        assert c.start_date == date(2024, 11, 25)
        assert c.end_date == date(2024, 11, 27)
        assert isinstance(c.days_of_week, frozenset)

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidConstraints, match="start_date"):
            constraints(start="2024-11-26", end="2024-11-25")

    def test_same_day_allowed(self):
        c = constraints(start="2024-11-25", end="2024-11-25")

        assert len(c.eligible_dates()) == 1

    @pytest.mark.parametrize(
        "hours",
        [(time(22, 0), time(9, 0)), (time(9, 0), time(9, 0))],
    )
    def test_reversed_working_hours_rejected(self, hours):
        with pytest.raises(InvalidConstraints, match="working_hours_start"):
            constraints(hours=hours)

    def test_empty_days_rejected(self):
        with pytest.raises(InvalidConstraints, match="at least one weekday"):
            constraints(days=())

    def test_out_of_range_days_rejected(self):
        with pytest.raises(InvalidConstraints, match=r"\[0, 8\]"):
            constraints(days=(0, 1, 8))

    @pytest.mark.parametrize("minutes", [0, -15])
    def test_non_positive_duration_rejected(self, minutes):
        with pytest.raises(InvalidConstraints, match="min_duration_minutes"):
            constraints(min_duration=minutes)

    def test_unknown_timezone_rejected(self):
        with pytest.raises(InvalidConstraints, match="timezone"):
            constraints(tz="Mars/Olympus_Mons")

    def test_eligible_dates_respect_days_of_week(self):
        """Monday 2024-11-25 through Sunday 2024-12-01, weekends only."""
        c = constraints(start="2024-11-25", end="2024-12-01", days=(6, 7))

        assert c.eligible_dates() == [date(2024, 11, 30), date(2024, 12, 1)]

    def test_workday_window(self):
        c = constraints(hours=(time(9, 30), time(17, 0)))

        window = c.workday_window(date(2024, 11, 25))

        assert window.start == dt("2024-11-25 09:30")
        assert window.end == dt("2024-11-25 17:00")

    def test_workday_window_vanishes_in_skipped_hour(self):
        """02:00-03:00 does not exist in New York on 2024-03-10."""
        c = constraints(
            start="2024-03-10", end="2024-03-10",
            hours=(time(2, 0), time(3, 0)), tz="America/New_York",
        )

        assert c.workday_window(date(2024, 3, 10)) is None
        assert c.workday_windows() == []

    def test_search_window_covers_whole_end_date(self):
        c = constraints(start="2024-11-25", end="2024-11-26")

        window = c.window()

        assert window.start == dt("2024-11-25 00:00")
        assert window.end == dt("2024-11-27 00:00")


class TestFreeSlot:

    def test_from_time_range_labels_weekday(self):
        tr = TimeRange(start=dt("2024-11-30 09:00"), end=dt("2024-11-30 10:30"))

        slot = FreeSlot.from_time_range(tr, TZ)

        assert slot.day_of_week == "SATURDAY"
        assert slot.duration_minutes == 90

    def test_weekday_uses_query_timezone(self):
        """23:30 UTC on Sunday is already Monday in Seoul."""
        tr = TimeRange(
            start=pendulum.parse("2024-11-24T23:30:00+00:00"),
            end=pendulum.parse("2024-11-25T01:00:00+00:00"),
        )

        slot = FreeSlot.from_time_range(tr, TZ)

        assert slot.day_of_week == "MONDAY"
        assert slot.start.hour == 8

    def test_format_display(self):
        tr = TimeRange(start=dt("2024-11-25 09:00"), end=dt("2024-11-25 10:00"))

        slot = FreeSlot.from_time_range(tr, TZ)

        assert slot.format_display() == "Monday, 2024-11-25 | 09:00 - 10:00 (60 min)"


class TestGroup:

    def test_find_member_by_id_or_name(self):
        group = Group(
            id="1",
            name="Team",
            members=[Participant(id="u-1", name="Minji"), Participant(id="u-2", name="Junho")],
        )

        assert group.find_member("u-2").name == "Junho"
        assert group.find_member("minji").id == "u-1"
        assert group.find_member("nobody") is None
