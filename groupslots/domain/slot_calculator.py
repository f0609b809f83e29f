"""
Core business logic for calculating common free time of a group.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import List, Sequence

from .intervals import clip_range, intersect_range_lists, merge_ranges, subtract_ranges
from .models import (
    BusyInterval,
    FreeSlot,
    FreeSlotResult,
    Participant,
    SearchConstraints,
    TimeRange,
)

logger = logging.getLogger(__name__)


class FreeSlotCalculator:
    """
    Calculates the time ranges in which every participant is free.

    Algorithm:
    1. Validate each participant's schedules and clip them to the search window
    2. For each participant, invert busy time into free time per allowed workday
    3. Intersect the free lists of all participants (two-pointer sweep)
    4. Filter by minimum duration
    5. Return complete blocks (not split into smaller chunks), sorted

    The calculator keeps no state between calls, so one instance can serve
    concurrent queries.
    """

    def find_free_slots(
        self,
        participants: Sequence[Participant],
        constraints: SearchConstraints,
    ) -> FreeSlotResult:
        """
        Find all free slots shared by the given participants.

        Args:
            participants: Participants with their raw schedule entries
            constraints: Validated search constraints

        Returns:
            FreeSlotResult with the slots sorted by start time

        Raises:
            InvalidInterval: If any schedule entry does not start before it ends
        """
        # Step 1: validate everything before computing anything
        busy_by_participant = [
            self.extract_busy_intervals(participant, constraints)
            for participant in participants
        ]

        if not participants:
            return self.assemble_result(0, constraints, [])

        # Step 2: free time per participant inside the workday envelope
        workdays = constraints.workday_windows()
        free_lists = [
            self.build_free_intervals(busy, workdays)
            for busy in busy_by_participant
        ]

        # Step 3: common free time
        common = self.intersect_all(free_lists)

        # Step 4 + 5: filter, package, sort
        slots = self.to_free_slots(common, constraints)

        logger.debug(
            "%d participant(s), %d workday(s), %d common range(s), %d slot(s) >= %d min",
            len(participants),
            len(workdays),
            len(common),
            len(slots),
            constraints.min_duration_minutes,
        )

        return self.assemble_result(len(participants), constraints, slots)

    def extract_busy_intervals(
        self,
        participant: Participant,
        constraints: SearchConstraints,
    ) -> List[BusyInterval]:
        """
        Turn a participant's raw schedule into merged busy intervals clipped
        to the search window.

        Raises:
            InvalidInterval: If any entry has start >= end, wherever it lies
        """
        window = constraints.window()
        ranges: List[TimeRange] = []

        for entry in participant.schedules:
            time_range = entry.to_time_range(constraints.timezone).to_utc()
            clipped = clip_range(time_range, window)
            if clipped is not None:
                ranges.append(clipped)

        return [
            BusyInterval(participant_id=participant.id, time_range=merged)
            for merged in merge_ranges(ranges)
        ]

    def build_free_intervals(
        self,
        busy_intervals: List[BusyInterval],
        workdays: List[TimeRange],
    ) -> List[TimeRange]:
        """
        Convert busy times to free times within the workday windows.

        ``busy_intervals`` must be sorted and disjoint (as produced by
        ``extract_busy_intervals``) and ``workdays`` sorted ascending. A busy
        interval spanning several days is clipped against each day on its own.
        """
        busy_ranges = [busy.time_range for busy in busy_intervals]
        free_times: List[TimeRange] = []
        index = 0

        for workday in workdays:
            # Busy ranges are disjoint and sorted, so their ends ascend too
            while index < len(busy_ranges) and busy_ranges[index].end <= workday.start:
                index += 1

            overlapping: List[TimeRange] = []
            cursor = index
            while cursor < len(busy_ranges) and busy_ranges[cursor].start < workday.end:
                overlapping.append(busy_ranges[cursor])
                cursor += 1

            free_times.extend(subtract_ranges(workday, overlapping))

        return free_times

    def intersect_all(self, free_lists: List[List[TimeRange]]) -> List[TimeRange]:
        """
        Calculate the intersection of free times across all participants.

        Only times when ALL participants are free will be returned.
        """
        if not free_lists:
            return []

        result = free_lists[0]

        for free_times in free_lists[1:]:
            result = intersect_range_lists(result, free_times)

            # Early exit if no common time
            if not result:
                return []

        return result

    def to_free_slots(
        self,
        ranges: List[TimeRange],
        constraints: SearchConstraints,
    ) -> List[FreeSlot]:
        """Drop ranges shorter than the minimum duration and package the rest."""
        min_seconds = constraints.min_duration_minutes * 60

        slots = [
            FreeSlot.from_time_range(time_range, constraints.timezone)
            for time_range in ranges
            if time_range.duration_seconds() >= min_seconds
        ]

        return sorted(slots, key=lambda slot: slot.start.timestamp())

    @staticmethod
    def assemble_result(
        participant_count: int,
        constraints: SearchConstraints,
        slots: List[FreeSlot],
    ) -> FreeSlotResult:
        return FreeSlotResult(
            participant_count=participant_count,
            constraints=constraints,
            free_slots=slots,
        )
