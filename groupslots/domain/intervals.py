"""
Interval algebra over sorted lists of TimeRange objects.

All functions are pure. Unless stated otherwise, lists passed in are
expected to be sorted by start and pairwise disjoint, which is what
``merge_ranges`` produces.
"""

from typing import Iterable, List

from .models import TimeRange


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    Example: [09:00-10:00, 10:00-11:00, 10:30-12:00] -> [09:00-12:00]
    """
    sorted_ranges = sorted(ranges, key=lambda r: r.start)
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        # Overlapping or touching, no gap in between
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = TimeRange(start=last.start, end=current.end)
        else:
            merged.append(current)

    return merged


def clip_range(time_range: TimeRange, bounds: TimeRange) -> TimeRange | None:
    """
    Clip a time range to fit within bounds.
    Returns None if the range is completely outside bounds.
    """
    return time_range.intersect(bounds)


def subtract_ranges(block: TimeRange, busy_ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Subtract busy times from a block, yielding the free parts of the block.

    ``busy_ranges`` need not be sorted or clipped to the block.

    Example:
    Block: 09:00 - 17:00
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    free_ranges: List[TimeRange] = []
    current_start = block.start

    for busy in sorted(busy_ranges, key=lambda r: r.start):
        if busy.end <= block.start:
            continue
        if busy.start >= block.end:
            break

        if current_start < busy.start:
            free_ranges.append(TimeRange(start=current_start, end=busy.start))

        current_start = max(current_start, busy.end)
        if current_start >= block.end:
            return free_ranges

    if current_start < block.end:
        free_ranges.append(TimeRange(start=current_start, end=block.end))

    return free_ranges


def intersect_range_lists(first: List[TimeRange], second: List[TimeRange]) -> List[TimeRange]:
    """
    Intersect two sorted lists of disjoint ranges with a two-pointer sweep.

    Runs in O(len(first) + len(second)). The output is sorted and disjoint.
    """
    result: List[TimeRange] = []
    i = j = 0

    while i < len(first) and j < len(second):
        a = first[i]
        b = second[j]

        start = max(a.start, b.start)
        end = min(a.end, b.end)
        if start < end:
            result.append(TimeRange(start=start, end=end))

        # Advance whichever range finishes first
        if a.end <= b.end:
            i += 1
        else:
            j += 1

    return result
