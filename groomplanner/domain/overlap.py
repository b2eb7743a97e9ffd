"""
Overlap checks between half-open time intervals.
"""

from typing import Iterable, List

from .models import AppointmentInterval


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """
    Check whether [a_start, a_end) and [b_start, b_end) intersect.

    Intervals that only touch (a_end == b_start) do not overlap.
    """
    return a_start < b_end and a_end > b_start


def find_overlapping(
    intervals: Iterable[AppointmentInterval],
    start: int,
    end: int
) -> List[AppointmentInterval]:
    """
    Return the bookings that collide with a candidate [start, end) slot.

    Used to validate manual adjustments and the fallback start time returned
    by the slot allocator before an appointment is committed.
    """
    if end <= start:
        return []

    return [
        interval for interval in intervals
        if overlaps(start, end, interval.start, interval.end)
    ]
