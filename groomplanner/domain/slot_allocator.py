"""
Finds the best start time for a new appointment on an already booked day.

Pure domain logic - no API calls, no database, no I/O.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from .exceptions import InvalidInputError
from .models import (
    SLOT_GRID_MINUTES,
    AppointmentInterval,
    BusinessHours,
    ceil_to_grid,
    round_to_grid,
)

DEFAULT_WASTE_TOLERANCE_MINUTES = 30

IntervalLike = Union[AppointmentInterval, Sequence[int]]


@dataclass(frozen=True)
class _Candidate:
    start: int
    waste: int


class SlotAllocator:
    """
    Picks a start time for an appointment of a given length.

    Algorithm:
    1. Sort the day's bookings and clip them to business hours
    2. Collect the free gaps before, between and after the bookings
    3. Keep gaps that still fit once their start is moved onto the grid
    4. Prefer the gap that wastes the least time, unless an earlier gap
       wastes at most ``waste_tolerance_minutes`` more
    5. Otherwise append after the last booking, or fall back to the
       configured default start
    """

    def __init__(
        self,
        business_hours: BusinessHours | None = None,
        waste_tolerance_minutes: int = DEFAULT_WASTE_TOLERANCE_MINUTES
    ):
        if waste_tolerance_minutes < 0:
            raise InvalidInputError("waste_tolerance_minutes must not be negative")
        self.business_hours = business_hours or BusinessHours()
        self.waste_tolerance_minutes = waste_tolerance_minutes

    def best_slot(
        self,
        existing_intervals: Iterable[IntervalLike],
        required_minutes: int
    ) -> int:
        """
        Find the best start time for a new appointment.

        Args:
            existing_intervals: Bookings of the day, as AppointmentInterval
                objects or (start, end) pairs in minutes from midnight
            required_minutes: Length of the new appointment

        Returns:
            Start time in minutes from midnight, always on the 15-minute grid.
            The fallback start is not checked against the bookings; validate
            it with ``find_overlapping`` before committing.
        """
        required = self._required(required_minutes)
        bounds = self._normalize(existing_intervals)
        hours = self.business_hours

        if not bounds:
            return hours.fallback_start

        candidates: List[_Candidate] = []
        for gap_start, gap_end in self._find_gaps(bounds):
            gap_length = gap_end - gap_start
            if gap_length < required:
                continue

            usable_start = ceil_to_grid(gap_start)
            if gap_end - usable_start < required:
                continue

            candidates.append(_Candidate(start=usable_start, waste=gap_length - required))

        if candidates:
            return self._pick(candidates).start

        last_end = ceil_to_grid(max(max(end for _, end in bounds), hours.start))
        if last_end + required <= hours.end:
            return last_end

        return hours.fallback_start

    def propose(
        self,
        existing_intervals: Iterable[IntervalLike],
        required_minutes: int
    ) -> Tuple[int, int]:
        """
        Propose a (start, end) pair, with the end clipped to closing time.
        """
        intervals = list(existing_intervals)
        required = self._required(required_minutes)
        start = self.best_slot(intervals, required)
        end = min(start + required, self.business_hours.end)
        return start, end

    def time_options(self) -> List[int]:
        """All grid start times from opening to closing time, inclusive."""
        hours = self.business_hours
        return list(range(ceil_to_grid(hours.start), hours.end + 1, SLOT_GRID_MINUTES))

    @staticmethod
    def snap_to_grid(minutes: int) -> int:
        """Snap a time of day to the nearest grid point."""
        return round_to_grid(minutes)

    @staticmethod
    def _required(required_minutes: int) -> int:
        if required_minutes <= 0:
            raise InvalidInputError(
                f"Required duration must be positive, got {required_minutes}"
            )
        return ceil_to_grid(required_minutes)

    @staticmethod
    def _normalize(existing_intervals: Iterable[IntervalLike]) -> List[Tuple[int, int]]:
        bounds: List[Tuple[int, int]] = []

        for interval in existing_intervals:
            if isinstance(interval, AppointmentInterval):
                start, end = interval.start, interval.end
            else:
                start, end = interval[0], interval[1]

            if end < start:
                raise InvalidInputError(f"Interval end {end} is before start {start}")
            bounds.append((start, end))

        return sorted(bounds)

    def _find_gaps(self, bounds: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
        """
        Subtract sorted bookings from business hours.

        Example:
        Hours: 08:00 - 21:00
        Bookings: [09:00-10:00, 09:30-12:00]
        Result: [08:00-09:00, 12:00-21:00]
        """
        hours = self.business_hours
        gaps: List[Tuple[int, int]] = []
        cursor = hours.start

        for start, end in bounds:
            clipped_start = max(start, hours.start)
            clipped_end = min(end, hours.end)
            if clipped_end <= clipped_start:
                continue

            if cursor < clipped_start:
                gaps.append((cursor, clipped_start))

            # Overlapping bookings must not reopen time already taken
            cursor = max(cursor, clipped_end)

        if cursor < hours.end:
            gaps.append((cursor, hours.end))

        return gaps

    def _pick(self, candidates: List[_Candidate]) -> _Candidate:
        # Candidates arrive in chronological order
        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.waste < best.waste - self.waste_tolerance_minutes:
                best = candidate
        return best


def best_slot(
    existing_intervals: Iterable[IntervalLike],
    required_minutes: int,
    day_start: int = 8 * 60,
    day_end: int = 21 * 60
) -> int:
    """Find the best start time with the default fallback and tolerance."""
    allocator = SlotAllocator(business_hours=BusinessHours(start=day_start, end=day_end))
    return allocator.best_slot(existing_intervals, required_minutes)
