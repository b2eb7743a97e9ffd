"""
Travel time lookup by weekday and hour of the first appointment.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..domain.models import TravelTimeEntry


class TravelTimeLookup(Protocol):
    """Protocol describing the travel time source needed by the reconciler."""

    def lookup_travel_minutes(self, weekday: int, hour: int) -> Optional[int]:
        """Return expected travel minutes, or None when no entry exists."""


class TravelTimeTable:
    """
    In-memory (weekday, hour) -> minutes table.

    Weekdays follow ``date.weekday()``: 0=Monday, 6=Sunday. Later entries
    for the same slot replace earlier ones.
    """

    def __init__(self, entries: Iterable[TravelTimeEntry] = ()) -> None:
        self._minutes: Dict[Tuple[int, int], int] = {}
        for entry in entries:
            self.set(entry)

    def set(self, entry: TravelTimeEntry) -> None:
        self._minutes[(entry.weekday, entry.hour)] = entry.minutes

    def lookup_travel_minutes(self, weekday: int, hour: int) -> Optional[int]:
        return self._minutes.get((weekday, hour))

    def entries(self) -> List[TravelTimeEntry]:
        """All entries ordered by weekday and hour."""
        return [
            TravelTimeEntry(weekday=weekday, hour=hour, minutes=minutes)
            for (weekday, hour), minutes in sorted(self._minutes.items())
        ]

    def __len__(self) -> int:
        return len(self._minutes)
