"""
Domain models for appointments, duration history and auxiliary hours.

All times of day are expressed as minutes from midnight. Dates are pendulum
``Date`` objects so they can be formatted and compared without any timezone
arithmetic.
"""

import math
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import Date

from .exceptions import InvalidInputError

SLOT_GRID_MINUTES = 15
MINUTES_PER_DAY = 24 * 60


def round_to_grid(minutes: float) -> int:
    """Round to the nearest 15-minute grid point, halves rounding up."""
    return int(math.floor(minutes / SLOT_GRID_MINUTES + 0.5)) * SLOT_GRID_MINUTES


def ceil_to_grid(minutes: float) -> int:
    """Round up to the next 15-minute grid point."""
    return int(math.ceil(minutes / SLOT_GRID_MINUTES)) * SLOT_GRID_MINUTES


def parse_time_of_day(value: str) -> int:
    """
    Parse a "HH:MM" or "HH:MM:SS" string into minutes from midnight.

    Seconds are accepted for compatibility with database time columns but
    ignored. "24:00" is allowed so that a booking can end at midnight.

    Raises:
        InvalidInputError: If the string is not a valid time of day
    """
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidInputError(f"Invalid time of day '{value}': expected HH:MM")

    hours, minutes = int(parts[0]), int(parts[1])
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise InvalidInputError(f"Invalid time of day '{value}': out of range")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes from midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: Any) -> Date:
    """
    Coerce a "YYYY-MM-DD" string or a date/datetime into a pendulum Date.

    Raises:
        InvalidInputError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date_type):
        return pendulum.date(value.year, value.month, value.day)

    try:
        return pendulum.from_format(str(value).strip(), "YYYY-MM-DD").date()
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date '{value}': expected YYYY-MM-DD") from exc


@dataclass(frozen=True)
class AppointmentInterval:
    """
    An existing or prospective booking on a single day.

    Invariant: 0 <= start <= end <= 24:00.
    """
    date: Date
    start: int
    end: int
    is_finalized: bool = False
    id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "date", parse_date(self.date))
        if not 0 <= self.start <= MINUTES_PER_DAY or not 0 <= self.end <= MINUTES_PER_DAY:
            raise InvalidInputError(
                f"Appointment times must lie within the day, got {self.start}-{self.end}"
            )
        if self.end < self.start:
            raise InvalidInputError(
                f"Appointment end {format_minutes(self.end)} is before "
                f"start {format_minutes(self.start)}"
            )

    @classmethod
    def from_strings(
        cls,
        date: Any,
        start: str,
        end: str,
        is_finalized: bool = False,
        id: Optional[int] = None
    ) -> "AppointmentInterval":
        """Build an interval from a date and two "HH:MM" strings."""
        return cls(
            date=parse_date(date),
            start=parse_time_of_day(start),
            end=parse_time_of_day(end),
            is_finalized=is_finalized,
            id=id
        )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.date.to_date_string()} {format_minutes(self.start)} - {format_minutes(self.end)}"


@dataclass(frozen=True)
class BusinessHours:
    """
    Bookable window of a single working day.

    ``fallback_start`` is proposed when nothing fits, or when the day is
    still empty.
    """
    start: int = 8 * 60
    end: int = 21 * 60
    fallback_start: int = 9 * 60

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise InvalidInputError(
                f"Business hours must open before they close, got "
                f"{format_minutes(self.start)}-{format_minutes(self.end)}"
            )
        if self.fallback_start % SLOT_GRID_MINUTES:
            raise InvalidInputError(
                f"Fallback start {format_minutes(self.fallback_start)} is not on the 15-minute grid"
            )

    def duration_minutes(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class LineItem:
    """A (subject, service kind) pair selected for a prospective appointment."""
    subject: str
    service_kind: str


@dataclass(frozen=True)
class DurationSample:
    """One observed duration of a past appointment."""
    duration: float
    date: Optional[Date] = None

    def __post_init__(self):
        if self.duration < 0:
            raise InvalidInputError(f"Duration sample must not be negative, got {self.duration}")


@dataclass
class ServiceDurationHistory:
    """
    Past durations for one service kind, most recent first.
    """
    samples: List[DurationSample] = field(default_factory=list)
    standard_duration: Optional[int] = None

    def __post_init__(self):
        if self.standard_duration is not None and self.standard_duration < 0:
            raise InvalidInputError(
                f"Standard duration must not be negative, got {self.standard_duration}"
            )

    @classmethod
    def from_durations(
        cls,
        durations: List[float],
        standard_duration: Optional[int] = None
    ) -> "ServiceDurationHistory":
        """Build a history from bare durations ordered most recent first."""
        return cls(
            samples=[DurationSample(duration=d) for d in durations],
            standard_duration=standard_duration
        )

    def durations(self) -> List[float]:
        return [sample.duration for sample in self.samples]


class AuxiliaryKind(str, Enum):
    """Kinds of derived bookkeeping hours kept next to the appointments."""
    TRAVEL = "travel"
    CLEANING = "cleaning"

    def describe(self, date: Date) -> str:
        """Human-readable description for a record of this kind on a date."""
        day = date.format("dddd, MMMM D")
        if self is AuxiliaryKind.TRAVEL:
            return f"Travel time for appointments on {day}"
        return f"Cleaning time for {day}"


@dataclass(frozen=True)
class AuxiliaryHourRecord:
    """
    A derived Travel or Cleaning entry tied to a date.

    Finalized records have been exported with an invoice and are never
    touched again.
    """
    id: Optional[int]
    date: Date
    kind: AuxiliaryKind
    duration_minutes: int
    is_finalized: bool = False
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "kind", AuxiliaryKind(self.kind))
        if self.duration_minutes < 0:
            raise InvalidInputError(
                f"Auxiliary duration must not be negative, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class TravelTimeEntry:
    """
    Expected one-way travel minutes for a weekday (0=Monday) and hour.
    """
    weekday: int
    hour: int
    minutes: int

    def __post_init__(self):
        if not 0 <= self.weekday <= 6:
            raise InvalidInputError(f"Weekday must be between 0 and 6, got {self.weekday}")
        if not 0 <= self.hour <= 23:
            raise InvalidInputError(f"Hour must be between 0 and 23, got {self.hour}")
        if self.minutes < 0:
            raise InvalidInputError(f"Travel minutes must not be negative, got {self.minutes}")


@dataclass
class KindTally:
    """Per-kind counter used in reconciliation summaries."""
    travel: int = 0
    cleaning: int = 0

    def bump(self, kind: AuxiliaryKind, count: int = 1) -> None:
        setattr(self, kind.value, self.get(kind) + count)

    def get(self, kind: AuxiliaryKind) -> int:
        return getattr(self, kind.value)

    @property
    def total(self) -> int:
        return self.travel + self.cleaning


@dataclass
class ReconcileSummary:
    """
    Outcome of one reconciliation run.

    A non-empty ``errors`` list means the run converged only partially and
    the same range should be reconciled again.
    """
    added: KindTally = field(default_factory=KindTally)
    updated: KindTally = field(default_factory=KindTally)
    removed: KindTally = field(default_factory=KindTally)
    processed_dates: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added.total or self.updated.total or self.removed.total)

    @property
    def converged(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": {"travel": self.added.travel, "cleaning": self.added.cleaning},
            "updated": {"travel": self.updated.travel, "cleaning": self.updated.cleaning},
            "removed": {"travel": self.removed.travel, "cleaning": self.removed.cleaning},
            "processed_dates": self.processed_dates,
            "errors": list(self.errors),
        }
