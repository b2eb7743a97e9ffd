"""
Estimates how long a prospective appointment will take.

The estimate is built per line item from the two most recent observed
durations of that service for that dog, falling back to the service's
standard duration and finally to a fixed default. Pure logic, no I/O.
"""

import logging
from typing import Callable, List, Optional, Sequence

from .exceptions import InvalidInputError
from .models import LineItem, ServiceDurationHistory, round_to_grid

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_MINUTES = 60
DEFAULT_SERVICE_MINUTES = 30

HistoryLookup = Callable[[LineItem], Optional[ServiceDurationHistory]]
StandardDurationLookup = Callable[[str], Optional[int]]


class DurationEstimator:
    """
    Combines per-line-item duration estimates into one grid-aligned total.

    Rules per line item:
    1. Two or more samples: reconcile the two most recent (see
       ``_estimate_from_history``)
    2. One sample: that sample rounded to the grid
    3. No samples: the standard duration rounded to the grid, or the default

    The total is rounded to the grid and never drops below the minimum.
    """

    def __init__(
        self,
        minimum_minutes: int = DEFAULT_MINIMUM_MINUTES,
        default_service_minutes: int = DEFAULT_SERVICE_MINUTES
    ):
        if minimum_minutes <= 0 or default_service_minutes <= 0:
            raise InvalidInputError("Minimum and default durations must be positive")
        self.minimum_minutes = round_to_grid(minimum_minutes)
        self.default_service_minutes = default_service_minutes

    def estimate(
        self,
        line_items: Sequence[LineItem],
        history_of: HistoryLookup,
        standard_duration_of: Optional[StandardDurationLookup] = None
    ) -> int:
        """
        Estimate the total duration of an appointment.

        Args:
            line_items: Selected (subject, service kind) pairs
            history_of: Returns the duration history for a line item, or None
            standard_duration_of: Returns the configured standard duration of a
                service kind, or None

        Returns:
            Estimated duration in minutes, a multiple of 15 and at least the
            configured minimum
        """
        total = sum(
            self.estimate_line_item(item, history_of(item), standard_duration_of)
            for item in line_items
        )

        rounded = round_to_grid(total)
        if rounded < self.minimum_minutes:
            logger.debug("Estimate %s below minimum, using %s", rounded, self.minimum_minutes)
            return self.minimum_minutes

        return rounded

    def estimate_line_item(
        self,
        item: LineItem,
        history: Optional[ServiceDurationHistory],
        standard_duration_of: Optional[StandardDurationLookup] = None
    ) -> int:
        """Estimate the duration of a single line item."""
        durations = history.durations() if history else []
        for duration in durations:
            if duration < 0:
                raise InvalidInputError(
                    f"Negative duration {duration} in history of {item.service_kind}"
                )

        if len(durations) >= 2:
            return self._estimate_from_history(durations)

        if len(durations) == 1:
            return round_to_grid(durations[0])

        standard = self._standard_duration(item, history, standard_duration_of)
        if standard:
            return round_to_grid(standard)

        return self.default_service_minutes

    def _standard_duration(
        self,
        item: LineItem,
        history: Optional[ServiceDurationHistory],
        standard_duration_of: Optional[StandardDurationLookup]
    ) -> Optional[int]:
        standard = standard_duration_of(item.service_kind) if standard_duration_of else None
        if standard is None and history is not None:
            standard = history.standard_duration

        if standard is not None and standard < 0:
            raise InvalidInputError(
                f"Negative standard duration {standard} for {item.service_kind}"
            )
        return standard

    @staticmethod
    def _estimate_from_history(durations: List[float]) -> int:
        """
        Reconcile the two most recent samples into one grid value.

        Example:
        Samples: [52, 70] -> intervals 45 and 75, average 61
        61 is not near a grid point and the newer sample is shorter, so
        without a third sample the interval closest to 61 wins: 75.
        """
        d1, d2 = durations[0], durations[1]
        i1, i2 = round_to_grid(d1), round_to_grid(d2)

        if i1 == i2:
            return i1

        avg = (d1 + d2) / 2
        nearest = round_to_grid(avg)
        if abs(avg - nearest) < 1:
            # Samples straddle a shared grid point
            return nearest

        if d1 > d2:
            return i1

        if len(durations) > 2:
            i3 = round_to_grid(durations[2])
            if i3 == i1:
                return i1
            if i3 == i2:
                return i2

        higher, lower = max(i1, i2), min(i1, i2)
        if abs(avg - higher) <= abs(avg - lower):
            return higher
        return lower


def estimate_duration(
    line_items: Sequence[LineItem],
    history_of: HistoryLookup,
    standard_duration_of: Optional[StandardDurationLookup] = None
) -> int:
    """Estimate an appointment duration with the default policy values."""
    return DurationEstimator().estimate(line_items, history_of, standard_duration_of)
