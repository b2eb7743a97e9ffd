"""
Domain layer - Pure business logic, no I/O.
"""

from .duration_estimator import DurationEstimator, estimate_duration
from .models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    BusinessHours,
    DurationSample,
    LineItem,
    ReconcileSummary,
    ServiceDurationHistory,
    TravelTimeEntry,
)
from .overlap import find_overlapping, overlaps
from .slot_allocator import SlotAllocator, best_slot

__all__ = [
    "AppointmentInterval",
    "AuxiliaryHourRecord",
    "AuxiliaryKind",
    "BusinessHours",
    "DurationEstimator",
    "DurationSample",
    "LineItem",
    "ReconcileSummary",
    "ServiceDurationHistory",
    "SlotAllocator",
    "TravelTimeEntry",
    "best_slot",
    "estimate_duration",
    "find_overlapping",
    "overlaps",
]
