"""
Shared fixtures for the groomplanner tests.

Reference day: Monday 2024-11-25 (weekday 0).
"""

import pendulum
import pytest

from groomplanner.adapters.memory_store import InMemoryStore
from groomplanner.domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    TravelTimeEntry,
)

MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)


def appointment(date, start, end, finalized=False):
    return AppointmentInterval.from_strings(date, start, end, is_finalized=finalized)


def record(date, kind, duration, finalized=False, id=None):
    return AuxiliaryHourRecord(
        id=id,
        date=date,
        kind=kind,
        duration_minutes=duration,
        is_finalized=finalized,
        description=""
    )


@pytest.fixture
def travel_entries():
    return [
        TravelTimeEntry(weekday=0, hour=9, minutes=65),
        TravelTimeEntry(weekday=1, hour=10, minutes=55),
    ]


@pytest.fixture
def store(travel_entries):
    return InMemoryStore(travel_times=travel_entries)


TRAVEL = AuxiliaryKind.TRAVEL
CLEANING = AuxiliaryKind.CLEANING
