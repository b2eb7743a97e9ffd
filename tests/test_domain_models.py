"""
Tests for domain models and time helpers.
"""

import pendulum
import pytest

from groomplanner.domain.exceptions import InvalidInputError
from groomplanner.domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    BusinessHours,
    KindTally,
    ReconcileSummary,
    ServiceDurationHistory,
    TravelTimeEntry,
    ceil_to_grid,
    format_minutes,
    parse_date,
    parse_time_of_day,
    round_to_grid,
)


class TestTimeHelpers:
    """Tests for parsing and rounding helpers."""

    def test_parse_time_of_day(self):
        """Test HH:MM and HH:MM:SS parsing."""
        assert parse_time_of_day("09:30") == 570
        assert parse_time_of_day("21:00:00") == 1260
        assert parse_time_of_day("24:00") == 1440

    @pytest.mark.parametrize("value", ["9", "9:60", "25:00", "24:15", "ab:cd", ""])
    def test_parse_time_of_day_rejects_malformed(self, value):
        """Test that malformed times raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            parse_time_of_day(value)

    def test_format_minutes(self):
        assert format_minutes(570) == "09:30"
        assert format_minutes(0) == "00:00"

    def test_round_to_grid_rounds_halves_up(self):
        """Test that 37.5 minutes rounds up to 45, not to the even 30."""
        assert round_to_grid(37.5) == 45
        assert round_to_grid(22.4) == 15
        assert round_to_grid(50) == 45

    def test_ceil_to_grid(self):
        assert ceil_to_grid(545) == 555
        assert ceil_to_grid(540) == 540

    def test_parse_date(self):
        """Test parsing strings and coercing stdlib dates."""
        from datetime import date

        assert parse_date("2024-11-25") == pendulum.date(2024, 11, 25)
        assert isinstance(parse_date(date(2024, 11, 25)), pendulum.Date)

        with pytest.raises(InvalidInputError):
            parse_date("25.11.2024")


class TestAppointmentInterval:
    """Tests for AppointmentInterval model."""

    def test_create_from_strings(self):
        """Test creating an interval from time strings."""
        interval = AppointmentInterval.from_strings("2024-11-25", "09:00", "10:30")

        assert interval.date == pendulum.date(2024, 11, 25)
        assert interval.start == 540
        assert interval.end == 630
        assert interval.duration_minutes() == 90
        assert not interval.is_finalized

    def test_end_before_start_raises_error(self):
        """Test that an inverted interval raises InvalidInputError."""
        with pytest.raises(InvalidInputError, match="before start"):
            AppointmentInterval.from_strings("2024-11-25", "10:00", "09:00")

    def test_str(self):
        interval = AppointmentInterval.from_strings("2024-11-25", "09:00", "10:30")
        assert str(interval) == "2024-11-25 09:00 - 10:30"


class TestAuxiliaryModels:
    """Tests for auxiliary hour records and summaries."""

    def test_describe(self):
        """Test human-readable descriptions per kind."""
        monday = pendulum.date(2024, 11, 25)

        assert AuxiliaryKind.TRAVEL.describe(monday) == "Travel time for appointments on Monday, November 25"
        assert AuxiliaryKind.CLEANING.describe(monday) == "Cleaning time for Monday, November 25"

    def test_record_coerces_kind_and_date(self):
        record = AuxiliaryHourRecord(id=1, date="2024-11-25", kind="cleaning", duration_minutes=40)

        assert record.kind is AuxiliaryKind.CLEANING
        assert record.date == pendulum.date(2024, 11, 25)

    def test_record_rejects_negative_duration(self):
        with pytest.raises(InvalidInputError):
            AuxiliaryHourRecord(id=1, date="2024-11-25", kind="travel", duration_minutes=-5)

    def test_kind_tally(self):
        tally = KindTally()
        tally.bump(AuxiliaryKind.TRAVEL)
        tally.bump(AuxiliaryKind.CLEANING, 2)

        assert tally.travel == 1
        assert tally.cleaning == 2
        assert tally.total == 3

    def test_summary_to_dict(self):
        summary = ReconcileSummary()
        summary.removed.bump(AuxiliaryKind.TRAVEL)

        data = summary.to_dict()

        assert data["removed"] == {"travel": 1, "cleaning": 0}
        assert summary.has_changes
        assert summary.converged


class TestValidation:
    """Tests for model invariants."""

    def test_business_hours_must_open_before_closing(self):
        with pytest.raises(InvalidInputError):
            BusinessHours(start=1260, end=480)

    def test_business_hours_fallback_on_grid(self):
        with pytest.raises(InvalidInputError):
            BusinessHours(fallback_start=545)

    def test_travel_time_entry_ranges(self):
        with pytest.raises(InvalidInputError):
            TravelTimeEntry(weekday=7, hour=9, minutes=60)
        with pytest.raises(InvalidInputError):
            TravelTimeEntry(weekday=0, hour=24, minutes=60)

    def test_negative_history_rejected(self):
        with pytest.raises(InvalidInputError):
            ServiceDurationHistory.from_durations([60, -5])
        with pytest.raises(InvalidInputError):
            ServiceDurationHistory(standard_duration=-30)
