"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from groomplanner.config import AppConfig, SchedulingConfig, load_config
from groomplanner.domain.models import BusinessHours, TravelTimeEntry


class TestAppConfig:
    """Tests for AppConfig and its sections."""

    def test_defaults(self):
        config = AppConfig()

        assert config.scheduling.get_business_hours() == BusinessHours(start=480, end=1260, fallback_start=540)
        assert config.scheduling.waste_tolerance_minutes == 30
        assert config.estimation.minimum_minutes == 60
        assert config.auxiliary.travel_fallback_minutes == 80
        assert config.auxiliary.cleaning_minutes == 40
        assert config.api_url is None
        assert config.travel_time_entries() == []

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "scheduling:\n"
            "  day_start_hour: 9\n"
            "  day_end_hour: 18\n"
            "auxiliary:\n"
            "  cleaning_minutes: 30\n"
            "api_url: http://localhost:3000/api/v1\n"
            "travel_times:\n"
            "  - {weekday: 0, hour: 9, minutes: 65}\n"
        )

        config = AppConfig.load_from_yaml(path)

        assert config.scheduling.get_business_hours().start == 540
        assert config.scheduling.get_business_hours().end == 1080
        assert config.auxiliary.cleaning_minutes == 30
        assert config.api_url == "http://localhost:3000/api/v1"
        assert config.travel_time_entries() == [TravelTimeEntry(weekday=0, hour=9, minutes=65)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("scheduling: [unclosed\n")

        with pytest.raises(ValueError):
            AppConfig.load_from_yaml(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert AppConfig.load_from_yaml(path) == AppConfig()

    def test_load_config_explicit_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("estimation:\n  minimum_minutes: 45\n")

        assert load_config(path).estimation.minimum_minutes == 45


class TestValidation:
    """Tests for rejected configuration values."""

    def test_day_must_open_before_close(self):
        with pytest.raises(ValidationError):
            SchedulingConfig(day_start_hour=18, day_end_hour=9)

    def test_hour_out_of_range(self):
        with pytest.raises(ValidationError):
            SchedulingConfig(day_end_hour=25)

    def test_negative_tolerance(self):
        with pytest.raises(ValidationError):
            SchedulingConfig(waste_tolerance_minutes=-1)

    def test_non_positive_minimum(self):
        with pytest.raises(ValidationError):
            AppConfig(estimation={"minimum_minutes": 0})

    def test_negative_cleaning(self):
        with pytest.raises(ValidationError):
            AppConfig(auxiliary={"cleaning_minutes": -5})

    def test_travel_time_weekday_range(self):
        with pytest.raises(ValidationError):
            AppConfig(travel_times=[{"weekday": 7, "hour": 9, "minutes": 60}])

    def test_duplicate_travel_times(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            AppConfig(travel_times=[
                {"weekday": 0, "hour": 9, "minutes": 60},
                {"weekday": 0, "hour": 9, "minutes": 70},
            ])
