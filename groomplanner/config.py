"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BusinessHours, TravelTimeEntry


class SchedulingConfig(BaseModel):
    """Business hours and slot selection policy."""
    day_start_hour: int = 8
    day_end_hour: int = 21
    fallback_start_hour: int = 9
    waste_tolerance_minutes: int = 30

    @field_validator("day_start_hour", "day_end_hour", "fallback_start_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("waste_tolerance_minutes")
    @classmethod
    def validate_tolerance(cls, value: int) -> int:
        if value < 0:
            raise ValueError("waste_tolerance_minutes must not be negative")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "SchedulingConfig":
        """Ensure the business day opens before it closes."""
        if self.day_end_hour <= self.day_start_hour:
            raise ValueError("day_end_hour must be later than day_start_hour")
        return self

    def get_business_hours(self) -> BusinessHours:
        """Get the business day in minutes from midnight."""
        return BusinessHours(
            start=self.day_start_hour * 60,
            end=self.day_end_hour * 60,
            fallback_start=self.fallback_start_hour * 60
        )


class EstimationConfig(BaseModel):
    """Duration estimate floor and per-service default."""
    minimum_minutes: int = 60
    default_service_minutes: int = 30

    @field_validator("minimum_minutes", "default_service_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("durations must be greater than zero")
        return value


class AuxiliaryConfig(BaseModel):
    """Travel and cleaning bookkeeping policy."""
    travel_fallback_minutes: int = 80
    cleaning_minutes: int = 40
    travel_code: str = "Reis"  # Hour-type codes used by the booking backend
    cleaning_code: str = "sch"

    @field_validator("travel_fallback_minutes", "cleaning_minutes")
    @classmethod
    def validate_minutes(cls, value: int) -> int:
        if value < 0:
            raise ValueError("auxiliary minutes must not be negative")
        return value


class TravelTimeConfig(BaseModel):
    """Travel time table entry (weekday 0=Monday)."""
    weekday: int = Field(ge=0, le=6)
    hour: int = Field(ge=0, le=23)
    minutes: int = Field(ge=0)

    def to_entry(self) -> TravelTimeEntry:
        return TravelTimeEntry(weekday=self.weekday, hour=self.hour, minutes=self.minutes)


class AppConfig(BaseModel):
    """Application configuration."""
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    estimation: EstimationConfig = Field(default_factory=EstimationConfig)
    auxiliary: AuxiliaryConfig = Field(default_factory=AuxiliaryConfig)
    data_file: Path = Path("groomplanner_data.json")
    api_url: Optional[str] = None  # Booking backend, e.g. http://localhost:3000/api/v1
    api_timeout: int = 30
    travel_times: List[TravelTimeConfig] = Field(default_factory=list)

    @field_validator("api_timeout")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("api_timeout must be greater than zero")
        return value

    @field_validator("travel_times")
    @classmethod
    def validate_travel_times(cls, value: List[TravelTimeConfig]) -> List[TravelTimeConfig]:
        """Ensure every (weekday, hour) slot is configured at most once."""
        seen: set[tuple[int, int]] = set()
        for entry in value:
            key = (entry.weekday, entry.hour)
            if key in seen:
                raise ValueError(
                    f"Duplicate travel time for weekday {entry.weekday} hour {entry.hour}"
                )
            seen.add(key)
        return value

    def travel_time_entries(self) -> List[TravelTimeEntry]:
        return [entry.to_entry() for entry in self.travel_times]

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_file: Optional[Path] = None) -> AppConfig:
    """
    Load an explicit config file, or the default one if it exists.

    Without an explicit file and without a default config.yaml the built-in
    defaults are used.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
