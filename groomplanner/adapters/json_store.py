"""
Booking store persisted in a local JSON file.

File format:
{
    "appointments": [
        {"id": 1, "date": "2024-11-25", "start": "09:00", "end": "10:30", "finalized": false}
    ],
    "auxiliary_hours": [
        {"id": 1, "date": "2024-11-25", "kind": "travel", "duration": 80,
         "finalized": false, "description": "..."}
    ],
    "travel_times": [
        {"weekday": 0, "hour": 9, "minutes": 65}
    ]
}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..domain.exceptions import InvalidInputError, StorageError
from ..domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    TravelTimeEntry,
    format_minutes,
)
from .memory_store import InMemoryStore

logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """
    In-memory store that loads from and saves back to a JSON file.

    A missing file is treated as an empty store; it is created on the first
    write. Every write rewrites the whole file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        data = self._load(self.path)

        try:
            appointments = [self._appointment_from_json(item) for item in data.get("appointments", [])]
            records = [self._record_from_json(item) for item in data.get("auxiliary_hours", [])]
            travel_times = [
                TravelTimeEntry(weekday=item["weekday"], hour=item["hour"], minutes=item["minutes"])
                for item in data.get("travel_times", [])
            ]
        except (KeyError, TypeError, InvalidInputError) as exc:
            raise StorageError(f"Invalid record in {self.path}: {exc}") from exc

        super().__init__(
            appointments=appointments,
            auxiliary_hours=records,
            travel_times=travel_times
        )

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Data file %s does not exist yet, starting empty", path)
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read data file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StorageError(f"Data file {path} must contain a JSON object at the root level.")

        return data

    def save(self) -> None:
        """Write the current state back to the data file."""
        data = {
            "appointments": [self._appointment_to_json(a) for a in self.all_appointments()],
            "auxiliary_hours": [self._record_to_json(r) for r in self.all_auxiliary_hours()],
            "travel_times": [
                {"weekday": e.weekday, "hour": e.hour, "minutes": e.minutes}
                for e in self.travel_times.entries()
            ],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as exc:
            raise StorageError(f"Could not write data file {self.path}: {exc}") from exc

    def _changed(self) -> None:
        self.save()

    @staticmethod
    def _appointment_from_json(item: Dict[str, Any]) -> AppointmentInterval:
        return AppointmentInterval.from_strings(
            item["date"],
            item["start"],
            item["end"],
            is_finalized=bool(item.get("finalized", False)),
            id=item.get("id")
        )

    @staticmethod
    def _appointment_to_json(appointment: AppointmentInterval) -> Dict[str, Any]:
        return {
            "id": appointment.id,
            "date": appointment.date.to_date_string(),
            "start": format_minutes(appointment.start),
            "end": format_minutes(appointment.end),
            "finalized": appointment.is_finalized,
        }

    @staticmethod
    def _record_from_json(item: Dict[str, Any]) -> AuxiliaryHourRecord:
        try:
            return AuxiliaryHourRecord(
                id=item.get("id"),
                date=item["date"],
                kind=item["kind"],
                duration_minutes=int(item["duration"]),
                is_finalized=bool(item.get("finalized", False)),
                description=item.get("description", "")
            )
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

    @staticmethod
    def _record_to_json(record: AuxiliaryHourRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "date": record.date.to_date_string(),
            "kind": record.kind.value,
            "duration": record.duration_minutes,
            "finalized": record.is_finalized,
            "description": record.description,
        }
