"""
Tests for the in-memory and JSON file booking stores.
"""

import json

import pytest
from conftest import CLEANING, MONDAY, TRAVEL, TUESDAY, appointment, record

from groomplanner.adapters.json_store import JsonFileStore
from groomplanner.adapters.memory_store import InMemoryStore
from groomplanner.domain.exceptions import (
    FinalizedRecordError,
    RecordNotFoundError,
    StorageError,
)
from groomplanner.domain.models import TravelTimeEntry


class TestInMemoryStore:
    """Tests for InMemoryStore."""

    def test_lists_by_date_range(self):
        store = InMemoryStore(
            appointments=[
                appointment(TUESDAY, "09:00", "10:00"),
                appointment(MONDAY, "11:00", "12:00"),
                appointment(MONDAY, "08:00", "09:00"),
            ]
        )

        mondays = store.list_appointments(MONDAY, MONDAY)

        assert [a.start for a in mondays] == [480, 660]
        assert len(store.list_appointments(MONDAY, TUESDAY)) == 3

    def test_assigns_ids(self):
        store = InMemoryStore(auxiliary_hours=[record(MONDAY, TRAVEL, 80, id=5)])

        created = store.create_auxiliary_hour(MONDAY, CLEANING, 40, "Cleaning")

        assert created.id == 6
        assert not created.is_finalized
        assert store.get_auxiliary_hour(6).description == "Cleaning"

    def test_update_and_delete(self):
        store = InMemoryStore(auxiliary_hours=[record(MONDAY, TRAVEL, 80, id=1)])

        updated = store.update_auxiliary_hour(1, 65, "Travel")
        assert updated.duration_minutes == 65
        assert store.get_auxiliary_hour(1).description == "Travel"

        store.delete_auxiliary_hour(1)
        assert store.all_auxiliary_hours() == []

    def test_finalized_records_reject_writes(self):
        store = InMemoryStore(auxiliary_hours=[record(MONDAY, TRAVEL, 80, finalized=True, id=1)])

        with pytest.raises(FinalizedRecordError):
            store.update_auxiliary_hour(1, 65, "Travel")
        with pytest.raises(FinalizedRecordError):
            store.delete_auxiliary_hour(1)

        assert store.get_auxiliary_hour(1).duration_minutes == 80

    def test_unknown_record(self):
        store = InMemoryStore()

        with pytest.raises(RecordNotFoundError):
            store.delete_auxiliary_hour(42)
        with pytest.raises(RecordNotFoundError):
            store.delete_appointment(42)

    def test_finalized_error_is_storage_error(self):
        assert issubclass(FinalizedRecordError, StorageError)

    def test_travel_lookup(self, store):
        assert store.lookup_travel_minutes(0, 9) == 65
        assert store.lookup_travel_minutes(0, 10) is None


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        assert store.all_appointments() == []
        assert store.all_auxiliary_hours() == []
        assert len(store.travel_times) == 0

    def test_loads_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "appointments": [
                {"id": 3, "date": "2024-11-25", "start": "09:00", "end": "10:30", "finalized": True}
            ],
            "auxiliary_hours": [
                {"id": 7, "date": "2024-11-25", "kind": "cleaning", "duration": 40}
            ],
            "travel_times": [{"weekday": 0, "hour": 9, "minutes": 65}]
        }))

        store = JsonFileStore(path)

        [booking] = store.all_appointments()
        assert booking.id == 3
        assert booking.start == 540
        assert booking.end == 630
        assert booking.is_finalized
        assert store.get_auxiliary_hour(7).kind is CLEANING
        assert store.lookup_travel_minutes(0, 9) == 65

    def test_writes_are_saved(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        store = JsonFileStore(path)
        store.add_appointment(appointment(MONDAY, "09:00", "10:00"))
        store.travel_times.set(TravelTimeEntry(weekday=0, hour=9, minutes=65))
        store.create_auxiliary_hour(MONDAY, TRAVEL, 65, "Travel")

        data = json.loads(path.read_text())

        assert data["appointments"] == [
            {"id": 1, "date": "2024-11-25", "start": "09:00", "end": "10:00", "finalized": False}
        ]
        assert data["auxiliary_hours"][0]["kind"] == "travel"
        assert data["auxiliary_hours"][0]["duration"] == 65
        assert data["travel_times"] == [{"weekday": 0, "hour": 9, "minutes": 65}]

    def test_reload_round_trip(self, tmp_path):
        path = tmp_path / "data.json"
        store = JsonFileStore(path)
        store.create_auxiliary_hour(MONDAY, CLEANING, 40, "Cleaning")
        store.update_auxiliary_hour(1, 45, "Cleaning")

        reloaded = JsonFileStore(path)

        assert reloaded.get_auxiliary_hour(1).duration_minutes == 45
        assert reloaded.create_auxiliary_hour(MONDAY, TRAVEL, 80, "").id == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json")

        with pytest.raises(StorageError):
            JsonFileStore(path)

    def test_root_must_be_object(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[]")

        with pytest.raises(StorageError):
            JsonFileStore(path)

    @pytest.mark.parametrize("item", [
        {"id": 1, "date": "2024-11-25", "kind": "grooming", "duration": 40},
        {"id": 1, "date": "2024-11-25", "kind": "travel"},
        {"id": 1, "date": "25.11.2024", "kind": "travel", "duration": 40},
    ])
    def test_invalid_records(self, tmp_path, item):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"auxiliary_hours": [item]}))

        with pytest.raises(StorageError):
            JsonFileStore(path)
