"""
In-memory booking store, used by tests and as the base of the JSON file store.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from pendulum import Date

from ..domain.exceptions import FinalizedRecordError, RecordNotFoundError
from ..domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    TravelTimeEntry,
)
from ..services.travel_times import TravelTimeTable


class InMemoryStore:
    """
    Implements the booking store and travel time contracts in memory.

    Ids are assigned on insert when a record does not carry one. Finalized
    auxiliary records reject every write, mirroring the booking backend.
    """

    def __init__(
        self,
        appointments: Iterable[AppointmentInterval] = (),
        auxiliary_hours: Iterable[AuxiliaryHourRecord] = (),
        travel_times: Iterable[TravelTimeEntry] = ()
    ):
        self._appointments: Dict[int, AppointmentInterval] = {}
        self._records: Dict[int, AuxiliaryHourRecord] = {}
        self._next_appointment_id = 1
        self._next_record_id = 1
        self.travel_times = TravelTimeTable(travel_times)

        for appointment in appointments:
            self._insert_appointment(appointment)
        for record in auxiliary_hours:
            self._insert_record(record)

    # Booking store contract

    def list_appointments(self, date_from: Date, date_to: Date) -> List[AppointmentInterval]:
        return sorted(
            (a for a in self._appointments.values() if date_from <= a.date <= date_to),
            key=lambda a: (a.date, a.start, a.id)
        )

    def list_auxiliary_hours(self, date_from: Date, date_to: Date) -> List[AuxiliaryHourRecord]:
        return sorted(
            (r for r in self._records.values() if date_from <= r.date <= date_to),
            key=lambda r: (r.date, r.id)
        )

    def create_auxiliary_hour(
        self,
        date: Date,
        kind: AuxiliaryKind,
        duration_minutes: int,
        description: str
    ) -> AuxiliaryHourRecord:
        record = self._insert_record(
            AuxiliaryHourRecord(
                id=None,
                date=date,
                kind=kind,
                duration_minutes=duration_minutes,
                is_finalized=False,
                description=description
            )
        )
        self._changed()
        return record

    def update_auxiliary_hour(
        self,
        record_id: int,
        duration_minutes: int,
        description: str
    ) -> AuxiliaryHourRecord:
        record = self._writable_record(record_id, "updated")
        updated = replace(record, duration_minutes=duration_minutes, description=description)
        self._records[record_id] = updated
        self._changed()
        return updated

    def delete_auxiliary_hour(self, record_id: int) -> None:
        self._writable_record(record_id, "deleted")
        del self._records[record_id]
        self._changed()

    def lookup_travel_minutes(self, weekday: int, hour: int) -> Optional[int]:
        return self.travel_times.lookup_travel_minutes(weekday, hour)

    # Helpers for the booking side

    def add_appointment(self, appointment: AppointmentInterval) -> AppointmentInterval:
        stored = self._insert_appointment(appointment)
        self._changed()
        return stored

    def delete_appointment(self, appointment_id: int) -> None:
        if appointment_id not in self._appointments:
            raise RecordNotFoundError(f"Appointment {appointment_id} does not exist")
        del self._appointments[appointment_id]
        self._changed()

    def get_auxiliary_hour(self, record_id: int) -> AuxiliaryHourRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(f"Auxiliary hour {record_id} does not exist") from None

    def all_appointments(self) -> List[AppointmentInterval]:
        return sorted(self._appointments.values(), key=lambda a: (a.date, a.start, a.id))

    def all_auxiliary_hours(self) -> List[AuxiliaryHourRecord]:
        return sorted(self._records.values(), key=lambda r: (r.date, r.id))

    def _writable_record(self, record_id: int, action: str) -> AuxiliaryHourRecord:
        record = self.get_auxiliary_hour(record_id)
        if record.is_finalized:
            raise FinalizedRecordError(
                f"Auxiliary hour {record_id} is finalized and cannot be {action}"
            )
        return record

    def _insert_appointment(self, appointment: AppointmentInterval) -> AppointmentInterval:
        if appointment.id is None:
            appointment = replace(appointment, id=self._next_appointment_id)
        self._next_appointment_id = max(self._next_appointment_id, appointment.id + 1)
        self._appointments[appointment.id] = appointment
        return appointment

    def _insert_record(self, record: AuxiliaryHourRecord) -> AuxiliaryHourRecord:
        if record.id is None:
            record = replace(record, id=self._next_record_id)
        self._next_record_id = max(self._next_record_id, record.id + 1)
        self._records[record.id] = record
        return record

    def _changed(self) -> None:
        """Hook called after every write; persistent stores override it."""
