"""
Keeps derived travel and cleaning hours in sync with open appointments.

For every date in a range the reconciler compares the auxiliary hour records
the store currently holds against the records the date's open appointments
call for, and issues the creates, updates and deletes needed to converge.
Finalized records are filtered out before any write is planned, so a failing
store can never cause them to be modified.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol

from pendulum import Date

from ..domain.exceptions import InvalidInputError
from ..domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    ReconcileSummary,
    parse_date,
)
from .travel_times import TravelTimeLookup

logger = logging.getLogger(__name__)

DEFAULT_TRAVEL_FALLBACK_MINUTES = 80
DEFAULT_CLEANING_MINUTES = 40


class BookingStoreProtocol(Protocol):
    """Read/write contract of the booking subsystem used by the reconciler."""

    def list_appointments(self, date_from: Date, date_to: Date) -> List[AppointmentInterval]:
        """Return all appointments dated within the range, open or finalized."""

    def list_auxiliary_hours(self, date_from: Date, date_to: Date) -> List[AuxiliaryHourRecord]:
        """Return all auxiliary hour records dated within the range."""

    def create_auxiliary_hour(
        self,
        date: Date,
        kind: AuxiliaryKind,
        duration_minutes: int,
        description: str,
    ) -> AuxiliaryHourRecord:
        """Create a new, non-finalized record."""

    def update_auxiliary_hour(
        self,
        record_id: int,
        duration_minutes: int,
        description: str,
    ) -> AuxiliaryHourRecord:
        """Update a record; raises FinalizedRecordError for finalized records."""

    def delete_auxiliary_hour(self, record_id: int) -> None:
        """Delete a record; raises FinalizedRecordError for finalized records."""


class AuxiliaryHoursReconciler:
    """
    Diff-and-repair of travel and cleaning hours over a date range.

    Per date with open appointments, exactly one open record per kind is
    kept: travel minutes come from the travel time table for the weekday and
    the hour of the first open appointment, cleaning is a fixed duration.
    A missing entry or a failing lookup yields the travel fallback.
    Dates without open appointments lose all their open records.

    Runs on the same instance are serialized, so two callers sharing a
    reconciler cannot both create the record for a (date, kind).
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        travel_times: TravelTimeLookup,
        travel_fallback_minutes: int = DEFAULT_TRAVEL_FALLBACK_MINUTES,
        cleaning_minutes: int = DEFAULT_CLEANING_MINUTES,
    ) -> None:
        self._store = store
        self._travel_times = travel_times
        self.travel_fallback_minutes = travel_fallback_minutes
        self.cleaning_minutes = cleaning_minutes
        self._lock = threading.Lock()

    def reconcile(self, start_date: Any, end_date: Any) -> ReconcileSummary:
        """
        Reconcile all dates between start_date and end_date, inclusive.

        Args:
            start_date: First date, as a date or "YYYY-MM-DD" string
            end_date: Last date, as a date or "YYYY-MM-DD" string

        Returns:
            Summary of the changes made and of the errors met on the way

        Raises:
            InvalidInputError: If a date is malformed or the range is inverted
        """
        start = parse_date(start_date)
        end = parse_date(end_date)
        if start > end:
            raise InvalidInputError(f"Start date {start} is after end date {end}")

        with self._lock:
            return self._run(start, end)

    def _run(self, start: Date, end: Date) -> ReconcileSummary:
        summary = ReconcileSummary()
        logger.info("Reconciling auxiliary hours from %s to %s", start, end)

        try:
            appointments = self._store.list_appointments(start, end)
            records = self._store.list_auxiliary_hours(start, end)
        except Exception as exc:
            logger.warning("Could not load booking data: %s", exc)
            summary.errors.append(f"Failed to load booking data for {start} to {end}: {exc}")
            return summary

        appointments_by_date: Dict[Date, List[AppointmentInterval]] = defaultdict(list)
        for appointment in appointments:
            if start <= appointment.date <= end:
                appointments_by_date[appointment.date].append(appointment)

        records_by_date: Dict[Date, List[AuxiliaryHourRecord]] = defaultdict(list)
        for record in records:
            if start <= record.date <= end:
                records_by_date[record.date].append(record)

        for date in sorted(set(appointments_by_date) | set(records_by_date)):
            try:
                self._reconcile_date(
                    date,
                    appointments_by_date.get(date, []),
                    records_by_date.get(date, []),
                    summary,
                )
            except Exception as exc:
                logger.warning("Error processing date %s: %s", date, exc)
                summary.errors.append(f"Error processing date {date}: {exc}")

        logger.info(
            "Reconciliation finished: %s dates, %s added, %s updated, %s removed, %s errors",
            summary.processed_dates,
            summary.added.total,
            summary.updated.total,
            summary.removed.total,
            len(summary.errors),
        )
        return summary

    def _reconcile_date(
        self,
        date: Date,
        appointments: List[AppointmentInterval],
        records: List[AuxiliaryHourRecord],
        summary: ReconcileSummary,
    ) -> None:
        open_appointments = [a for a in appointments if not a.is_finalized]
        open_records = [r for r in records if not r.is_finalized]

        logger.debug(
            "%s: %s open of %s appointments, %s open of %s auxiliary records",
            date,
            len(open_appointments),
            len(appointments),
            len(open_records),
            len(records),
        )

        if not open_appointments:
            if open_records:
                self._remove_all(date, open_records, summary)
                summary.processed_dates += 1
            return

        for kind in AuxiliaryKind:
            existing = [r for r in open_records if r.kind is kind]
            try:
                desired = self._desired_minutes(kind, date, open_appointments)
                self._converge(date, kind, desired, existing, summary)
            except Exception as exc:
                logger.warning("Error with %s time on %s: %s", kind.value, date, exc)
                summary.errors.append(f"Error with {kind.value} time on {date}: {exc}")

        summary.processed_dates += 1

    def _desired_minutes(
        self,
        kind: AuxiliaryKind,
        date: Date,
        open_appointments: List[AppointmentInterval],
    ) -> int:
        if kind is AuxiliaryKind.CLEANING:
            return self.cleaning_minutes

        first = min(open_appointments, key=lambda a: a.start)
        weekday, hour = date.weekday(), first.start // 60
        try:
            minutes: Optional[int] = self._travel_times.lookup_travel_minutes(weekday, hour)
        except Exception as exc:
            logger.warning(
                "Travel time lookup failed for weekday %s hour %s, using %s minutes: %s",
                weekday,
                hour,
                self.travel_fallback_minutes,
                exc,
            )
            return self.travel_fallback_minutes

        if minutes is None:
            logger.debug(
                "No travel time for weekday %s hour %s, using %s minutes",
                weekday,
                hour,
                self.travel_fallback_minutes,
            )
            return self.travel_fallback_minutes

        return minutes

    def _converge(
        self,
        date: Date,
        kind: AuxiliaryKind,
        desired: int,
        existing: List[AuxiliaryHourRecord],
        summary: ReconcileSummary,
    ) -> None:
        description = kind.describe(date)

        if not existing:
            self._store.create_auxiliary_hour(date, kind, desired, description)
            summary.added.bump(kind)
            return

        keeper, duplicates = existing[0], existing[1:]

        if keeper.duration_minutes != desired:
            self._store.update_auxiliary_hour(keeper.id, desired, description)
            summary.updated.bump(kind)

        for duplicate in duplicates:
            self._store.delete_auxiliary_hour(duplicate.id)
            summary.removed.bump(kind)

    def _remove_all(
        self,
        date: Date,
        open_records: List[AuxiliaryHourRecord],
        summary: ReconcileSummary,
    ) -> None:
        for record in open_records:
            try:
                self._store.delete_auxiliary_hour(record.id)
            except Exception as exc:
                logger.warning("Failed to delete record %s for %s: %s", record.id, date, exc)
                summary.errors.append(f"Failed to delete record {record.id} for {date}: {exc}")
                continue
            summary.removed.bump(record.kind)
