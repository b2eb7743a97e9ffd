"""
REST client for the grooming backend's appointment and additional-hours API.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import Date

from ..domain.exceptions import (
    FinalizedRecordError,
    InvalidInputError,
    RecordNotFoundError,
    StorageError,
)
from ..domain.models import (
    AppointmentInterval,
    AuxiliaryHourRecord,
    AuxiliaryKind,
    TravelTimeEntry,
    parse_date,
)
from ..services.travel_times import TravelTimeTable

logger = logging.getLogger(__name__)


class BookingApiClient:
    """
    Client for the booking backend.

    Implements the booking store contract on top of the backend's REST
    endpoints. Additional hours are typed by an hour-type code; only the
    travel and cleaning codes are mapped, other hour types are ignored.
    """

    def __init__(
        self,
        base_url: str,
        travel_code: str = "Reis",
        cleaning_code: str = "sch",
        timeout: int = 30
    ):
        """
        Initialize the booking API client.

        Args:
            base_url: Backend API root, e.g. "http://localhost:3000/api/v1"
            travel_code: Hour-type code of travel records
            cleaning_code: Hour-type code of cleaning records
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        self._code_by_kind = {
            AuxiliaryKind.TRAVEL: travel_code,
            AuxiliaryKind.CLEANING: cleaning_code,
        }
        self._kind_by_code = {code: kind for kind, code in self._code_by_kind.items()}
        self._travel_table: Optional[TravelTimeTable] = None

    def list_appointments(self, date_from: Date, date_to: Date) -> List[AppointmentInterval]:
        rows = self._request(
            "GET",
            "/appointments/date-range",
            params={"startDate": date_from.to_date_string(), "endDate": date_to.to_date_string()}
        )
        appointments: List[AppointmentInterval] = []

        for row in rows or []:
            try:
                appointments.append(
                    AppointmentInterval.from_strings(
                        row["Date"][:10],
                        row["TimeStart"],
                        row["TimeEnd"],
                        is_finalized=bool(row.get("IsExported", False)),
                        id=row.get("Id")
                    )
                )
            except (KeyError, TypeError, InvalidInputError) as exc:
                raise StorageError(f"Could not parse appointment {row.get('Id')}: {exc}") from exc

        return appointments

    def list_auxiliary_hours(self, date_from: Date, date_to: Date) -> List[AuxiliaryHourRecord]:
        rows = self._request(
            "GET",
            "/additional-hours/date-range",
            params={"startDate": date_from.to_date_string(), "endDate": date_to.to_date_string()}
        )
        records: List[AuxiliaryHourRecord] = []

        for row in rows or []:
            record = self._record_from_row(row)
            if record is not None:
                records.append(record)

        return records

    def create_auxiliary_hour(
        self,
        date: Date,
        kind: AuxiliaryKind,
        duration_minutes: int,
        description: str
    ) -> AuxiliaryHourRecord:
        row = self._request(
            "POST",
            "/additional-hours",
            json={
                "Date": parse_date(date).to_date_string(),
                "HourTypeId": self._code_by_kind[kind],
                "Duration": duration_minutes,
                "IsExported": False,
                "Description": description,
            }
        )
        record = self._record_from_row(row)
        if record is None:
            raise StorageError(f"Backend returned an unexpected record for new {kind.value} hour")
        return record

    def update_auxiliary_hour(
        self,
        record_id: int,
        duration_minutes: int,
        description: str
    ) -> AuxiliaryHourRecord:
        row = self._writable_row(record_id, "updated")
        row.update({"Duration": duration_minutes, "Description": description})

        updated = self._request("PUT", f"/additional-hours/{record_id}", json=row)
        record = self._record_from_row(updated or row)
        if record is None:
            raise StorageError(f"Backend returned an unexpected record for hour {record_id}")
        return record

    def delete_auxiliary_hour(self, record_id: int) -> None:
        self._writable_row(record_id, "deleted")
        self._request("DELETE", f"/additional-hours/{record_id}")

    def lookup_travel_minutes(self, weekday: int, hour: int) -> Optional[int]:
        """
        Look up travel minutes; the table is fetched once per client.

        The backend numbers days like JavaScript's getDay (0=Sunday); rows are
        shifted to Monday=0 in ``fetch_travel_times`` when the table is built,
        so ``weekday`` is looked up as given.
        """
        if self._travel_table is None:
            self._travel_table = TravelTimeTable(self.fetch_travel_times())
        return self._travel_table.lookup_travel_minutes(weekday, hour)

    def fetch_travel_times(self) -> List[TravelTimeEntry]:
        """Fetch the full travel time table, converted to Monday=0 weekdays."""
        entries: List[TravelTimeEntry] = []

        for row in self._request("GET", "/travel-times") or []:
            try:
                entries.append(
                    TravelTimeEntry(
                        weekday=(int(row["Day"]) - 1) % 7,
                        hour=int(row["Hour"]),
                        minutes=int(row["Minutes"])
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping travel time row %s: %s", row.get("Id"), exc)

        return entries

    def _writable_row(self, record_id: int, action: str) -> Dict[str, Any]:
        row = self._request("GET", f"/additional-hours/{record_id}")
        if not isinstance(row, dict):
            raise StorageError(f"Backend returned an unexpected payload for hour {record_id}")
        if row.get("IsExported"):
            raise FinalizedRecordError(
                f"Auxiliary hour {record_id} is finalized and cannot be {action}"
            )
        return row

    def _record_from_row(self, row: Any) -> Optional[AuxiliaryHourRecord]:
        if not isinstance(row, dict):
            return None

        kind = self._kind_by_code.get(row.get("HourTypeId"))
        if kind is None:
            return None
        if not row.get("Id"):
            raise StorageError(f"Additional hour row without an id: {row}")

        try:
            return AuxiliaryHourRecord(
                id=row.get("Id"),
                date=str(row["Date"])[:10],
                kind=kind,
                duration_minutes=int(row["Duration"]),
                is_finalized=bool(row.get("IsExported", False)),
                description=row.get("Description") or ""
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Could not parse additional hour {row.get('Id')}: {exc}") from exc

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                params=params,
                json=json,
                timeout=self.timeout
            )
            if response.status_code == 404:
                raise RecordNotFoundError(f"{method} {path}: not found")
            response.raise_for_status()

        except requests.exceptions.RequestException as e:
            raise StorageError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"{method} {path} returned invalid JSON: {e}") from e
