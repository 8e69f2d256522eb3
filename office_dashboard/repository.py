from __future__ import annotations

import logging
import shutil
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Callable, Literal

from filelock import FileLock
from openpyxl import Workbook, load_workbook

from office_dashboard.config import settings
from office_dashboard.constants import (
    EMPLOYEES_HEADERS,
    INTERVAL_HEADERS,
    LAYOUTS_HEADERS,
    RESERVATIONS_HEADERS,
    SETTINGS_HEADERS,
    TOTAL_DESKS_KEY,
)
from office_dashboard.domain import as_day, utcnow
from office_dashboard.models import (
    DeskReservation,
    EmployeeRecord,
    EmployeeUpsert,
    IntervalRecord,
    OfficeLayout,
    SickLeavePeriod,
    Snapshot,
    VacationPeriod,
)

logger = logging.getLogger(__name__)

Action = Literal["insert", "update", "delete"]

INTERVAL_TYPES: dict[str, type[IntervalRecord]] = {
    "vacations": VacationPeriod,
    "sick_leaves": SickLeavePeriod,
}


@dataclass
class Tables:
    employees: list[dict[str, Any]]
    vacations: list[dict[str, Any]]
    sick_leaves: list[dict[str, Any]]
    reservations: list[dict[str, Any]]
    settings: list[dict[str, Any]]
    layouts: list[dict[str, Any]]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: Action
    record_id: str


ChangeListener = Callable[[ChangeEvent], None]
ReservationGuard = Callable[[list[DeskReservation]], None]


class ExcelRepository:
    def __init__(
        self,
        data_file: Path | None = None,
        backup_dir: Path | None = None,
        lock_file: Path | None = None,
    ) -> None:
        self.data_file = data_file or settings.data_file
        self.backup_dir = backup_dir or settings.backup_dir
        self.lock_file = lock_file or settings.lock_file
        self.lock = FileLock(str(self.lock_file))
        self._listeners: list[ChangeListener] = []

    def init_storage(self) -> None:
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        if self.data_file.exists():
            return

        wb = Workbook()
        default = wb.active
        wb.remove(default)
        for sheet_name, headers in self._sheet_headers().items():
            ws = wb.create_sheet(sheet_name)
            ws.append(headers)
        wb.save(self.data_file)
        logger.info("Created data file %s", self.data_file)

    # Change notifications

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, table: str, action: Action, record_id: str) -> None:
        event = ChangeEvent(table=table, action=action, record_id=record_id)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Change listener failed for %s", event)

    # Employees

    def list_employees(self) -> list[EmployeeRecord]:
        tables = self._read_tables()
        employees = [self._to_employee(row) for row in tables.employees if row.get("id")]
        return sorted(employees, key=lambda e: (e.last_name.lower(), e.first_name.lower()))

    def get_employee(self, employee_id: str) -> EmployeeRecord | None:
        for employee in self.list_employees():
            if employee.id == employee_id:
                return employee
        return None

    def create_employee(self, data: EmployeeUpsert) -> EmployeeRecord:
        def mutate(tables: Tables) -> dict[str, Any]:
            row = {"id": uuid.uuid4().hex, "created_at": utcnow().isoformat()}
            row.update(self._employee_fields(data))
            tables.employees.append(row)
            return row

        row = self._write_tables(mutate)
        self._notify("employees", "insert", row["id"])
        return self._to_employee(row)

    def update_employee(self, employee_id: str, data: EmployeeUpsert) -> EmployeeRecord | None:
        def mutate(tables: Tables) -> dict[str, Any] | None:
            for row in tables.employees:
                if row.get("id") == employee_id:
                    row.update(self._employee_fields(data))
                    return row
            return None

        row = self._write_tables(mutate)
        if not row:
            return None
        self._notify("employees", "update", employee_id)
        return self._to_employee(row)

    def delete_employee(self, employee_id: str) -> bool:
        """
        Deletes the employee together with their vacations, sick leaves and reservations.
        Listeners get a delete event for every removed row.
        """
        removed: list[tuple[str, str]] = []

        def mutate(tables: Tables) -> bool:
            initial = len(tables.employees)
            tables.employees = [row for row in tables.employees if row.get("id") != employee_id]
            if len(tables.employees) == initial:
                return False
            for table in ("vacations", "sick_leaves", "reservations"):
                kept = []
                for row in getattr(tables, table):
                    if row.get("employee_id") == employee_id:
                        removed.append((table, str(row.get("id"))))
                    else:
                        kept.append(row)
                setattr(tables, table, kept)
            return True

        deleted = bool(self._write_tables(mutate))
        if deleted:
            for table, record_id in removed:
                self._notify(table, "delete", record_id)
            self._notify("employees", "delete", employee_id)
        return deleted

    # Vacations and sick leaves

    def list_intervals(self, kind: str) -> list[IntervalRecord]:
        tables = self._read_tables()
        model = INTERVAL_TYPES[kind]
        return [self._to_interval(model, row) for row in getattr(tables, kind) if row.get("id")]

    def list_vacations(self) -> list[VacationPeriod]:
        return self.list_intervals("vacations")

    def list_sick_leaves(self) -> list[SickLeavePeriod]:
        return self.list_intervals("sick_leaves")

    def get_interval(self, kind: str, interval_id: str) -> IntervalRecord | None:
        for item in self.list_intervals(kind):
            if item.id == interval_id:
                return item
        return None

    def create_interval(
        self,
        kind: str,
        employee_id: str,
        start_date: date,
        end_date: date,
    ) -> IntervalRecord:
        model = INTERVAL_TYPES[kind]

        def mutate(tables: Tables) -> dict[str, Any]:
            row = {
                "id": uuid.uuid4().hex,
                "employee_id": employee_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "created_at": utcnow().isoformat(),
            }
            getattr(tables, kind).append(row)
            return row

        row = self._write_tables(mutate)
        self._notify(kind, "insert", row["id"])
        return self._to_interval(model, row)

    def update_interval(
        self,
        kind: str,
        interval_id: str,
        start_date: date,
        end_date: date,
    ) -> IntervalRecord | None:
        model = INTERVAL_TYPES[kind]

        def mutate(tables: Tables) -> dict[str, Any] | None:
            for row in getattr(tables, kind):
                if row.get("id") == interval_id:
                    row["start_date"] = start_date.isoformat()
                    row["end_date"] = end_date.isoformat()
                    return row
            return None

        row = self._write_tables(mutate)
        if not row:
            return None
        self._notify(kind, "update", interval_id)
        return self._to_interval(model, row)

    def delete_interval(self, kind: str, interval_id: str) -> bool:
        def mutate(tables: Tables) -> bool:
            rows = getattr(tables, kind)
            remaining = [row for row in rows if row.get("id") != interval_id]
            setattr(tables, kind, remaining)
            return len(remaining) != len(rows)

        deleted = bool(self._write_tables(mutate))
        if deleted:
            self._notify(kind, "delete", interval_id)
        return deleted

    # Desk reservations

    def list_reservations(self) -> list[DeskReservation]:
        tables = self._read_tables()
        return [self._to_reservation(row) for row in tables.reservations if row.get("id")]

    def get_reservation(self, reservation_id: str) -> DeskReservation | None:
        for item in self.list_reservations():
            if item.id == reservation_id:
                return item
        return None

    def create_reservation(
        self,
        employee_id: str,
        desk_number: int,
        start_date: date,
        end_date: date,
        guard: ReservationGuard | None = None,
    ) -> DeskReservation:
        """
        Appends a reservation. The guard sees the reservations stored at the
        time of the write, under the file lock, and raises to abort it.
        """

        def mutate(tables: Tables) -> dict[str, Any]:
            if guard is not None:
                guard([self._to_reservation(row) for row in tables.reservations if row.get("id")])
            row = {
                "id": uuid.uuid4().hex,
                "employee_id": employee_id,
                "desk_number": desk_number,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "created_at": utcnow().isoformat(),
            }
            tables.reservations.append(row)
            return row

        row = self._write_tables(mutate)
        self._notify("reservations", "insert", row["id"])
        return self._to_reservation(row)

    def update_reservation(
        self,
        reservation_id: str,
        desk_number: int,
        start_date: date,
        end_date: date,
        guard: ReservationGuard | None = None,
    ) -> DeskReservation | None:
        def mutate(tables: Tables) -> dict[str, Any] | None:
            if guard is not None:
                guard([self._to_reservation(row) for row in tables.reservations if row.get("id")])
            for row in tables.reservations:
                if row.get("id") == reservation_id:
                    row["desk_number"] = desk_number
                    row["start_date"] = start_date.isoformat()
                    row["end_date"] = end_date.isoformat()
                    return row
            return None

        row = self._write_tables(mutate)
        if not row:
            return None
        self._notify("reservations", "update", reservation_id)
        return self._to_reservation(row)

    def delete_reservation(self, reservation_id: str) -> bool:
        def mutate(tables: Tables) -> bool:
            initial = len(tables.reservations)
            tables.reservations = [
                row for row in tables.reservations if row.get("id") != reservation_id
            ]
            return len(tables.reservations) != initial

        deleted = bool(self._write_tables(mutate))
        if deleted:
            self._notify("reservations", "delete", reservation_id)
        return deleted

    # Settings

    def get_setting(self, key: str) -> str | None:
        return self._setting_from(self._read_tables(), key)

    def _setting_from(self, tables: Tables, key: str) -> str | None:
        for row in tables.settings:
            if row.get("setting_key") == key:
                value = row.get("setting_value")
                return None if value is None else str(value)
        return None

    def set_setting(self, key: str, value: str) -> None:
        def mutate(tables: Tables) -> Action:
            for row in tables.settings:
                if row.get("setting_key") == key:
                    row["setting_value"] = value
                    return "update"
            tables.settings.append({"setting_key": key, "setting_value": value})
            return "insert"

        action = self._write_tables(mutate)
        self._notify("settings", action, key)

    def total_desks(self) -> int:
        return self._total_desks_from(self._read_tables())

    def _total_desks_from(self, tables: Tables) -> int:
        raw = self._setting_from(tables, TOTAL_DESKS_KEY)
        if raw is None:
            return settings.default_total_desks
        try:
            return int(str(raw).strip())
        except ValueError:
            logger.warning(
                "Setting %s=%r is not an integer, using %d",
                TOTAL_DESKS_KEY,
                raw,
                settings.default_total_desks,
            )
            return settings.default_total_desks

    # Office layout

    def list_layouts(self) -> list[OfficeLayout]:
        tables = self._read_tables()
        return [
            OfficeLayout(
                id=row["id"],
                image_url=row["image_url"],
                created_at=self._parse_datetime(row["created_at"]),
            )
            for row in tables.layouts
            if row.get("id")
        ]

    def latest_layout(self) -> OfficeLayout | None:
        return max(self.list_layouts(), key=lambda layout: layout.created_at, default=None)

    def add_layout(self, image_url: str) -> OfficeLayout:
        def mutate(tables: Tables) -> dict[str, Any]:
            row = {
                "id": uuid.uuid4().hex,
                "image_url": image_url,
                "created_at": utcnow().isoformat(),
            }
            tables.layouts.append(row)
            return row

        row = self._write_tables(mutate)
        self._notify("layouts", "insert", row["id"])
        return OfficeLayout(
            id=row["id"],
            image_url=row["image_url"],
            created_at=self._parse_datetime(row["created_at"]),
        )

    def delete_layout(self, layout_id: str) -> bool:
        def mutate(tables: Tables) -> bool:
            initial = len(tables.layouts)
            tables.layouts = [row for row in tables.layouts if row.get("id") != layout_id]
            return len(tables.layouts) != initial

        deleted = bool(self._write_tables(mutate))
        if deleted:
            self._notify("layouts", "delete", layout_id)
        return deleted

    def snapshot(self) -> Snapshot:
        tables = self._read_tables()
        return Snapshot(
            employees=sorted(
                (self._to_employee(row) for row in tables.employees if row.get("id")),
                key=lambda e: (e.last_name.lower(), e.first_name.lower()),
            ),
            vacations=[self._to_interval(VacationPeriod, r) for r in tables.vacations if r.get("id")],
            sick_leaves=[
                self._to_interval(SickLeavePeriod, r) for r in tables.sick_leaves if r.get("id")
            ],
            reservations=[self._to_reservation(r) for r in tables.reservations if r.get("id")],
            total_desks=self._total_desks_from(tables),
        )

    def _sheet_headers(self) -> dict[str, list[str]]:
        return {
            "employees": EMPLOYEES_HEADERS,
            "vacations": INTERVAL_HEADERS,
            "sick_leaves": INTERVAL_HEADERS,
            "reservations": RESERVATIONS_HEADERS,
            "settings": SETTINGS_HEADERS,
            "layouts": LAYOUTS_HEADERS,
        }

    def _load(self, wb: Workbook) -> Tables:
        sheets = {
            name: self._read_sheet(wb, name, headers)
            for name, headers in self._sheet_headers().items()
        }
        return Tables(**sheets)

    def _read_tables(self) -> Tables:
        self.init_storage()
        wb = load_workbook(self.data_file)
        try:
            return self._load(wb)
        finally:
            wb.close()

    def _write_tables(self, mutator: Callable[[Tables], Any]) -> Any:
        self.init_storage()
        with self.lock:
            wb = load_workbook(self.data_file)
            try:
                tables = self._load(wb)
                result = mutator(tables)
                for name, headers in self._sheet_headers().items():
                    self._write_sheet(wb, name, headers, getattr(tables, name))
                self._persist_workbook(wb)
                return result
            finally:
                wb.close()

    def _persist_workbook(self, workbook: Workbook) -> None:
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(suffix=".xlsx", dir=self.data_file.parent, delete=False) as tmp:
            temp_path = Path(tmp.name)
        try:
            workbook.save(temp_path)
            if self.data_file.exists():
                stamp = utcnow().strftime("%Y%m%d%H%M%S%f")
                backup_path = self.backup_dir / f"{self.data_file.stem}-{stamp}.xlsx"
                shutil.copy2(self.data_file, backup_path)
            temp_path.replace(self.data_file)
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _read_sheet(self, workbook: Workbook, name: str, headers: list[str]) -> list[dict[str, Any]]:
        if name not in workbook.sheetnames:
            return []
        ws = workbook[name]
        rows: list[dict[str, Any]] = []
        for row in ws.iter_rows(min_row=2, values_only=True):
            if all(item is None for item in row):
                continue
            payload: dict[str, Any] = {}
            for index, header in enumerate(headers):
                payload[header] = row[index] if index < len(row) else None
            rows.append(payload)
        return rows

    def _write_sheet(
        self,
        workbook: Workbook,
        name: str,
        headers: list[str],
        rows: list[dict[str, Any]],
    ) -> None:
        if name not in workbook.sheetnames:
            workbook.create_sheet(name)
        ws = workbook[name]
        ws.delete_rows(1, ws.max_row)
        ws.append(headers)
        for row in rows:
            ws.append([row.get(header) for header in headers])

    def _employee_fields(self, data: EmployeeUpsert) -> dict[str, Any]:
        return {
            "first_name": data.first_name.strip(),
            "last_name": data.last_name.strip(),
            "middle_name": data.middle_name or None,
            "position": data.position or None,
            "team": data.team or None,
            "desk_number": data.desk_number,
            "phone": data.phone or None,
            "birthday": data.birthday.isoformat() if data.birthday else None,
            "remote_days": ",".join(data.remote_days),
        }

    def _to_employee(self, row: dict[str, Any]) -> EmployeeRecord:
        remote_days = str(row.get("remote_days") or "")
        return EmployeeRecord(
            id=row["id"],
            first_name=str(row.get("first_name") or ""),
            last_name=str(row.get("last_name") or ""),
            middle_name=row.get("middle_name") or None,
            position=row.get("position") or None,
            team=row.get("team") or None,
            desk_number=self._parse_int(row.get("desk_number")),
            phone=self._optional_text(row.get("phone")),
            birthday=self._parse_optional_date(row.get("birthday")),
            remote_days=[day.strip().lower() for day in remote_days.split(",") if day.strip()],
            created_at=self._parse_optional_datetime(row.get("created_at")),
        )

    def _to_interval(self, model: type[IntervalRecord], row: dict[str, Any]) -> IntervalRecord:
        return model(
            id=row["id"],
            employee_id=row["employee_id"],
            start_date=self._parse_date(row["start_date"]),
            end_date=self._parse_date(row["end_date"]),
            created_at=self._parse_optional_datetime(row.get("created_at")),
        )

    def _to_reservation(self, row: dict[str, Any]) -> DeskReservation:
        return DeskReservation(
            id=row["id"],
            employee_id=row["employee_id"],
            desk_number=int(row["desk_number"]),
            start_date=self._parse_date(row["start_date"]),
            end_date=self._parse_date(row["end_date"]),
            created_at=self._parse_optional_datetime(row.get("created_at")),
        )

    def _parse_date(self, raw: Any) -> date:
        return as_day(raw)

    def _parse_optional_date(self, raw: Any) -> date | None:
        if raw in (None, ""):
            return None
        return as_day(raw)

    def _parse_datetime(self, raw: Any) -> datetime:
        if isinstance(raw, datetime):
            return raw
        return datetime.fromisoformat(str(raw))

    def _parse_optional_datetime(self, raw: Any) -> datetime | None:
        if raw in (None, ""):
            return None
        return self._parse_datetime(raw)

    def _parse_int(self, raw: Any) -> int | None:
        if raw in (None, ""):
            return None
        return int(raw)

    def _optional_text(self, raw: Any) -> str | None:
        # openpyxl hands back phone numbers typed into the sheet as ints
        if raw in (None, ""):
            return None
        return str(raw)
