from __future__ import annotations

from datetime import date, datetime

import pytest

from office_dashboard.models import DeskReservation, EmployeeRecord, SickLeavePeriod, VacationPeriod
from office_dashboard.repository import ExcelRepository
from office_dashboard.security import Identity

MONDAY: date = date(2024, 6, 10)
ADMIN = Identity(user_id="admin", role="admin")
STAFF = Identity(user_id="user", role="user")


def employee(
    employee_id: str,
    remote_days: list[str] | None = None,
    team: str | None = None,
    birthday: date | None = None,
) -> EmployeeRecord:
    return EmployeeRecord(
        id=employee_id,
        first_name=employee_id.capitalize(),
        last_name="Tester",
        team=team,
        birthday=birthday,
        remote_days=remote_days or [],
    )


def vacation(employee_id: str, start: str, end: str, vacation_id: str = "v") -> VacationPeriod:
    return VacationPeriod(id=vacation_id, employee_id=employee_id, start_date=start, end_date=end)


def sick_leave(employee_id: str, start: str, end: str, sick_id: str = "s") -> SickLeavePeriod:
    return SickLeavePeriod(id=sick_id, employee_id=employee_id, start_date=start, end_date=end)


def reservation(
    reservation_id: str,
    employee_id: str,
    desk_number: int,
    start: str,
    end: str,
    created_at: datetime | None = None,
) -> DeskReservation:
    return DeskReservation(
        id=reservation_id,
        employee_id=employee_id,
        desk_number=desk_number,
        start_date=start,
        end_date=end,
        created_at=created_at,
    )


@pytest.fixture()
def repo(tmp_path) -> ExcelRepository:
    repo = ExcelRepository(
        data_file=tmp_path / "office.xlsx",
        backup_dir=tmp_path / "backups",
        lock_file=tmp_path / "office.lock",
    )
    repo.init_storage()
    return repo
