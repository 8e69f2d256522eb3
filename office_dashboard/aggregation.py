from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date, timedelta

from office_dashboard.allocator import reserved_desk
from office_dashboard.constants import ALL, STATUS_ORDER, Status
from office_dashboard.domain import is_birthday_soon
from office_dashboard.models import DashboardResponse, EmployeeCard, EmployeeRecord, Snapshot
from office_dashboard.status import (
    UPCOMING_VACATION_DAYS,
    available_desks,
    current_vacation,
    resolve_statuses,
    upcoming_vacation,
)


def _normalize_status(value: Status | str) -> str:
    if value == ALL:
        return ALL
    return Status(value).value


@dataclass(frozen=True)
class FilterState:
    """
    The dashboard's current status and team filters. Owned by the caller;
    selecting the active value again resets it to "all".
    """

    status: str = ALL
    team: str = ALL

    def select_status(self, status: Status | str) -> FilterState:
        selected = _normalize_status(status)
        return replace(self, status=ALL if selected == self.status else selected)

    def select_team(self, team: str) -> FilterState:
        return replace(self, team=ALL if team == self.team else team)

    def matches(self, employee: EmployeeRecord, status: Status) -> bool:
        status_ok = self.status == ALL or status.value == self.status
        team_ok = self.team == ALL or employee.team == self.team
        return status_ok and team_ok


def filter_employees(
    employees: Iterable[EmployeeRecord],
    statuses: Mapping[str, Status],
    state: FilterState,
) -> list[EmployeeRecord]:
    return [e for e in employees if state.matches(e, statuses[e.id])]


def count_by_status(statuses: Mapping[str, Status]) -> dict[Status, int]:
    counts = {status: 0 for status in STATUS_ORDER}
    for status in statuses.values():
        counts[status] += 1
    return counts


def count_by_team(employees: Iterable[EmployeeRecord]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for employee in employees:
        if employee.team:
            counts[employee.team] = counts.get(employee.team, 0) + 1
    return counts


def build_dashboard(
    snapshot: Snapshot,
    today: date,
    state: FilterState | None = None,
    upcoming_days: int = UPCOMING_VACATION_DAYS,
    birthday_window_days: int = 5,
) -> DashboardResponse:
    state = state or FilterState()
    statuses = resolve_statuses(
        snapshot.employees, today, snapshot.vacations, snapshot.sick_leaves, upcoming_days
    )

    cards = []
    for employee in filter_employees(snapshot.employees, statuses, state):
        status = statuses[employee.id]
        cards.append(
            EmployeeCard(
                employee=employee,
                status=status.value,
                birthday_soon=is_birthday_soon(employee.birthday, today, birthday_window_days),
                current_vacation=(
                    current_vacation(employee, today, snapshot.vacations)
                    if status == Status.VACATION
                    else None
                ),
                upcoming_vacation=(
                    upcoming_vacation(employee, today, snapshot.vacations, upcoming_days)
                    if status == Status.UPCOMING_VACATION
                    else None
                ),
                reserved_desk=reserved_desk(employee.id, today, snapshot.reservations),
            )
        )

    def free(day: date) -> int:
        return available_desks(
            day,
            snapshot.employees,
            snapshot.total_desks,
            snapshot.vacations,
            snapshot.sick_leaves,
            upcoming_days,
        )

    return DashboardResponse(
        day=today,
        status_filter=state.status,
        team_filter=state.team,
        total_desks=snapshot.total_desks,
        available_today=free(today),
        available_tomorrow=free(today + timedelta(days=1)),
        total_employees=len(snapshot.employees),
        status_counts={status.value: count for status, count in count_by_status(statuses).items()},
        team_counts=count_by_team(snapshot.employees),
        employees=cards,
    )
