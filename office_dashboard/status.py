from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from office_dashboard.constants import Status
from office_dashboard.domain import DateInterval, as_day, day_name
from office_dashboard.models import EmployeeRecord, IntervalRecord, SickLeavePeriod, VacationPeriod

UPCOMING_VACATION_DAYS = 14


def _own(periods: Iterable[IntervalRecord], employee_id: str) -> list[IntervalRecord]:
    return [period for period in periods if period.employee_id == employee_id]


def current_vacation(
    employee: EmployeeRecord,
    target_date: date | datetime,
    vacations: Iterable[VacationPeriod],
) -> VacationPeriod | None:
    day = as_day(target_date)
    matches = [v for v in _own(vacations, employee.id) if v.interval.contains(day)]
    return min(matches, key=lambda v: (v.start_date, v.end_date), default=None)


def upcoming_vacation(
    employee: EmployeeRecord,
    target_date: date | datetime,
    vacations: Iterable[VacationPeriod],
    window_days: int = UPCOMING_VACATION_DAYS,
) -> VacationPeriod | None:
    """
    Returns the earliest vacation starting strictly after the target date and
    no later than window_days after it.
    """
    day = as_day(target_date)
    horizon = day + timedelta(days=window_days)
    matches = [v for v in _own(vacations, employee.id) if day < v.start_date <= horizon]
    return min(matches, key=lambda v: (v.start_date, v.end_date), default=None)


def resolve_status(
    employee: EmployeeRecord,
    target_date: date | datetime,
    vacations: Iterable[VacationPeriod],
    sick_leaves: Iterable[SickLeavePeriod],
    upcoming_days: int = UPCOMING_VACATION_DAYS,
) -> Status:
    """
    Where the employee is expected to be on the given day.

    Sick leave beats vacation, vacation beats an upcoming vacation, which beats
    a scheduled remote day. Everyone else is in the office.
    """
    day = as_day(target_date)
    vacations = list(vacations)
    if any(s.interval.contains(day) for s in _own(sick_leaves, employee.id)):
        return Status.SICK_LEAVE
    if current_vacation(employee, day, vacations) is not None:
        return Status.VACATION
    if upcoming_vacation(employee, day, vacations, upcoming_days) is not None:
        return Status.UPCOMING_VACATION
    if day_name(day) in employee.remote_days:
        return Status.REMOTE
    return Status.OFFICE


def resolve_statuses(
    employees: Iterable[EmployeeRecord],
    target_date: date | datetime,
    vacations: Sequence[VacationPeriod],
    sick_leaves: Sequence[SickLeavePeriod],
    upcoming_days: int = UPCOMING_VACATION_DAYS,
) -> dict[str, Status]:
    return {
        employee.id: resolve_status(employee, target_date, vacations, sick_leaves, upcoming_days)
        for employee in employees
    }


def available_desks(
    target_date: date | datetime,
    employees: Iterable[EmployeeRecord],
    total_desks: int,
    vacations: Sequence[VacationPeriod] = (),
    sick_leaves: Sequence[SickLeavePeriod] = (),
    upcoming_days: int = UPCOMING_VACATION_DAYS,
) -> int:
    """
    Total desks minus the people expected in the office. Negative when the
    office is oversubscribed.
    """
    statuses = resolve_statuses(employees, target_date, vacations, sick_leaves, upcoming_days)
    in_office = sum(1 for status in statuses.values() if status == Status.OFFICE)
    return total_desks - in_office


@dataclass(frozen=True)
class CapacityProjection:
    """
    Free desks per day over an inclusive window. Iterating again starts over.
    """

    window: DateInterval
    employees: Sequence[EmployeeRecord]
    total_desks: int
    vacations: Sequence[VacationPeriod] = ()
    sick_leaves: Sequence[SickLeavePeriod] = ()
    upcoming_days: int = UPCOMING_VACATION_DAYS

    def __iter__(self) -> Iterator[tuple[date, int]]:
        for day in self.window.days():
            yield day, available_desks(
                day,
                self.employees,
                self.total_desks,
                self.vacations,
                self.sick_leaves,
                self.upcoming_days,
            )

    def __len__(self) -> int:
        return len(self.window)


def capacity_projection(
    start: date,
    end: date,
    employees: Iterable[EmployeeRecord],
    total_desks: int,
    vacations: Iterable[VacationPeriod] = (),
    sick_leaves: Iterable[SickLeavePeriod] = (),
    upcoming_days: int = UPCOMING_VACATION_DAYS,
) -> CapacityProjection:
    return CapacityProjection(
        window=DateInterval(as_day(start), as_day(end)),
        employees=tuple(employees),
        total_desks=total_desks,
        vacations=tuple(vacations),
        sick_leaves=tuple(sick_leaves),
        upcoming_days=upcoming_days,
    )
