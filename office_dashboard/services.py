from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from fastapi import HTTPException, status

from office_dashboard.aggregation import FilterState, build_dashboard
from office_dashboard.allocator import (
    ReservationRequest,
    find_conflict,
    free_desks,
    missing_fields,
    try_reserve,
)
from office_dashboard.config import settings
from office_dashboard.constants import ALL, TOTAL_DESKS_KEY
from office_dashboard.domain import today, validate_interval
from office_dashboard.errors import (
    DeskUnavailable,
    DomainError,
    InvalidInterval,
    RecordNotFound,
)
from office_dashboard.models import (
    CapacityDay,
    DashboardResponse,
    DeskReservation,
    EmployeeRecord,
    EmployeeUpsert,
    IntervalCreate,
    IntervalRecord,
    IntervalUpdate,
    OfficeLayout,
    ReservationCreate,
    ReservationUpdate,
)
from office_dashboard.repository import ExcelRepository
from office_dashboard.security import Identity
from office_dashboard.status import capacity_projection

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    DeskUnavailable: status.HTTP_409_CONFLICT,
    RecordNotFound: status.HTTP_404_NOT_FOUND,
}

INTERVAL_LABELS = {"vacations": "vacation", "sick_leaves": "sick leave"}


def http_error(error: DomainError) -> HTTPException:
    code = ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=error.message())


@dataclass
class DashboardService:
    repo: ExcelRepository

    # Dashboard

    def dashboard(
        self,
        day: date | None = None,
        status_filter: str = ALL,
        team_filter: str = ALL,
    ) -> DashboardResponse:
        try:
            state = FilterState().select_status(status_filter).select_team(team_filter)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status_filter}") from exc
        return build_dashboard(
            self.repo.snapshot(),
            day or today(),
            state,
            upcoming_days=settings.upcoming_vacation_days,
            birthday_window_days=settings.birthday_window_days,
        )

    def capacity(self, start: date | None = None, days: int | None = None) -> list[CapacityDay]:
        first = start or today()
        count = days or settings.projection_days
        if count < 1:
            raise HTTPException(status_code=400, detail="days must be positive")
        snapshot = self.repo.snapshot()
        projection = capacity_projection(
            first,
            first + timedelta(days=count - 1),
            snapshot.employees,
            snapshot.total_desks,
            snapshot.vacations,
            snapshot.sick_leaves,
            settings.upcoming_vacation_days,
        )
        return [CapacityDay(date=day, available_desks=free) for day, free in projection]

    def seating(self) -> list[EmployeeRecord]:
        seated = [e for e in self.repo.list_employees() if e.desk_number is not None]
        return sorted(seated, key=lambda e: e.desk_number)

    def free_desks(self, start: date, end: date) -> list[int]:
        try:
            validate_interval(start, end)
        except InvalidInterval as exc:
            raise http_error(exc) from exc
        return free_desks(start, end, self.repo.total_desks(), self.repo.list_reservations())

    # Employees

    def list_employees(self) -> list[EmployeeRecord]:
        return self.repo.list_employees()

    def get_employee_or_404(self, employee_id: str) -> EmployeeRecord:
        employee = self.repo.get_employee(employee_id)
        if not employee:
            raise http_error(RecordNotFound("employee", employee_id))
        return employee

    def create_employee(self, actor: Identity, data: EmployeeUpsert) -> EmployeeRecord:
        self._require_admin(actor)
        employee = self.repo.create_employee(data)
        logger.info("Employee %s created", employee.id)
        return employee

    def update_employee(self, actor: Identity, employee_id: str, data: EmployeeUpsert) -> EmployeeRecord:
        self._require_admin(actor)
        employee = self.repo.update_employee(employee_id, data)
        if not employee:
            raise http_error(RecordNotFound("employee", employee_id))
        return employee

    def delete_employee(self, actor: Identity, employee_id: str) -> None:
        self._require_admin(actor)
        if not self.repo.delete_employee(employee_id):
            raise http_error(RecordNotFound("employee", employee_id))
        logger.info("Employee %s deleted", employee_id)

    # Vacations and sick leaves

    def list_intervals(self, kind: str, employee_id: str | None = None) -> list[IntervalRecord]:
        items = self.repo.list_intervals(kind)
        if employee_id:
            items = [item for item in items if item.employee_id == employee_id]
        return sorted(items, key=lambda item: (item.start_date, item.end_date))

    def create_interval(self, actor: Identity, kind: str, data: IntervalCreate) -> IntervalRecord:
        self._require_admin(actor)
        self.get_employee_or_404(data.employee_id)
        try:
            validate_interval(data.start_date, data.end_date)
        except InvalidInterval as exc:
            raise http_error(exc) from exc
        return self.repo.create_interval(kind, data.employee_id, data.start_date, data.end_date)

    def update_interval(
        self,
        actor: Identity,
        kind: str,
        interval_id: str,
        data: IntervalUpdate,
    ) -> IntervalRecord:
        self._require_admin(actor)
        existing = self.repo.get_interval(kind, interval_id)
        if not existing:
            raise http_error(RecordNotFound(INTERVAL_LABELS[kind], interval_id))
        start = data.start_date or existing.start_date
        end = data.end_date or existing.end_date
        try:
            validate_interval(start, end)
        except InvalidInterval as exc:
            raise http_error(exc) from exc
        updated = self.repo.update_interval(kind, interval_id, start, end)
        if not updated:
            raise http_error(RecordNotFound(INTERVAL_LABELS[kind], interval_id))
        return updated

    def delete_interval(self, actor: Identity, kind: str, interval_id: str) -> None:
        self._require_admin(actor)
        if not self.repo.delete_interval(kind, interval_id):
            raise http_error(RecordNotFound(INTERVAL_LABELS[kind], interval_id))

    # Desk reservations

    def list_reservations(
        self,
        employee_id: str | None = None,
        day: date | None = None,
    ) -> list[DeskReservation]:
        items = self.repo.list_reservations()
        if employee_id:
            items = [item for item in items if item.employee_id == employee_id]
        if day:
            items = [item for item in items if item.interval.contains(day)]
        return sorted(items, key=lambda item: (item.start_date, item.desk_number))

    def create_reservation(self, actor: Identity, data: ReservationCreate) -> DeskReservation:
        # Unknown employees get a 404 before any desk conflict is reported
        if not missing_fields(data.employee_id, data.desk_number, data.start_date, data.end_date):
            self.get_employee_or_404(data.employee_id)

        outcome = try_reserve(
            data.employee_id,
            data.desk_number,
            data.start_date,
            data.end_date,
            self.repo.list_reservations(),
            week_start=settings.week_start,
        )
        request = self._accepted(outcome)
        self._validate_desk_number(request.desk_number)

        try:
            reservation = self.repo.create_reservation(
                employee_id=request.employee_id,
                desk_number=request.desk_number,
                start_date=request.start_date,
                end_date=request.end_date,
                guard=self._overlap_guard(request),
            )
        except DeskUnavailable as exc:
            logger.info("Reservation lost a race: %s", exc.message())
            raise http_error(exc) from exc
        logger.info(
            "Desk %d reserved for %s by %s from %s to %s",
            reservation.desk_number,
            reservation.employee_id,
            actor.user_id,
            reservation.start_date,
            reservation.end_date,
        )
        return reservation

    def update_reservation(
        self,
        actor: Identity,
        reservation_id: str,
        data: ReservationUpdate,
    ) -> DeskReservation:
        self._require_admin(actor)
        existing = self.repo.get_reservation(reservation_id)
        if not existing:
            raise http_error(RecordNotFound("reservation", reservation_id))

        outcome = try_reserve(
            existing.employee_id,
            data.desk_number if data.desk_number is not None else existing.desk_number,
            data.start_date or existing.start_date,
            data.end_date or existing.end_date,
            self.repo.list_reservations(),
            week_start=settings.week_start,
            exclude_id=reservation_id,
        )
        request = self._accepted(outcome)
        self._validate_desk_number(request.desk_number)

        try:
            updated = self.repo.update_reservation(
                reservation_id=reservation_id,
                desk_number=request.desk_number,
                start_date=request.start_date,
                end_date=request.end_date,
                guard=self._overlap_guard(request, exclude_id=reservation_id),
            )
        except DeskUnavailable as exc:
            raise http_error(exc) from exc
        if not updated:
            raise http_error(RecordNotFound("reservation", reservation_id))
        return updated

    def cancel_reservation(self, actor: Identity, reservation_id: str) -> None:
        self._require_admin(actor)
        if not self.repo.delete_reservation(reservation_id):
            raise http_error(RecordNotFound("reservation", reservation_id))

    # Settings and layout

    def get_total_desks(self) -> int:
        return self.repo.total_desks()

    def set_total_desks(self, actor: Identity, total_desks: int) -> int:
        self._require_admin(actor)
        if total_desks < 1:
            raise HTTPException(status_code=400, detail="Total desks must be positive")
        self.repo.set_setting(TOTAL_DESKS_KEY, str(total_desks))
        logger.info("Total desks set to %d", total_desks)
        return total_desks

    def current_layout(self) -> OfficeLayout | None:
        return self.repo.latest_layout()

    def add_layout(self, actor: Identity, image_url: str) -> OfficeLayout:
        self._require_admin(actor)
        return self.repo.add_layout(image_url)

    def delete_layout(self, actor: Identity, layout_id: str) -> None:
        self._require_admin(actor)
        if not self.repo.delete_layout(layout_id):
            raise http_error(RecordNotFound("layout", layout_id))

    def _require_admin(self, identity: Identity) -> None:
        if not identity.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin required")

    def _accepted(self, outcome: ReservationRequest | DomainError) -> ReservationRequest:
        if isinstance(outcome, DomainError):
            logger.info("Reservation rejected: %s", outcome.message())
            raise http_error(outcome)
        return outcome

    def _validate_desk_number(self, desk_number: int) -> None:
        total = self.repo.total_desks()
        if not 1 <= desk_number <= total:
            raise HTTPException(status_code=400, detail=f"Desk number must be between 1 and {total}")

    def _overlap_guard(self, request: ReservationRequest, exclude_id: str | None = None):
        def guard(current: list[DeskReservation]) -> None:
            conflict = find_conflict(
                request.desk_number,
                request.interval,
                current,
                exclude_id,
            )
            if conflict is not None:
                raise DeskUnavailable(
                    desk_number=request.desk_number,
                    start_date=conflict.start_date,
                    end_date=conflict.end_date,
                    conflicting_id=conflict.id,
                )

        return guard
