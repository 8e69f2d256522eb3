from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from office_dashboard.domain import DateInterval, as_day, same_week
from office_dashboard.errors import (
    CrossWeekSpan,
    DeskUnavailable,
    DomainError,
    IncompleteRequest,
    InvalidInterval,
)
from office_dashboard.models import DeskReservation

MONDAY = 0


@dataclass(frozen=True)
class ReservationRequest:
    """
    A reservation that passed every check and can be written to the store.
    """

    employee_id: str
    desk_number: int
    start_date: date
    end_date: date

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.start_date, self.end_date)


def find_conflict(
    desk_number: int,
    interval: DateInterval,
    reservations: Iterable[DeskReservation],
    exclude_id: str | None = None,
) -> DeskReservation | None:
    for reservation in reservations:
        if reservation.id == exclude_id or reservation.desk_number != desk_number:
            continue
        if reservation.interval.overlaps(interval):
            return reservation
    return None


def is_desk_available(
    desk_number: int,
    start_date: date,
    end_date: date,
    reservations: Iterable[DeskReservation],
    exclude_id: str | None = None,
) -> bool:
    interval = DateInterval(as_day(start_date), as_day(end_date))
    return find_conflict(desk_number, interval, reservations, exclude_id) is None


def free_desks(
    start_date: date,
    end_date: date,
    total_desks: int,
    reservations: Iterable[DeskReservation],
) -> list[int]:
    """
    Desk numbers 1..total_desks with no reservation overlapping the window.
    """
    interval = DateInterval(as_day(start_date), as_day(end_date))
    taken = {r.desk_number for r in reservations if r.interval.overlaps(interval)}
    return [desk for desk in range(1, total_desks + 1) if desk not in taken]


def missing_fields(
    employee_id: str | None,
    desk_number: int | None,
    start_date: date | datetime | None,
    end_date: date | datetime | None,
) -> list[str]:
    return [
        name
        for name, value in (
            ("employee_id", employee_id),
            ("desk_number", desk_number),
            ("start_date", start_date),
            ("end_date", end_date),
        )
        if value is None or value == ""
    ]


def try_reserve(
    employee_id: str | None,
    desk_number: int | None,
    start_date: date | datetime | None,
    end_date: date | datetime | None,
    existing: Iterable[DeskReservation],
    week_start: int = MONDAY,
    exclude_id: str | None = None,
) -> ReservationRequest | DomainError:
    """
    Checks a reservation request against the existing reservations.

    Returns the accepted request, or the error explaining why it was turned
    down: IncompleteRequest, InvalidInterval, CrossWeekSpan or DeskUnavailable,
    checked in that order. Nothing is raised and nothing is written.
    """
    missing = missing_fields(employee_id, desk_number, start_date, end_date)
    if missing:
        return IncompleteRequest(missing=missing)

    start = as_day(start_date)
    end = as_day(end_date)
    if start > end:
        return InvalidInterval(start_date=start, end_date=end)
    if not same_week(start, end, week_start):
        return CrossWeekSpan(start_date=start, end_date=end)

    request = ReservationRequest(
        employee_id=employee_id,
        desk_number=desk_number,
        start_date=start,
        end_date=end,
    )
    conflict = find_conflict(desk_number, request.interval, existing, exclude_id)
    if conflict is not None:
        return DeskUnavailable(
            desk_number=desk_number,
            start_date=conflict.start_date,
            end_date=conflict.end_date,
            conflicting_id=conflict.id,
        )
    return request


def reserved_desk(
    employee_id: str,
    target_date: date | datetime,
    reservations: Iterable[DeskReservation],
) -> int | None:
    """
    The desk the employee has reserved for the day. When several reservations
    cover it, the most recently created one wins.
    """
    day = as_day(target_date)
    matches = [
        r for r in reservations if r.employee_id == employee_id and r.interval.contains(day)
    ]
    if not matches:
        return None
    latest = max(matches, key=lambda r: (_created_key(r.created_at), r.id))
    return latest.desk_number


def _created_key(created_at: datetime | None) -> datetime:
    # Aware timestamps compare as naive UTC
    if created_at is None:
        return datetime.min
    if created_at.tzinfo is not None:
        return created_at.astimezone(timezone.utc).replace(tzinfo=None)
    return created_at
