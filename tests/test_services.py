from datetime import date

import pytest
from conftest import ADMIN, STAFF
from fastapi import HTTPException

from office_dashboard.models import (
    EmployeeUpsert,
    IntervalCreate,
    IntervalUpdate,
    ReservationCreate,
    ReservationUpdate,
)
from office_dashboard.services import DashboardService


@pytest.fixture()
def service(repo):
    svc = DashboardService(repo=repo)
    svc.set_total_desks(ADMIN, 20)

    alice = svc.create_employee(
        ADMIN,
        EmployeeUpsert(first_name="Alice", last_name="Archer", team="Core", desk_number=3),
    )
    bob = svc.create_employee(
        ADMIN,
        EmployeeUpsert(first_name="Bob", last_name="Baker", desk_number=1, remote_days=["monday"]),
    )
    carol = svc.create_employee(ADMIN, EmployeeUpsert(first_name="Carol", last_name="Cook"))

    return {"repo": repo, "service": svc, "alice": alice, "bob": bob, "carol": carol}


def _reserve(service, employee, desk, start, end):
    return service["service"].create_reservation(
        STAFF,
        ReservationCreate(employee_id=employee.id, desk_number=desk, start_date=start, end_date=end),
    )


def test_reject_cross_week_reservation(service):
    with pytest.raises(HTTPException) as exc:
        _reserve(service, service["alice"], 5, date(2024, 6, 14), date(2024, 6, 17))
    assert exc.value.status_code == 400


def test_prevent_desk_double_booking(service):
    _reserve(service, service["bob"], 12, date(2024, 6, 11), date(2024, 6, 13))

    with pytest.raises(HTTPException) as exc:
        _reserve(service, service["alice"], 12, date(2024, 6, 10), date(2024, 6, 12))
    assert exc.value.status_code == 409

    created = _reserve(service, service["alice"], 13, date(2024, 6, 10), date(2024, 6, 12))
    assert created.desk_number == 13


def test_incomplete_reservation(service):
    with pytest.raises(HTTPException) as exc:
        service["service"].create_reservation(STAFF, ReservationCreate(employee_id=service["alice"].id))
    assert exc.value.status_code == 400
    assert "desk_number" in exc.value.detail


def test_reservation_for_unknown_employee(service):
    with pytest.raises(HTTPException) as exc:
        service["service"].create_reservation(
            STAFF,
            ReservationCreate(
                employee_id="ghost",
                desk_number=2,
                start_date=date(2024, 6, 10),
                end_date=date(2024, 6, 10),
            ),
        )
    assert exc.value.status_code == 404


def test_unknown_employee_on_taken_desk_is_not_found(service):
    _reserve(service, service["bob"], 12, date(2024, 6, 11), date(2024, 6, 13))

    with pytest.raises(HTTPException) as exc:
        service["service"].create_reservation(
            STAFF,
            ReservationCreate(
                employee_id="ghost",
                desk_number=12,
                start_date=date(2024, 6, 11),
                end_date=date(2024, 6, 11),
            ),
        )
    assert exc.value.status_code == 404


def test_stale_read_cannot_double_book(service, monkeypatch):
    repo = service["repo"]
    _reserve(service, service["bob"], 12, date(2024, 6, 11), date(2024, 6, 13))
    monkeypatch.setattr(repo, "list_reservations", lambda: [])

    with pytest.raises(HTTPException) as exc:
        _reserve(service, service["alice"], 12, date(2024, 6, 10), date(2024, 6, 12))
    assert exc.value.status_code == 409

    monkeypatch.undo()
    assert [r.employee_id for r in repo.list_reservations()] == [service["bob"].id]


def test_stale_read_cannot_move_onto_taken_desk(service, monkeypatch):
    repo = service["repo"]
    _reserve(service, service["bob"], 12, date(2024, 6, 11), date(2024, 6, 12))
    moving = _reserve(service, service["alice"], 14, date(2024, 6, 11), date(2024, 6, 12))
    monkeypatch.setattr(repo, "list_reservations", lambda: [])
    monkeypatch.setattr(repo, "get_reservation", lambda rid: moving if rid == moving.id else None)

    with pytest.raises(HTTPException) as exc:
        service["service"].update_reservation(ADMIN, moving.id, ReservationUpdate(desk_number=12))
    assert exc.value.status_code == 409

    # a move that only touches its own dates still passes the locked check
    moved = service["service"].update_reservation(
        ADMIN, moving.id, ReservationUpdate(start_date=date(2024, 6, 10))
    )
    assert moved.desk_number == 14
    assert moved.start_date == date(2024, 6, 10)


def test_desk_number_out_of_range(service):
    with pytest.raises(HTTPException) as exc:
        _reserve(service, service["alice"], 21, date(2024, 6, 10), date(2024, 6, 10))
    assert exc.value.status_code == 400


def test_move_reservation_within_its_own_dates(service):
    created = _reserve(service, service["alice"], 12, date(2024, 6, 11), date(2024, 6, 12))
    svc = service["service"]

    moved = svc.update_reservation(
        ADMIN, created.id, ReservationUpdate(start_date=date(2024, 6, 10))
    )
    assert moved.start_date == date(2024, 6, 10)
    assert moved.desk_number == 12

    with pytest.raises(HTTPException) as exc:
        svc.update_reservation(STAFF, created.id, ReservationUpdate(desk_number=2))
    assert exc.value.status_code == 403


def test_cancel_reservation_requires_admin(service):
    created = _reserve(service, service["alice"], 12, date(2024, 6, 11), date(2024, 6, 12))
    svc = service["service"]
    with pytest.raises(HTTPException) as exc:
        svc.cancel_reservation(STAFF, created.id)
    assert exc.value.status_code == 403

    svc.cancel_reservation(ADMIN, created.id)
    with pytest.raises(HTTPException) as exc:
        svc.cancel_reservation(ADMIN, created.id)
    assert exc.value.status_code == 404


def test_staff_cannot_edit_employees(service):
    with pytest.raises(HTTPException) as exc:
        service["service"].create_employee(STAFF, EmployeeUpsert(first_name="Eve", last_name="Evans"))
    assert exc.value.status_code == 403


def test_inverted_vacation_is_rejected(service):
    svc = service["service"]
    with pytest.raises(HTTPException) as exc:
        svc.create_interval(
            ADMIN,
            "vacations",
            IntervalCreate(
                employee_id=service["alice"].id,
                start_date=date(2024, 6, 14),
                end_date=date(2024, 6, 10),
            ),
        )
    assert exc.value.status_code == 400


def test_vacation_update_checks_merged_range(service):
    svc = service["service"]
    created = svc.create_interval(
        ADMIN,
        "vacations",
        IntervalCreate(
            employee_id=service["alice"].id,
            start_date=date(2024, 6, 10),
            end_date=date(2024, 6, 14),
        ),
    )
    with pytest.raises(HTTPException) as exc:
        svc.update_interval(ADMIN, "vacations", created.id, IntervalUpdate(start_date=date(2024, 6, 20)))
    assert exc.value.status_code == 400

    updated = svc.update_interval(ADMIN, "vacations", created.id, IntervalUpdate(end_date=date(2024, 6, 21)))
    assert updated.end_date == date(2024, 6, 21)


def test_sick_leave_for_unknown_employee(service):
    with pytest.raises(HTTPException) as exc:
        service["service"].create_interval(
            ADMIN,
            "sick_leaves",
            IntervalCreate(employee_id="ghost", start_date=date(2024, 6, 10), end_date=date(2024, 6, 10)),
        )
    assert exc.value.status_code == 404


def test_dashboard_and_capacity(service):
    svc = service["service"]
    svc.create_interval(
        ADMIN,
        "sick_leaves",
        IntervalCreate(
            employee_id=service["carol"].id,
            start_date=date(2024, 6, 10),
            end_date=date(2024, 6, 10),
        ),
    )

    view = svc.dashboard(day=date(2024, 6, 10), status_filter="sick_leave")
    assert [card.employee.id for card in view.employees] == [service["carol"].id]
    assert view.available_today == 19
    assert view.available_tomorrow == 17

    with pytest.raises(HTTPException) as exc:
        svc.dashboard(day=date(2024, 6, 10), status_filter="lunch")
    assert exc.value.status_code == 400

    days = svc.capacity(start=date(2024, 6, 10), days=3)
    assert [d.available_desks for d in days] == [19, 17, 17]


def test_seating_sorted_by_desk(service):
    assert [e.desk_number for e in service["service"].seating()] == [1, 3]


def test_free_desks(service):
    _reserve(service, service["bob"], 2, date(2024, 6, 11), date(2024, 6, 13))
    free = service["service"].free_desks(date(2024, 6, 10), date(2024, 6, 11))
    assert 2 not in free
    assert len(free) == 19


def test_total_desks_must_be_positive(service):
    with pytest.raises(HTTPException) as exc:
        service["service"].set_total_desks(ADMIN, 0)
    assert exc.value.status_code == 400
    assert service["service"].get_total_desks() == 20
