from __future__ import annotations

from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from office_dashboard.config import configure_logging
from office_dashboard.deps import auth_store, bearer_token, change_feed, repo, require_identity, service
from office_dashboard.models import (
    AuthToken,
    CapacityDay,
    ChangesResponse,
    DashboardResponse,
    DeskReservation,
    EmployeeRecord,
    EmployeeUpsert,
    IntervalCreate,
    IntervalUpdate,
    LayoutCreate,
    LoginRequest,
    OfficeLayout,
    ReservationCreate,
    ReservationUpdate,
    SickLeavePeriod,
    StatusFilter,
    TotalDesksUpdate,
    VacationPeriod,
)
from office_dashboard.security import Identity

app = FastAPI(title="Office Dashboard API", version="0.1.0")


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    repo.init_storage()


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/auth/login", response_model=AuthToken)
def login(payload: LoginRequest) -> AuthToken:
    identity = auth_store.authenticate(payload.password)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = auth_store.create_session(identity)
    return AuthToken(token=token, role=identity.role)


@app.post("/api/auth/logout")
def logout(
    identity: Identity = Depends(require_identity),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, str]:
    _ = identity
    token = bearer_token(authorization)
    if token:
        auth_store.logout(token)
    return {"status": "ok"}


@app.get("/api/changes", response_model=ChangesResponse)
def list_changes(
    since: int = Query(default=0, ge=0),
    identity: Identity = Depends(require_identity),
) -> ChangesResponse:
    _ = identity
    return change_feed.since(since)


@app.get("/api/dashboard", response_model=DashboardResponse)
def dashboard(
    day: date | None = Query(default=None),
    status: StatusFilter = Query(default="all"),
    team: str = Query(default="all"),
    identity: Identity = Depends(require_identity),
) -> DashboardResponse:
    _ = identity
    return service.dashboard(day=day, status_filter=status, team_filter=team)


@app.get("/api/capacity", response_model=list[CapacityDay])
def capacity(
    start: date | None = Query(default=None),
    days: int | None = Query(default=None, ge=1, le=366),
    identity: Identity = Depends(require_identity),
) -> list[CapacityDay]:
    _ = identity
    return service.capacity(start=start, days=days)


@app.get("/api/seating", response_model=list[EmployeeRecord])
def seating(identity: Identity = Depends(require_identity)) -> list[EmployeeRecord]:
    _ = identity
    return service.seating()


@app.get("/api/layout", response_model=OfficeLayout | None)
def current_layout(identity: Identity = Depends(require_identity)) -> OfficeLayout | None:
    _ = identity
    return service.current_layout()


@app.post("/api/layout", response_model=OfficeLayout)
def add_layout(payload: LayoutCreate, identity: Identity = Depends(require_identity)) -> OfficeLayout:
    return service.add_layout(actor=identity, image_url=payload.image_url)


@app.delete("/api/layout/{layout_id}")
def delete_layout(layout_id: str, identity: Identity = Depends(require_identity)) -> dict[str, str]:
    service.delete_layout(actor=identity, layout_id=layout_id)
    return {"status": "ok"}


@app.get("/api/employees", response_model=list[EmployeeRecord])
def list_employees(identity: Identity = Depends(require_identity)) -> list[EmployeeRecord]:
    _ = identity
    return service.list_employees()


@app.post("/api/employees", response_model=EmployeeRecord)
def create_employee(payload: EmployeeUpsert, identity: Identity = Depends(require_identity)) -> EmployeeRecord:
    return service.create_employee(actor=identity, data=payload)


@app.put("/api/employees/{employee_id}", response_model=EmployeeRecord)
def update_employee(
    employee_id: str,
    payload: EmployeeUpsert,
    identity: Identity = Depends(require_identity),
) -> EmployeeRecord:
    return service.update_employee(actor=identity, employee_id=employee_id, data=payload)


@app.delete("/api/employees/{employee_id}")
def delete_employee(employee_id: str, identity: Identity = Depends(require_identity)) -> dict[str, str]:
    service.delete_employee(actor=identity, employee_id=employee_id)
    return {"status": "ok"}


@app.get("/api/vacations", response_model=list[VacationPeriod])
def list_vacations(
    employee_id: str | None = Query(default=None),
    identity: Identity = Depends(require_identity),
):
    _ = identity
    return service.list_intervals("vacations", employee_id=employee_id)


@app.post("/api/vacations", response_model=VacationPeriod)
def create_vacation(payload: IntervalCreate, identity: Identity = Depends(require_identity)):
    return service.create_interval(actor=identity, kind="vacations", data=payload)


@app.put("/api/vacations/{interval_id}", response_model=VacationPeriod)
def update_vacation(
    interval_id: str,
    payload: IntervalUpdate,
    identity: Identity = Depends(require_identity),
):
    return service.update_interval(actor=identity, kind="vacations", interval_id=interval_id, data=payload)


@app.delete("/api/vacations/{interval_id}")
def delete_vacation(interval_id: str, identity: Identity = Depends(require_identity)) -> dict[str, str]:
    service.delete_interval(actor=identity, kind="vacations", interval_id=interval_id)
    return {"status": "ok"}


@app.get("/api/sick-leaves", response_model=list[SickLeavePeriod])
def list_sick_leaves(
    employee_id: str | None = Query(default=None),
    identity: Identity = Depends(require_identity),
):
    _ = identity
    return service.list_intervals("sick_leaves", employee_id=employee_id)


@app.post("/api/sick-leaves", response_model=SickLeavePeriod)
def create_sick_leave(payload: IntervalCreate, identity: Identity = Depends(require_identity)):
    return service.create_interval(actor=identity, kind="sick_leaves", data=payload)


@app.put("/api/sick-leaves/{interval_id}", response_model=SickLeavePeriod)
def update_sick_leave(
    interval_id: str,
    payload: IntervalUpdate,
    identity: Identity = Depends(require_identity),
):
    return service.update_interval(actor=identity, kind="sick_leaves", interval_id=interval_id, data=payload)


@app.delete("/api/sick-leaves/{interval_id}")
def delete_sick_leave(interval_id: str, identity: Identity = Depends(require_identity)) -> dict[str, str]:
    service.delete_interval(actor=identity, kind="sick_leaves", interval_id=interval_id)
    return {"status": "ok"}


@app.get("/api/reservations", response_model=list[DeskReservation])
def list_reservations(
    employee_id: str | None = Query(default=None),
    day: date | None = Query(default=None),
    identity: Identity = Depends(require_identity),
):
    _ = identity
    return service.list_reservations(employee_id=employee_id, day=day)


@app.post("/api/reservations", response_model=DeskReservation)
def create_reservation(payload: ReservationCreate, identity: Identity = Depends(require_identity)):
    return service.create_reservation(actor=identity, data=payload)


@app.patch("/api/reservations/{reservation_id}", response_model=DeskReservation)
def patch_reservation(
    reservation_id: str,
    payload: ReservationUpdate,
    identity: Identity = Depends(require_identity),
):
    return service.update_reservation(actor=identity, reservation_id=reservation_id, data=payload)


@app.delete("/api/reservations/{reservation_id}")
def delete_reservation(reservation_id: str, identity: Identity = Depends(require_identity)) -> dict[str, str]:
    service.cancel_reservation(actor=identity, reservation_id=reservation_id)
    return {"status": "ok"}


@app.get("/api/desks/free", response_model=list[int])
def list_free_desks(
    start: date = Query(...),
    end: date = Query(...),
    identity: Identity = Depends(require_identity),
) -> list[int]:
    _ = identity
    return service.free_desks(start=start, end=end)


@app.get("/api/settings/total-desks", response_model=TotalDesksUpdate)
def get_total_desks(identity: Identity = Depends(require_identity)) -> TotalDesksUpdate:
    _ = identity
    return TotalDesksUpdate(total_desks=service.get_total_desks())


@app.put("/api/settings/total-desks", response_model=TotalDesksUpdate)
def set_total_desks(payload: TotalDesksUpdate, identity: Identity = Depends(require_identity)) -> TotalDesksUpdate:
    return TotalDesksUpdate(total_desks=service.set_total_desks(actor=identity, total_desks=payload.total_desks))
