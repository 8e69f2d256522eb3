from __future__ import annotations

from datetime import date as DateType, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, Field

from office_dashboard.domain import DateInterval, as_day


DayName = Literal["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
StatusFilter = Literal["all", "office", "remote", "vacation", "upcoming_vacation", "sick_leave"]


def _truncate_day(value: object) -> object:
    if value is None or value == "":
        return None
    if isinstance(value, (DateType, datetime, str)):
        return as_day(value)
    return value


Day = Annotated[DateType, BeforeValidator(_truncate_day)]
OptionalDay = Annotated[DateType | None, BeforeValidator(_truncate_day)]


class EmployeeRecord(BaseModel):
    id: str
    first_name: str
    last_name: str
    middle_name: str | None = None
    position: str | None = None
    team: str | None = None
    desk_number: int | None = None
    phone: str | None = None
    birthday: OptionalDay = None
    remote_days: list[DayName] = Field(default_factory=list)
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.last_name, self.first_name, self.middle_name) if part)


class IntervalRecord(BaseModel):
    id: str
    employee_id: str
    start_date: Day
    end_date: Day
    created_at: datetime | None = None

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.start_date, self.end_date)


class VacationPeriod(IntervalRecord):
    pass


class SickLeavePeriod(IntervalRecord):
    pass


class DeskReservation(IntervalRecord):
    desk_number: int


class OfficeLayout(BaseModel):
    id: str
    image_url: str
    created_at: datetime


class Snapshot(BaseModel):
    """
    Everything the dashboard computations need, read from the store at one point in time.
    """

    employees: list[EmployeeRecord] = Field(default_factory=list)
    vacations: list[VacationPeriod] = Field(default_factory=list)
    sick_leaves: list[SickLeavePeriod] = Field(default_factory=list)
    reservations: list[DeskReservation] = Field(default_factory=list)
    total_desks: int


class LoginRequest(BaseModel):
    password: str = Field(min_length=1)


class AuthToken(BaseModel):
    token: str
    role: Literal["admin", "user"]


class EmployeeUpsert(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    middle_name: str | None = None
    position: str | None = None
    team: str | None = None
    desk_number: int | None = Field(default=None, ge=1)
    phone: str | None = None
    birthday: OptionalDay = None
    remote_days: list[DayName] = Field(default_factory=list)


class IntervalCreate(BaseModel):
    employee_id: str
    start_date: Day
    end_date: Day


class IntervalUpdate(BaseModel):
    start_date: OptionalDay = None
    end_date: OptionalDay = None


class ReservationCreate(BaseModel):
    # Left optional so that incomplete requests reach the allocator
    employee_id: str | None = None
    desk_number: int | None = None
    start_date: OptionalDay = None
    end_date: OptionalDay = None


class ReservationUpdate(BaseModel):
    desk_number: int | None = None
    start_date: OptionalDay = None
    end_date: OptionalDay = None


class TotalDesksUpdate(BaseModel):
    total_desks: int = Field(gt=0)


class LayoutCreate(BaseModel):
    image_url: str = Field(min_length=1)


class EmployeeCard(BaseModel):
    employee: EmployeeRecord
    status: str
    birthday_soon: bool = False
    current_vacation: VacationPeriod | None = None
    upcoming_vacation: VacationPeriod | None = None
    reserved_desk: int | None = None


class CapacityDay(BaseModel):
    date: DateType
    available_desks: int


class DashboardResponse(BaseModel):
    day: DateType
    status_filter: str
    team_filter: str
    total_desks: int
    available_today: int
    available_tomorrow: int
    total_employees: int
    status_counts: dict[str, int]
    team_counts: dict[str, int]
    employees: list[EmployeeCard]


class ChangeRecord(BaseModel):
    revision: int
    table: str
    action: Literal["insert", "update", "delete"]
    record_id: str


class ChangesResponse(BaseModel):
    revision: int
    changes: list[ChangeRecord]
