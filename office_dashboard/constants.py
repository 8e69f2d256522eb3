from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    VACATION = "vacation"
    UPCOMING_VACATION = "upcoming_vacation"
    SICK_LEAVE = "sick_leave"


ALL = "all"

# Display order of the status cards
STATUS_ORDER = [
    Status.OFFICE,
    Status.REMOTE,
    Status.VACATION,
    Status.SICK_LEAVE,
    Status.UPCOMING_VACATION,
]

# Sunday=0 .. Saturday=6
DAY_NAMES = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]

ROLE_ADMIN = "admin"
ROLE_USER = "user"

TOTAL_DESKS_KEY = "total_desks"

SHEETS = ["employees", "vacations", "sick_leaves", "reservations", "settings", "layouts"]

EMPLOYEES_HEADERS = [
    "id",
    "first_name",
    "last_name",
    "middle_name",
    "position",
    "team",
    "desk_number",
    "phone",
    "birthday",
    "remote_days",
    "created_at",
]
INTERVAL_HEADERS = ["id", "employee_id", "start_date", "end_date", "created_at"]
RESERVATIONS_HEADERS = [
    "id",
    "employee_id",
    "desk_number",
    "start_date",
    "end_date",
    "created_at",
]
SETTINGS_HEADERS = ["setting_key", "setting_value"]
LAYOUTS_HEADERS = ["id", "image_url", "created_at"]
