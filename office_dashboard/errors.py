from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class DomainError(Exception):
    def message(self) -> str:
        raise NotImplementedError()


@dataclass
class InvalidInterval(DomainError):
    """
    Raised when a vacation, sick leave or reservation starts after it ends.
    """

    start_date: date
    end_date: date

    def message(self) -> str:
        return f"Start date {self.start_date} is after end date {self.end_date}."


@dataclass
class RecordNotFound(DomainError):
    kind: str
    record_id: str

    def message(self) -> str:
        return f"{self.kind.capitalize()} {self.record_id} not found."


class ReservationError(DomainError):
    """
    Base class for reservation requests turned down by the allocator.
    """


@dataclass
class IncompleteRequest(ReservationError):
    missing: list[str]

    def message(self) -> str:
        return f"Missing required fields: {', '.join(self.missing)}."


@dataclass
class CrossWeekSpan(ReservationError):
    start_date: date
    end_date: date

    def message(self) -> str:
        return f"Reservation {self.start_date}..{self.end_date} spans more than one week."


@dataclass
class DeskUnavailable(ReservationError):
    desk_number: int
    start_date: date
    end_date: date
    conflicting_id: str | None = None

    def message(self) -> str:
        return f"Desk {self.desk_number} is already reserved between {self.start_date} and {self.end_date}."
