from __future__ import annotations

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from office_dashboard.constants import DAY_NAMES
from office_dashboard.errors import InvalidInterval


def utcnow() -> datetime:
    return datetime.utcnow()


def today() -> date:
    return utcnow().date()


def as_day(value: date | datetime | str) -> date:
    """
    Truncates a date, datetime or ISO string to its calendar day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) > 10 and text[10] in "T ":
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


@dataclass(frozen=True)
class DateInterval:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: DateInterval) -> bool:
        return self.start <= other.end and self.end >= other.start

    def days(self) -> Iterator[date]:
        cursor = self.start
        while cursor <= self.end:
            yield cursor
            cursor += timedelta(days=1)

    def __len__(self) -> int:
        return max((self.end - self.start).days + 1, 0)


def validate_interval(start: date, end: date) -> DateInterval:
    if start > end:
        raise InvalidInterval(start_date=start, end_date=end)
    return DateInterval(start, end)


def day_name(value: date) -> str:
    # date.weekday() is Mon=0; names are indexed Sun=0
    return DAY_NAMES[(value.weekday() + 1) % 7]


def week_start_of(value: date, week_start: int = 0) -> date:
    return value - timedelta(days=(value.weekday() - week_start) % 7)


def same_week(first: date, second: date, week_start: int = 0) -> bool:
    return week_start_of(first, week_start) == week_start_of(second, week_start)


def _occurrence(birthday: date, year: int) -> date:
    # Feb 29 birthdays are celebrated on Feb 28 in common years
    day = min(birthday.day, calendar.monthrange(year, birthday.month)[1])
    return date(year, birthday.month, day)


def is_birthday_soon(birthday: date | None, current: date, window_days: int = 5) -> bool:
    """
    True when the next occurrence of the birthday falls within
    [current, current + window_days]. The window may cross New Year.
    """
    if birthday is None:
        return False
    horizon = current + timedelta(days=window_days)
    for year in (current.year, current.year + 1):
        if current <= _occurrence(birthday, year) <= horizon:
            return True
    return False
