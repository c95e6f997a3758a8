"""Calendar helpers working on local calendar dates encoded as ``YYYY-MM-DD``."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Iterator, Tuple, Union

from .exceptions import ValidationError

DateLike = Union[date, datetime, str]


class Weekday(IntEnum):
    """Days of the week as stored in weekly schedules (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        # ``date.weekday`` counts from Monday.
        return cls((day.weekday() + 1) % 7)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start_iso: str
    end_iso: str

    def contains(self, value: DateLike) -> bool:
        return self.start_iso <= to_iso(value) <= self.end_iso


def to_iso(value: DateLike) -> str:
    """Return ``value`` formatted as ``YYYY-MM-DD``."""

    if isinstance(value, str):
        return parse_iso(value).isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()


def parse_iso(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (a trailing ``T...`` time part is ignored)."""

    try:
        if len(value) > 10 and value[10] in "T ":
            value = value[:10]
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid ISO date: {value!r}") from exc


def today_iso() -> str:
    return date.today().isoformat()


def day_of_week(date_iso: str) -> int:
    return int(Weekday.from_date(parse_iso(date_iso)))


def previous_day(date_iso: str) -> str:
    return (parse_iso(date_iso) - timedelta(days=1)).isoformat()


def days_between(start_iso: str, end_iso: str) -> Iterator[str]:
    """Yield every date from ``start_iso`` to ``end_iso`` inclusive."""

    current = parse_iso(start_iso)
    end = parse_iso(end_iso)
    while current <= end:
        yield current.isoformat()
        current += timedelta(days=1)


def month_days(year: int, month: int) -> Tuple[date, ...]:
    """Return every day of ``month`` (1-12) in ascending order."""

    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}.")
    _, length = calendar.monthrange(year, month)
    return tuple(date(year, month, day) for day in range(1, length + 1))


def prev_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def week_range(value: DateLike) -> DateRange:
    """Return the Sunday-to-Saturday week containing ``value``."""

    day = parse_iso(to_iso(value))
    start = day - timedelta(days=int(Weekday.from_date(day)))
    return DateRange(start.isoformat(), (start + timedelta(days=6)).isoformat())


def month_range(value: DateLike) -> DateRange:
    day = parse_iso(to_iso(value))
    days = month_days(day.year, day.month)
    return DateRange(days[0].isoformat(), days[-1].isoformat())


__all__ = [
    "DateRange",
    "Weekday",
    "day_of_week",
    "days_between",
    "month_days",
    "month_range",
    "next_month",
    "parse_iso",
    "prev_month",
    "previous_day",
    "to_iso",
    "today_iso",
    "week_range",
]
