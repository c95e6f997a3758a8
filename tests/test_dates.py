from datetime import date

import pytest

from choreloop.dates import (
    DateRange,
    Weekday,
    day_of_week,
    days_between,
    month_days,
    month_range,
    next_month,
    parse_iso,
    prev_month,
    previous_day,
    to_iso,
    week_range,
)
from choreloop.exceptions import ValidationError
from choreloop.models import Schedule


def test_iso_formatting_and_parsing() -> None:
    assert to_iso(date(2024, 3, 5)) == "2024-03-05"
    assert to_iso("2024-03-05T18:45:00") == "2024-03-05"
    assert parse_iso("2024-02-29") == date(2024, 2, 29)

    with pytest.raises(ValidationError):
        parse_iso("2024-02-30")
    with pytest.raises(ValidationError):
        parse_iso("yesterday")


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week("2024-03-03") == Weekday.SUNDAY == 0
    assert day_of_week("2024-03-04") == Weekday.MONDAY
    assert day_of_week("2024-03-09") == Weekday.SATURDAY == 6


def test_previous_day_and_inclusive_span() -> None:
    assert previous_day("2024-03-01") == "2024-02-29"
    assert list(days_between("2024-02-28", "2024-03-01")) == ["2024-02-28", "2024-02-29", "2024-03-01"]
    assert list(days_between("2024-03-02", "2024-03-01")) == []


def test_week_range_starts_on_sunday() -> None:
    wednesday = week_range(date(2024, 3, 6))
    assert wednesday == DateRange("2024-03-03", "2024-03-09")
    assert week_range("2024-03-03") == wednesday
    assert week_range("2024-03-09") == wednesday
    assert week_range("2024-03-10").start_iso == "2024-03-10"


def test_month_helpers() -> None:
    assert month_range("2024-02-10") == DateRange("2024-02-01", "2024-02-29")
    assert len(month_days(2024, 2)) == 29
    days = month_days(2023, 2)
    assert len(days) == 28
    assert days[0] == date(2023, 2, 1)
    assert list(days) == sorted(days)
    assert prev_month(2024, 1) == (2023, 12)
    assert next_month(2024, 12) == (2025, 1)
    assert next_month(2024, 5) == (2024, 6)

    with pytest.raises(ValidationError):
        month_days(2024, 13)


def test_date_range_contains_is_inclusive() -> None:
    window = DateRange("2024-03-05", "2024-03-08")
    assert window.contains("2024-03-05")
    assert window.contains("2024-03-08T23:59:00")
    assert not window.contains(date(2024, 3, 9))


def test_schedule_due_dates() -> None:
    assert Schedule.daily().is_due("2024-03-05")

    weekly = Schedule.weekly([Weekday.MONDAY, Weekday.WEDNESDAY])
    assert weekly.is_due("2024-03-04")
    assert not weekly.is_due("2024-03-05")
    assert weekly.is_due("2024-03-06")

    custom = Schedule.on_dates(["2024-03-05"])
    assert custom.is_due("2024-03-05")
    assert not custom.is_due("2024-03-06")

    with pytest.raises(ValidationError):
        Schedule.weekly([7])
