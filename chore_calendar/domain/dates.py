from __future__ import annotations

import re
from datetime import date, datetime, timedelta

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
CALENDAR_CELLS = 35


def format_date_iso(value: date) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")


def is_iso_date(value: str) -> bool:
    return bool(DATE_PATTERN.fullmatch(value))


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not is_iso_date(value):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {value!r}")
    return date.fromisoformat(value)


def add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, days_in_month(year, month))
    return date(year, month, day)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def month_window(month: date, buffer_months: int = 1) -> tuple[date, date]:
    start = add_months(start_of_month(month), -buffer_months)
    end = add_months(start_of_month(month), buffer_months + 1)
    return start, end


def calendar_days(month: date, week_starts_on: int = 0) -> list[date]:
    # week_starts_on: 0 = Sunday, 1 = Monday
    first = start_of_month(month)
    offset = (first.isoweekday() % 7 - week_starts_on) % 7
    grid_start = first - timedelta(days=offset)
    return [grid_start + timedelta(days=index) for index in range(CALENDAR_CELLS)]
