from __future__ import annotations

from datetime import date, datetime

import pytest

from chore_calendar.domain.dates import (
    add_months,
    calendar_days,
    format_date_iso,
    month_window,
    parse_date,
)


def test_parse_date_is_strict_about_strings() -> None:
    assert parse_date("2026-02-01") == date(2026, 2, 1)
    assert parse_date(datetime(2026, 2, 1, 18, 30)) == date(2026, 2, 1)

    for bad in ("2026-02-01T00:00:00Z", "20260201", "2026-2-1", ""):
        with pytest.raises(ValueError):
            parse_date(bad)


def test_format_date_iso_drops_time() -> None:
    assert format_date_iso(datetime(2026, 2, 1, 23, 59)) == "2026-02-01"


def test_add_months_clamps_and_crosses_years() -> None:
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2026, 12, 15), 1) == date(2027, 1, 15)
    assert add_months(date(2026, 3, 31), -1) == date(2026, 2, 28)


def test_month_window_pads_each_side() -> None:
    assert month_window(date(2026, 3, 17)) == (date(2026, 2, 1), date(2026, 5, 1))
    assert month_window(date(2026, 1, 5), buffer_months=0) == (date(2026, 1, 1), date(2026, 2, 1))


def test_calendar_days_respects_week_start() -> None:
    sunday_first = calendar_days(date(2026, 2, 14))
    monday_first = calendar_days(date(2026, 2, 14), week_starts_on=1)

    assert len(sunday_first) == 35
    assert sunday_first[0] == date(2026, 2, 1)
    assert sunday_first[-1] == date(2026, 3, 7)
    assert monday_first[0] == date(2026, 1, 26)
