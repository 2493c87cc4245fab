"""Tests for week / period boundary math."""

from datetime import date, datetime, timedelta, timezone

import pytest

from opsboard.metrics.periods import (
    WEEK_END_OFFSET,
    bucket_key,
    period_end,
    previous_range,
    resolve_range,
    to_calendar_date,
    truncate,
    week_end,
    week_start,
    week_windows,
)
from opsboard.models.enums import Granularity, RangeType


def _days(start: date, count: int):
    return [start + timedelta(days=i) for i in range(count)]


@pytest.mark.parametrize("day", _days(date(2024, 12, 23), 21))
def test_week_start_is_monday_and_contains_day(day):
    start = week_start(day)
    end = week_end(start)

    assert start.weekday() == 0
    assert start.time() == datetime.min.time()
    assert start.date() <= day <= end.date()
    assert end - start == timedelta(days=6, hours=23, minutes=59, seconds=59, milliseconds=999)


def test_sunday_belongs_to_preceding_monday():
    sunday = date(2025, 10, 19)
    assert sunday.weekday() == 6
    assert week_start(sunday) == week_start(sunday - timedelta(days=6))
    assert week_start(sunday).date() == date(2025, 10, 13)


def test_week_start_keeps_timezone():
    now = datetime(2025, 10, 22, 15, 30, tzinfo=timezone.utc)
    start = week_start(now)
    assert start == datetime(2025, 10, 20, tzinfo=timezone.utc)
    assert week_end(now) == start + WEEK_END_OFFSET


def test_to_calendar_date_uses_written_day():
    assert to_calendar_date("2025-10-19T23:30:00-05:00") == date(2025, 10, 19)
    assert to_calendar_date("2025-10-19") == date(2025, 10, 19)
    assert to_calendar_date(datetime(2025, 1, 2, 3, 4)) == date(2025, 1, 2)
    assert to_calendar_date(None) is None
    assert to_calendar_date("") is None
    assert to_calendar_date("not a date") is None


def test_truncate_and_bucket_key():
    day = date(2025, 10, 23)
    assert truncate(day, Granularity.DAY) == day
    assert truncate(day, Granularity.WEEK) == date(2025, 10, 20)
    assert truncate(day, Granularity.MONTH) == date(2025, 10, 1)
    assert bucket_key("2025-10-26T08:00:00Z", "week") == "2025-10-20"


def test_week_windows():
    this_week, last_week = week_windows(datetime(2025, 10, 22, 9, 0))
    assert this_week == (date(2025, 10, 20), date(2025, 10, 26))
    assert last_week == (date(2025, 10, 13), date(2025, 10, 19))


def test_week_windows_across_year_boundary():
    this_week, last_week = week_windows(date(2025, 1, 1))
    assert this_week == (date(2024, 12, 30), date(2025, 1, 5))
    assert last_week == (date(2024, 12, 23), date(2024, 12, 29))


def test_previous_range_same_length():
    assert previous_range(date(2025, 10, 20), date(2025, 10, 26)) == (date(2025, 10, 13), date(2025, 10, 19))
    assert previous_range(date(2025, 3, 1), date(2025, 3, 1)) == (date(2025, 2, 28), date(2025, 2, 28))


def test_resolve_range_presets():
    today = date(2024, 2, 14)
    assert resolve_range(RangeType.DAY, today=today) == (today, today)
    assert resolve_range(RangeType.WEEK, today=today) == (date(2024, 2, 12), date(2024, 2, 18))
    assert resolve_range(RangeType.MONTH, today=today) == (date(2024, 2, 1), date(2024, 2, 29))
    assert resolve_range(RangeType.YEAR, today=today) == (date(2024, 1, 1), date(2024, 12, 31))
    assert resolve_range("custom", custom_start="2024-01-05", custom_end=date(2024, 1, 9)) == (
        date(2024, 1, 5),
        date(2024, 1, 9),
    )


def test_resolve_range_custom_errors():
    with pytest.raises(ValueError):
        resolve_range(RangeType.CUSTOM, custom_start=date(2024, 1, 5))
    with pytest.raises(ValueError):
        resolve_range(RangeType.CUSTOM, custom_start=date(2024, 1, 9), custom_end=date(2024, 1, 5))


def test_period_end():
    assert period_end(date(2025, 10, 22), Granularity.DAY) == date(2025, 10, 22)
    assert period_end(date(2025, 10, 22), Granularity.WEEK) == date(2025, 10, 26)
    assert period_end(date(2025, 12, 5), Granularity.MONTH) == date(2025, 12, 31)
