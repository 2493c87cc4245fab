"""
Week / Period Boundary Calculator

Canonical Monday-Sunday week windows and day/week/month bucket keys.

All bucket math works on calendar (year, month, day) components. A timestamp
is reduced to its calendar date before any truncation, so the caller's local
timezone never shifts a row into a neighbouring bucket.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Tuple, Union

from opsboard.models.enums import Granularity, RangeType

DateLike = Union[date, datetime]

WEEK_END_OFFSET = timedelta(days=6, hours=23, minutes=59, seconds=59, milliseconds=999)


def to_calendar_date(value: Any) -> Optional[date]:
    """
    Reduce a date, datetime or ISO-8601 string to a calendar date.

    Strings keep the calendar day they were written with: "2025-10-19T23:30:00-05:00"
    is October 19th regardless of the server timezone.

    Returns None for empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) < 10:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def week_start(reference: DateLike) -> datetime:
    """
    Monday 00:00 of the week containing `reference`.

    Sunday is the last day of its week, so a Sunday resolves to the Monday
    six days earlier.
    """
    day = to_calendar_date(reference)
    # weekday(): Monday=0 .. Sunday=6
    monday = day - timedelta(days=day.weekday())
    tzinfo = reference.tzinfo if isinstance(reference, datetime) else None
    return datetime.combine(monday, time.min, tzinfo=tzinfo)


def week_end(reference: DateLike) -> datetime:
    """Sunday 23:59:59.999 of the week containing `reference`."""
    return week_start(reference) + WEEK_END_OFFSET


def truncate(reference: DateLike, granularity: Granularity) -> date:
    """Truncate to day, ISO-week start (Monday) or calendar-month start."""
    day = to_calendar_date(reference)
    granularity = Granularity(granularity)

    if granularity == Granularity.DAY:
        return day
    elif granularity == Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def bucket_key(reference: DateLike, granularity: Granularity) -> str:
    """Bucket key (YYYY-MM-DD) for a row date at the given granularity."""
    return truncate(reference, granularity).isoformat()


def week_windows(now: DateLike) -> Tuple[Tuple[date, date], Tuple[date, date]]:
    """
    This week and last week as inclusive (start, end) calendar dates.

    Returns:
        ((this_week_start, this_week_end), (last_week_start, last_week_end))
    """
    this_start = week_start(now).date()
    this_end = this_start + timedelta(days=6)
    last_start = this_start - timedelta(days=7)
    last_end = this_end - timedelta(days=7)
    return (this_start, this_end), (last_start, last_end)


def previous_range(start: date, end: date) -> Tuple[date, date]:
    """Same-length window ending the day before `start`."""
    length = (end - start).days + 1
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=length - 1)
    return prev_start, prev_end


def resolve_range(
    range_type: RangeType,
    today: Optional[date] = None,
    custom_start: Optional[DateLike] = None,
    custom_end: Optional[DateLike] = None
) -> Tuple[date, date]:
    """
    Resolve a range preset to inclusive (start, end) dates.

    Raises:
        ValueError: custom range without both bounds, or start after end
    """
    today = today or date.today()
    range_type = RangeType(range_type)

    if range_type == RangeType.DAY:
        return today, today

    elif range_type == RangeType.WEEK:
        monday = truncate(today, Granularity.WEEK)
        return monday, monday + timedelta(days=6)

    elif range_type == RangeType.MONTH:
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)

    elif range_type == RangeType.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    start = to_calendar_date(custom_start)
    end = to_calendar_date(custom_end)
    if not start or not end:
        raise ValueError("start and end required for custom range")
    if start > end:
        raise ValueError(f"start ({start}) is after end ({end})")
    return start, end


def period_end(reference: DateLike, granularity: Granularity) -> date:
    """Last calendar day of the bucket containing `reference`."""
    start = truncate(reference, granularity)
    granularity = Granularity(granularity)

    if granularity == Granularity.DAY:
        return start
    elif granularity == Granularity.WEEK:
        return start + timedelta(days=6)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return next_month - timedelta(days=1)
