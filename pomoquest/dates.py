"""Calendar helpers for streaks, weeks and formatting."""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Union

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def format_date(value: DateLike) -> str:
    """Format a date as YYYY-MM-DD."""
    return _as_date(value).isoformat()


def parse_date(date_str: str) -> date:
    """Parse YYYY-MM-DD as a local calendar date.

    Args:
        date_str: Date string, optionally followed by a time part

    Returns:
        Calendar date with no timezone attached
    """
    return date.fromisoformat(date_str[:10])


def get_week_start(value: DateLike) -> date:
    """Return the Monday of the week containing the given day.

    Sunday is the last day of its week, not the first.
    """
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def get_week_range(value: DateLike) -> tuple[datetime, datetime]:
    """Return Monday 00:00:00 and Sunday 23:59:59.999999 of the week."""
    monday = get_week_start(value)
    sunday = monday + timedelta(days=6)
    return datetime.combine(monday, time.min), datetime.combine(sunday, time.max)


def week_days(value: DateLike) -> list[date]:
    """Return the seven dates of the week containing the given day."""
    monday = get_week_start(value)
    return [monday + timedelta(days=i) for i in range(7)]


def is_weekend(value: DateLike) -> bool:
    return _as_date(value).weekday() >= 5


def calculate_streaks(dates: Iterable[str], today: DateLike) -> tuple[int, int]:
    """Calculate current and best streaks from active dates.

    The current streak counts back from today, or from yesterday when today
    has no activity yet.

    Args:
        dates: Active dates in YYYY-MM-DD format (duplicates allowed)
        today: Reference day

    Returns:
        Tuple of (current streak, best streak)
    """
    active = {parse_date(d) for d in dates}
    if not active:
        return 0, 0

    today = _as_date(today)
    yesterday = today - timedelta(days=1)

    current = 0
    if today in active or yesterday in active:
        check = today if today in active else yesterday
        while check in active:
            current += 1
            check -= timedelta(days=1)

    best = 0
    run = 0
    previous = None
    for day in sorted(active):
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return current, best


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS.

    Args:
        seconds: Number of seconds

    Returns:
        Formatted time string
    """
    minutes = seconds // 60
    secs = seconds % 60
    return f"{minutes:02d}:{secs:02d}"


def format_minutes(minutes: int) -> str:
    """Format minutes as '45 min', '2h' or '2h 5min'."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}min" if mins else f"{hours}h"
