from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterator

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time {value!r} (expected HH:mm)")


def format_hhmm(value: datetime | time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def minutes_since_midnight(value: datetime | time | str) -> int:
    """Minutes since midnight; seconds are truncated."""
    if isinstance(value, str):
        value = parse_hhmm(value)
    return value.hour * 60 + value.minute


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_bounds(month: int, year: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_weekdays(start: date, end: date) -> int:
    """Count Monday..Friday dates in the inclusive range."""
    return sum(1 for d in iter_days(start, end) if d.weekday() < 5)
