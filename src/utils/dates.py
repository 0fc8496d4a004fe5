"""Calendar helpers shared by the ledger modules.

All instants are interpreted in UTC. Naive datetimes are assumed to already be
UTC; billing itself works on calendar days.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Iterator


def to_utc(value: datetime | date) -> datetime:
    """Return an aware UTC datetime for a date or datetime."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_day(value: datetime | date) -> date:
    """Calendar day (UTC) of an instant."""
    if not isinstance(value, datetime):
        return value
    return to_utc(value).date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def next_month(day: date) -> date:
    """First day of the month after ``day``'s month."""
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Half-open bounds [first day, first day of next month)."""
    first = date(year, month, 1)
    return first, next_month(first)


def iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """Yield (year, month) for every month touched by the half-open range [start, end)."""
    current = date(start.year, start.month, 1)
    while current < end:
        yield current.year, current.month
        current = next_month(current)
