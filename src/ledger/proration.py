"""Month-by-month proration of rent over a tenancy period.

Proration is a step function, not a linear split:
- occupied the whole month or at least ``full_month_min_days`` → full rent
- occupied at least one day → ``partial_fraction`` of the rent
- otherwise nothing

Days are counted on half-open ranges, so a period [start, end) occupies the
days start .. end - 1, and only days strictly before the evaluation day have
elapsed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterator, Sequence

from src.ledger.models import RentChange, TenancyPeriod
from src.ledger.rent_schedule import effective_rent
from src.utils.dates import days_in_month, iter_months, month_bounds


@dataclass
class ProrationConfig:
    """Thresholds of the proration step rule."""

    full_month_min_days: int = 16   # Occupancy past mid-month bills in full
    partial_fraction: float = 0.5   # Share of rent billed for a short month


@dataclass(frozen=True)
class MonthLine:
    """One billed month of a tenancy period."""

    year: int
    month: int
    days_occupied: int
    days_in_month: int
    rent: float
    expected: float


def occupied_days(
    month_start: date,
    month_end: date,
    period_start: date,
    period_end: date,
    as_of: date,
) -> int:
    """Days of [month_start, month_end) inside [period_start, period_end) and before ``as_of``."""
    lo = max(month_start, period_start)
    hi = min(month_end, period_end, as_of)
    return max(0, (hi - lo).days)


def monthly_expected(
    month_start: date,
    month_end: date,
    period_start: date,
    period_end: date,
    full_rent: float,
    as_of: date,
    cfg: ProrationConfig | None = None,
) -> float:
    """Rent owed for one calendar month of one tenancy period.

    Args:
        month_start: First day of the month.
        month_end: First day of the following month (exclusive).
        period_start: First occupied day.
        period_end: Day the occupancy ended (exclusive).
        full_rent: Monthly rent applicable to this month.
        as_of: Evaluation day; it and later days are never billed.
        cfg: Proration thresholds.

    Returns:
        Full rent, the partial fraction of it, or zero.
    """
    cfg = cfg or ProrationConfig()
    days = occupied_days(month_start, month_end, period_start, period_end, as_of)
    month_length = (month_end - month_start).days

    if days >= month_length:
        return full_rent
    if days >= cfg.full_month_min_days:
        return full_rent
    if days >= 1:
        return full_rent * cfg.partial_fraction
    return 0.0


def monthly_breakdown(
    period: TenancyPeriod,
    rent_changes: Sequence[RentChange],
    fallback_rent: float,
    as_of: date,
    cfg: ProrationConfig | None = None,
) -> Iterator[MonthLine]:
    """Yield a MonthLine for every month of ``period`` that has elapsed days."""
    cfg = cfg or ProrationConfig()
    billed_end = min(period.end, as_of)

    for year, month in iter_months(period.start, billed_end):
        month_start, month_end = month_bounds(year, month)
        rent = effective_rent(year, month, rent_changes, fallback_rent)
        yield MonthLine(
            year=year,
            month=month,
            days_occupied=occupied_days(month_start, month_end, period.start, period.end, as_of),
            days_in_month=days_in_month(year, month),
            rent=rent,
            expected=monthly_expected(
                month_start, month_end, period.start, period.end, rent, as_of, cfg
            ),
        )


def period_expected_rent(
    period: TenancyPeriod,
    rent_changes: Sequence[RentChange],
    fallback_rent: float,
    as_of: date,
    cfg: ProrationConfig | None = None,
) -> float:
    """Total rent expected for a tenancy period up to ``as_of``.

    Periods without a property (the tenant was unassigned) carry no rent.
    """
    if period.property_id is None:
        return 0.0
    lines = monthly_breakdown(period, rent_changes, fallback_rent, as_of, cfg)
    return sum((line.expected for line in lines), 0.0)
