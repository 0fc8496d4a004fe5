"""History segmentation: assignment log → ordered tenancy periods.

Each history entry opens a period that lasts until the next entry (or until the
effective end of the tenancy). The tenant's live assignment acts as one more
entry after the last logged one whenever it differs from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from src.ledger.models import TenancyPeriod, TenantSnapshot
from src.utils.dates import to_day, to_utc

logger = logging.getLogger(__name__)


def normalize_id(value: Any) -> str | None:
    """Reduce a reference to a plain identifier string.

    References arrive either as raw ids or as populated documents
    (``{"_id": ...}``, ``{"id": ...}`` or objects with an ``id`` attribute).
    """
    if value is None:
        return None
    if isinstance(value, dict):
        for key in ("_id", "id"):
            if key in value:
                return normalize_id(value[key])
        return None
    if isinstance(value, (str, int)):
        text = str(value).strip()
        return text or None
    for attr in ("_id", "id"):
        inner = getattr(value, attr, None)
        if inner is not None:
            return normalize_id(inner)
    return str(value)


@dataclass(frozen=True)
class _Boundary:
    property_id: str | None
    unit_id: str | None
    opens: date


def _boundaries(tenant: TenantSnapshot) -> list[_Boundary]:
    """History entries plus the live assignment, as ordered period openings."""
    history = sorted(tenant.tenant_history, key=lambda e: to_utc(e.updated_at))
    if not history:
        return []

    start = to_day(tenant.starting_date) if tenant.starting_date else None
    bounds: list[_Boundary] = []
    for i, entry in enumerate(history):
        opens = to_day(entry.updated_at)
        if start is not None:
            if i == 0:
                opens = start
            elif opens < start:
                logger.warning(
                    "Assignment entry at %s precedes starting date %s; clamped",
                    entry.updated_at, start,
                )
                opens = start
        bounds.append(
            _Boundary(normalize_id(entry.property_id), normalize_id(entry.unit_id), opens)
        )

    live_property = normalize_id(tenant.property_id)
    if live_property != bounds[-1].property_id:
        bounds.append(
            _Boundary(
                live_property,
                normalize_id(tenant.unit_id),
                max(to_day(history[-1].updated_at), bounds[-1].opens),
            )
        )
    return bounds


def _tenancy_start(tenant: TenantSnapshot) -> date | None:
    if tenant.starting_date is not None:
        return to_day(tenant.starting_date)
    if tenant.tenant_history:
        return to_day(min((e.updated_at for e in tenant.tenant_history), key=to_utc))
    return None


def end_inferred_from_history(tenant: TenantSnapshot) -> bool:
    """True when the tenant is unassigned and the history tells when that happened."""
    return (
        tenant.ending_date is None
        and normalize_id(tenant.property_id) is None
        and bool(tenant.tenant_history)
    )


def effective_end(tenant: TenantSnapshot, as_of: date) -> date:
    """Day the tenancy stopped accruing rent (exclusive).

    ``ending_date`` when set; otherwise, for an unassigned tenant, the opening of
    the trailing unassigned stretch of the history; otherwise ``as_of``.
    """
    if tenant.ending_date is not None:
        return to_day(tenant.ending_date)

    if end_inferred_from_history(tenant):
        bounds = _boundaries(tenant)
        cut = len(bounds)
        while cut > 0 and bounds[cut - 1].property_id is None:
            cut -= 1
        if cut < len(bounds):
            return min(bounds[cut].opens, as_of)

    return as_of


def _merge(periods: list[TenancyPeriod]) -> list[TenancyPeriod]:
    merged: list[TenancyPeriod] = []
    for period in periods:
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and period.property_id is not None
            and prev.property_id == period.property_id
            and prev.end >= period.start
        ):
            merged[-1] = TenancyPeriod(
                property_id=prev.property_id,
                start=min(prev.start, period.start),
                end=max(prev.end, period.end),
                unit_id=period.unit_id,
            )
        else:
            merged.append(period)
    return merged


def segments(tenant: TenantSnapshot, as_of: date) -> list[TenancyPeriod]:
    """Split a tenant's history into ordered, non-overlapping tenancy periods.

    Args:
        tenant: Tenant snapshot.
        as_of: Evaluation day.

    Returns:
        Periods in chronological order. Empty if the tenancy never started.
    """
    start = _tenancy_start(tenant)
    if start is None:
        return []
    end = effective_end(tenant, as_of)

    bounds = _boundaries(tenant)
    if not bounds:
        live_property = normalize_id(tenant.property_id)
        if live_property is None:
            # Started but never placed: nothing to bill yet
            return []
        bounds = [_Boundary(live_property, normalize_id(tenant.unit_id), start)]

    periods: list[TenancyPeriod] = []
    for i, bound in enumerate(bounds):
        closes = bounds[i + 1].opens if i + 1 < len(bounds) else end
        period = TenancyPeriod(
            property_id=bound.property_id,
            start=bound.opens,
            end=min(closes, end),
            unit_id=bound.unit_id,
        )
        if period.days <= 0:
            logger.debug("Dropping empty period %s", period)
            continue
        periods.append(period)

    periods = _merge(periods)
    logger.debug("Segmented tenant %s into %d period(s)", tenant.tenant_id, len(periods))
    return periods
