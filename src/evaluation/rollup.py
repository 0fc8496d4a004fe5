"""Portfolio rollup of per-period billing results.

Evaluates every tenant with the per-property call shape and sums the results
by property, the way the landlord overview presents them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Collection, Iterable, Mapping, Sequence

import pandas as pd

from src.ledger.engine import compute_property_overview
from src.ledger.errors import DataInconsistencyError, ValidationError
from src.ledger.models import PeriodResult, TenantSnapshot
from src.utils.config import EngineConfig

logger = logging.getLogger(__name__)

PERIOD_COLUMNS = [
    "tenant_id",
    "property_id",
    "start",
    "end",
    "status",
    "expected_rent",
    "electricity_cost",
    "rent_paid",
    "electricity_paid",
    "due",
    "overpaid",
]


def evaluate_portfolio(
    tenants: Iterable[TenantSnapshot],
    as_of: datetime | date | None = None,
    config: EngineConfig | None = None,
    owned_property_ids: Collection[str] | None = None,
    skip_invalid: bool = False,
) -> dict[str, list[PeriodResult]]:
    """Per-period results for every tenant, keyed by tenant id.

    Args:
        tenants: Tenant snapshots.
        as_of: Shared evaluation instant.
        config: Engine configuration.
        owned_property_ids: The landlord's properties, for ownership checks.
        skip_invalid: Log and skip tenants with invalid or inconsistent data
            instead of raising.

    Returns:
        Mapping of tenant id → list of PeriodResult.
    """
    results: dict[str, list[PeriodResult]] = {}
    for i, tenant in enumerate(tenants):
        key = tenant.tenant_id or f"tenant-{i}"
        try:
            results[key] = compute_property_overview(tenant, as_of, config, owned_property_ids)
        except (ValidationError, DataInconsistencyError) as exc:
            if not skip_invalid:
                raise
            logger.warning("Skipping tenant %s: %s", key, exc)
    return results


def period_frame(results: Mapping[str, Sequence[PeriodResult]]) -> pd.DataFrame:
    """Flatten per-tenant period results into one row per (tenant, period)."""
    rows = []
    for tenant_id, periods in results.items():
        for r in periods:
            rows.append({
                "tenant_id": tenant_id,
                "property_id": r.property_id,
                "start": r.period.start if r.period else None,
                "end": r.period.end if r.period else None,
                "status": r.status.value,
                "expected_rent": r.total_expected_rent,
                "electricity_cost": r.total_electricity_cost,
                "rent_paid": r.total_rent_paid,
                "electricity_paid": r.total_electricity_paid,
                "due": r.due,
                "overpaid": r.overpaid,
            })
    return pd.DataFrame(rows, columns=PERIOD_COLUMNS)


def rollup_by_property(
    frame: pd.DataFrame,
    property_names: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Sum period rows by property.

    Periods without a property (unassigned stretches) are left out.

    Returns:
        One row per property with total_tenants, total_rent_collected,
        total_due, total_overpaid, total_expected_rent and
        total_expected_electricity.
    """
    assigned = frame[frame["property_id"].notna()].copy()
    assigned["collected"] = assigned["rent_paid"] + assigned["electricity_paid"]

    summary = (
        assigned.groupby("property_id", sort=True)
        .agg(
            total_tenants=("tenant_id", "nunique"),
            total_rent_collected=("collected", "sum"),
            total_due=("due", "sum"),
            total_overpaid=("overpaid", "sum"),
            total_expected_rent=("expected_rent", "sum"),
            total_expected_electricity=("electricity_cost", "sum"),
        )
        .reset_index()
    )

    if property_names is not None:
        summary.insert(
            1,
            "property_name",
            summary["property_id"].map(lambda pid: property_names.get(pid, pid)),
        )
    return summary


def portfolio_totals(frame: pd.DataFrame) -> dict[str, float]:
    """Landlord-wide totals across every tenant and period."""
    return {
        "total_rent_collected": float((frame["rent_paid"] + frame["electricity_paid"]).sum()),
        "total_due": float(frame["due"].sum()),
        "overpaid": float(frame["overpaid"].sum()),
        "total_expected_rent": float(frame["expected_rent"].sum()),
        "total_expected_electricity": float(frame["electricity_cost"].sum()),
    }
