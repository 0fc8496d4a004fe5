"""Billing engine: rebuilds a tenant's ledger from its event logs.

Pipeline (identical for both call shapes):
    1. Validate the snapshot
    2. Replay the event log into ordered assignment / rent / payment logs
    3. Segment the assignment history into tenancy periods
    4. Prorate each period month by month against the rent schedule
    5. Attach the electricity charge to the live period
    6. Allocate rent and electricity payments FIFO
    7. Classify the tenant status

Nothing is cached or stored: the same snapshot and evaluation instant always
produce the same result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Collection

from src.ledger.allocation import allocate
from src.ledger.electricity import (
    electricity_cost,
    electricity_period_index,
    latest_occupied_index,
)
from src.ledger.errors import ComputationError
from src.ledger.events import replay
from src.ledger.models import BillingResult, PeriodResult, TenancyPeriod, TenantSnapshot
from src.ledger.proration import MonthLine, monthly_breakdown, period_expected_rent
from src.ledger.segmenter import segments
from src.ledger.status import classify_status, due_amount_date
from src.ledger.validation import validate_snapshot
from src.utils.config import EngineConfig
from src.utils.dates import to_day, to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementLine:
    """One month of one period, for rendering a tenant statement."""

    period: TenancyPeriod
    line: MonthLine


def _resolve_as_of(as_of: datetime | date | None) -> datetime:
    if as_of is None:
        return datetime.now(timezone.utc)
    return to_utc(as_of)


def _settle(amount: float, tolerance: float) -> float:
    return 0.0 if abs(amount) < tolerance else amount


def _check_invariants(result: BillingResult, tolerance: float) -> None:
    periods = [p.period for p in result.periods]
    for prev, cur in zip(periods, periods[1:]):
        if prev.end > cur.start:
            raise ComputationError(f"Overlapping periods: {prev} and {cur}")

    for r in (result, *result.periods):
        for due, overpaid in (
            (r.rent_due, r.rent_overpaid),
            (r.electricity_due, r.electricity_overpaid),
        ):
            if due < 0 or overpaid < 0:
                raise ComputationError(f"Negative balance in {r}")
            if due > 0 and overpaid > 0:
                raise ComputationError(f"Balance both due and overpaid in {r}")

    if result.periods:
        # Each period may have settled away up to one tolerance
        slack = tolerance * (len(result.periods) + 1)
        period_rent_due = sum(p.rent_due for p in result.periods)
        period_rent_overpaid = sum(p.rent_overpaid for p in result.periods)
        if (
            abs(period_rent_due - result.rent_due) >= slack
            or abs(period_rent_overpaid - result.rent_overpaid) >= slack
        ):
            raise ComputationError(
                f"Per-period rent balances ({period_rent_due}, {period_rent_overpaid}) "
                f"disagree with the aggregate ({result.rent_due}, {result.rent_overpaid})"
            )


def _evaluate(
    tenant: TenantSnapshot,
    as_of: datetime,
    cfg: EngineConfig,
    owned_property_ids: Collection[str] | None,
) -> BillingResult:
    validate_snapshot(tenant, owned_property_ids)
    tenant = replay(tenant)
    today = to_day(as_of)
    tol = cfg.settle_tolerance

    periods = segments(tenant, today)
    expected_rent = [
        period_expected_rent(p, tenant.rent_changes, tenant.monthly_rent, today, cfg.proration)
        for p in periods
    ]

    cost = electricity_cost(tenant)
    elec_index = electricity_period_index(tenant, periods)
    expected_elec = [cost if i == elec_index else 0.0 for i in range(len(periods))]

    rent_payments = tenant.rent_payments
    elec_payments = tenant.electricity_payments
    # Rent overflow goes to the latest period spent in a property
    allocation = allocate(
        expected_rent, expected_elec, rent_payments, elec_payments,
        electricity_index=elec_index, rent_index=latest_occupied_index(periods),
    )

    total_expected_rent = sum(expected_rent, 0.0)
    total_rent_paid = sum((p.amount for p in rent_payments), 0.0)
    total_elec_paid = sum((p.amount for p in elec_payments), 0.0)

    rent_due = _settle(max(0.0, total_expected_rent - total_rent_paid), tol)
    rent_overpaid = _settle(max(0.0, total_rent_paid - total_expected_rent), tol)
    elec_due = _settle(max(0.0, cost - total_elec_paid), tol)
    elec_overpaid = _settle(max(0.0, total_elec_paid - cost), tol)

    status = classify_status(tenant, rent_due + elec_due)

    period_results = []
    for i, period in enumerate(periods):
        p_rent_due = _settle(max(0.0, expected_rent[i] - allocation.rent_paid[i]), tol)
        p_elec_due = _settle(max(0.0, expected_elec[i] - allocation.electricity_paid[i]), tol)
        period_results.append(
            PeriodResult(
                status=status,
                due_amount_date=due_amount_date(p_rent_due + p_elec_due, as_of),
                total_expected_rent=expected_rent[i],
                total_electricity_cost=expected_elec[i],
                total_rent_paid=allocation.rent_paid[i],
                total_electricity_paid=allocation.electricity_paid[i],
                rent_due=p_rent_due,
                rent_overpaid=_settle(max(0.0, allocation.rent_paid[i] - expected_rent[i]), tol),
                electricity_due=p_elec_due,
                electricity_overpaid=_settle(
                    max(0.0, allocation.electricity_paid[i] - expected_elec[i]), tol
                ),
                period=period,
            )
        )

    result = BillingResult(
        status=status,
        due_amount_date=due_amount_date(rent_due + elec_due, as_of),
        total_expected_rent=total_expected_rent,
        total_electricity_cost=cost,
        total_rent_paid=total_rent_paid,
        total_electricity_paid=total_elec_paid,
        rent_due=rent_due,
        rent_overpaid=rent_overpaid,
        electricity_due=elec_due,
        electricity_overpaid=elec_overpaid,
        periods=tuple(period_results),
    )
    _check_invariants(result, tol)

    logger.debug(
        "Tenant %s as of %s: %d period(s), expected rent %.2f, due %.2f, overpaid %.2f, %s",
        tenant.tenant_id, as_of.isoformat(), len(periods), total_expected_rent,
        result.due, result.overpaid, status.value,
    )
    return result


def compute_billing(
    tenant: TenantSnapshot,
    as_of: datetime | date | None = None,
    config: EngineConfig | None = None,
    owned_property_ids: Collection[str] | None = None,
) -> BillingResult:
    """Single-tenant detail: aggregate billing figures as of an instant.

    Args:
        tenant: Tenant snapshot.
        as_of: Evaluation instant. Defaults to now (UTC); pass it explicitly
            for reproducible results.
        config: Engine configuration. Uses defaults if None.
        owned_property_ids: The landlord's properties, for ownership checks.

    Returns:
        BillingResult with the per-period breakdown in ``periods``.

    Raises:
        ValidationError: Malformed input.
        DataInconsistencyError: Contradictory input.
        ComputationError: Internal invariant violated.
    """
    return _evaluate(tenant, _resolve_as_of(as_of), config or EngineConfig(), owned_property_ids)


def compute_property_overview(
    tenant: TenantSnapshot,
    as_of: datetime | date | None = None,
    config: EngineConfig | None = None,
    owned_property_ids: Collection[str] | None = None,
) -> list[PeriodResult]:
    """Per-property call shape: one result per tenancy period, keyed by property."""
    result = _evaluate(tenant, _resolve_as_of(as_of), config or EngineConfig(), owned_property_ids)
    return list(result.periods)


def monthly_statement(
    tenant: TenantSnapshot,
    as_of: datetime | date | None = None,
    config: EngineConfig | None = None,
) -> list[StatementLine]:
    """Month-by-month expected rent for every period, oldest first."""
    cfg = config or EngineConfig()
    validate_snapshot(tenant)
    tenant = replay(tenant)
    today = to_day(_resolve_as_of(as_of))

    lines = []
    for period in segments(tenant, today):
        if period.property_id is None:
            continue
        for line in monthly_breakdown(
            period, tenant.rent_changes, tenant.monthly_rent, today, cfg.proration
        ):
            lines.append(StatementLine(period=period, line=line))
    return lines
