"""Tenant lifecycle status from balances and assignment state."""

from __future__ import annotations

from datetime import datetime

from src.ledger.models import TenantSnapshot, TenantStatus
from src.ledger.segmenter import end_inferred_from_history, normalize_id


def ever_assigned(tenant: TenantSnapshot) -> bool:
    if normalize_id(tenant.property_id) is not None:
        return True
    return any(normalize_id(e.property_id) is not None for e in tenant.tenant_history)


def is_onboarding(tenant: TenantSnapshot) -> bool:
    """Started but never placed anywhere: nothing can be billed yet."""
    return (
        tenant.starting_date is not None
        and normalize_id(tenant.property_id) is None
        and not tenant.tenant_history
    )


def classify_status(tenant: TenantSnapshot, due: float) -> TenantStatus:
    """Map a tenant and its total due amount to a lifecycle status.

    Order of precedence:
        - Unassigned: never assigned and no starting date
        - Due: has a starting date but no assignment yet (just onboarded)
        - Inactive: explicit ending date, or unassigned according to history
        - Due / Active: currently assigned, by whether anything is owed
    """
    if not ever_assigned(tenant) and tenant.starting_date is None:
        return TenantStatus.UNASSIGNED
    if is_onboarding(tenant):
        return TenantStatus.DUE
    if tenant.ending_date is not None or end_inferred_from_history(tenant):
        return TenantStatus.INACTIVE
    return TenantStatus.DUE if due > 0 else TenantStatus.ACTIVE


def due_amount_date(due: float, as_of: datetime) -> datetime | None:
    """Observation timestamp for an outstanding balance: the evaluation instant."""
    return as_of if due > 0 else None
