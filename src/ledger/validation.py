"""Input validation run before any billing computation."""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Collection

from src.ledger.errors import DataInconsistencyError, ValidationError
from src.ledger.models import TenantSnapshot
from src.ledger.segmenter import normalize_id
from src.utils.dates import to_day, to_utc

logger = logging.getLogger(__name__)


def _check_number(value: Any, name: str, *, optional: bool = False, minimum: float | None = None) -> None:
    if value is None:
        if optional:
            return
        raise ValidationError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value!r}")


def _check_rates(tenant: TenantSnapshot) -> None:
    _check_number(tenant.monthly_rent, "monthlyRent", minimum=0)
    _check_number(tenant.deposit_money, "depositMoney", minimum=0)
    _check_number(tenant.electricity_per_unit, "electricityPerUnit", optional=True, minimum=0)
    _check_number(tenant.starting_unit, "startingUnit", optional=True, minimum=0)
    _check_number(tenant.current_unit, "currentUnit", optional=True, minimum=0)
    for i, change in enumerate(tenant.rent_changes):
        _check_number(change.amount, f"rentChanges[{i}].amount", minimum=0)


def _check_dates(tenant: TenantSnapshot) -> None:
    assigned = normalize_id(tenant.property_id) is not None or any(
        normalize_id(e.property_id) is not None for e in tenant.tenant_history
    )
    if tenant.starting_date is None:
        if assigned:
            raise ValidationError("startingDate is required once a property is assigned")
        return

    start = to_day(tenant.starting_date)
    if tenant.ending_date is not None and to_day(tenant.ending_date) < start:
        raise ValidationError(
            f"endingDate {tenant.ending_date} precedes startingDate {tenant.starting_date}"
        )

    seen = set()
    for change in tenant.rent_changes:
        if to_day(change.effective_from) < start:
            raise ValidationError(
                f"Rent change effective {change.effective_from} precedes startingDate "
                f"{tenant.starting_date}"
            )
        day = to_day(change.effective_from)
        if day in seen:
            raise ValidationError(f"More than one rent change effective on {day}")
        seen.add(day)


def _check_meter(tenant: TenantSnapshot) -> None:
    last_reading = tenant.starting_unit
    readings = sorted(tenant.electricity_payments, key=lambda p: to_utc(p.paid_at))
    for payment in readings:
        _check_number(payment.meter_previous, "meterPrevious", optional=True, minimum=0)
        _check_number(payment.meter_current, "meterCurrent", optional=True, minimum=0)
        if payment.meter_current is None:
            continue
        if payment.meter_previous is not None and payment.meter_current < payment.meter_previous:
            raise ValidationError(
                f"Meter reading {payment.meter_current} is lower than previous reading "
                f"{payment.meter_previous}"
            )
        if last_reading is not None and payment.meter_current < last_reading:
            raise ValidationError(
                f"Meter reading {payment.meter_current} is lower than last recorded "
                f"reading {last_reading}"
            )
        last_reading = payment.meter_current

    if tenant.current_unit is not None and last_reading is not None:
        if tenant.current_unit < last_reading:
            raise ValidationError(
                f"currentUnit {tenant.current_unit} is lower than last recorded reading "
                f"{last_reading}"
            )


def _check_payments(tenant: TenantSnapshot) -> None:
    for i, payment in enumerate(tenant.payments):
        if isinstance(payment.amount, bool) or not isinstance(payment.amount, numbers.Real):
            raise ValidationError(f"payments[{i}].amount must be a number, got {payment.amount!r}")
        if not math.isfinite(payment.amount):
            raise ValidationError(f"payments[{i}].amount must be finite")
        if payment.amount < 0:
            raise DataInconsistencyError(
                f"payments[{i}] has a negative amount ({payment.amount})"
            )
        if tenant.starting_date is not None and to_day(payment.paid_at) < to_day(tenant.starting_date):
            logger.warning(
                "Tenant %s: payment of %s on %s predates the tenancy start %s",
                tenant.tenant_id, payment.amount, payment.paid_at, tenant.starting_date,
            )


def _check_ownership(tenant: TenantSnapshot, owned_property_ids: Collection[str]) -> None:
    owned = {normalize_id(p) for p in owned_property_ids}
    referenced = [normalize_id(tenant.property_id)]
    referenced.extend(normalize_id(e.property_id) for e in tenant.tenant_history)
    for property_id in referenced:
        if property_id is not None and property_id not in owned:
            raise DataInconsistencyError(
                f"Property {property_id} does not belong to landlord {tenant.landlord_id}"
            )


def validate_snapshot(
    tenant: TenantSnapshot,
    owned_property_ids: Collection[str] | None = None,
) -> None:
    """Reject a snapshot that cannot be billed.

    Args:
        tenant: Tenant snapshot to check.
        owned_property_ids: Properties of the tenant's landlord. When given,
            every referenced property must be among them.

    Raises:
        ValidationError: Malformed or missing input.
        DataInconsistencyError: Negative payments or foreign properties.
    """
    _check_rates(tenant)
    _check_payments(tenant)
    _check_dates(tenant)
    _check_meter(tenant)
    if owned_property_ids is not None:
        _check_ownership(tenant, owned_property_ids)
