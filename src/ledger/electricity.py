"""Electricity cost from meter readings."""

from __future__ import annotations

from typing import Sequence

from src.ledger.models import Payment, TenancyPeriod, TenantSnapshot
from src.ledger.segmenter import normalize_id


def electricity_cost(tenant: TenantSnapshot) -> float:
    """Cost of the units consumed since the starting meter reading.

    Formula: (current_unit − starting_unit) × electricity_per_unit

    Returns:
        Cost (≥ 0). Zero when a reading or the rate is missing, or when the
        current reading is below the starting one.
    """
    if (
        tenant.electricity_per_unit is None
        or tenant.starting_unit is None
        or tenant.current_unit is None
    ):
        return 0.0
    if tenant.current_unit < tenant.starting_unit:
        return 0.0
    return (tenant.current_unit - tenant.starting_unit) * tenant.electricity_per_unit


def meter_consumption(payment: Payment) -> float | None:
    """Units covered by an electricity payment's readings, if both are recorded."""
    if payment.meter_previous is None or payment.meter_current is None:
        return None
    return payment.meter_current - payment.meter_previous


def latest_occupied_index(periods: Sequence[TenancyPeriod]) -> int | None:
    """Index of the most recent period spent in a property, if any."""
    for i in range(len(periods) - 1, -1, -1):
        if periods[i].property_id is not None:
            return i
    return None


def electricity_period_index(
    tenant: TenantSnapshot, periods: Sequence[TenancyPeriod]
) -> int | None:
    """Index of the period that carries the electricity charge.

    The meter belongs to the live unit, so the charge goes to the latest period
    on the live property. An unassigned tenant's charge goes to the most recent
    occupied period.
    """
    live_property = normalize_id(tenant.property_id)
    for i in range(len(periods) - 1, -1, -1):
        if live_property is not None and periods[i].property_id == live_property:
            return i
    return latest_occupied_index(periods)
