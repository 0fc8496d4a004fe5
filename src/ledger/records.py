"""Parsing of stored tenant documents into TenantSnapshot instances.

Tenant records arrive as camelCase documents: ISO-8601 timestamps, references
that are either raw ids or populated sub-documents, and payment entries that
predate the ``kind`` field. This module is the only place that deals with that
shape; everything downstream works on TenantSnapshot.
"""

from __future__ import annotations

import numbers
from datetime import date, datetime
from typing import Any, Mapping

from src.ledger.errors import ValidationError
from src.ledger.models import AssignmentEntry, Payment, PaymentKind, RentChange, TenantSnapshot
from src.ledger.segmenter import normalize_id
from src.utils.dates import to_utc


def parse_instant(value: Any, name: str) -> datetime | None:
    """Parse an ISO-8601 string, date or datetime into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return to_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError as exc:
            raise ValidationError(f"{name}: invalid date {value!r}") from exc
    raise ValidationError(f"{name}: expected a date, got {type(value).__name__}")


def parse_amount(value: Any, name: str, *, optional: bool = False) -> float | None:
    """Accept ints and floats only; strings are rejected, not coerced."""
    if value is None:
        if optional:
            return None
        raise ValidationError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{name} must be numeric, got {value!r}")
    return float(value)


def _legacy_paid_at(entry: Mapping[str, Any], name: str) -> datetime | None:
    # Older payments carried the billed month instead of a timestamp
    month, year = entry.get("month"), entry.get("year")
    if isinstance(month, int) and isinstance(year, int) and 1 <= month <= 12:
        return to_utc(date(year, month, 1))
    return parse_instant(entry.get("forMonth"), f"{name}.forMonth")


def parse_payment(entry: Mapping[str, Any], name: str = "payment") -> Payment:
    paid_at = parse_instant(entry.get("paidAt") or entry.get("paidOn"), f"{name}.paidAt")
    if paid_at is None:
        paid_at = _legacy_paid_at(entry, name)
    if paid_at is None:
        raise ValidationError(f"{name}.paidAt is required")

    raw_kind = entry.get("kind") or entry.get("type") or PaymentKind.RENT.value
    try:
        kind = PaymentKind(str(raw_kind).lower())
    except ValueError as exc:
        raise ValidationError(f"{name}.kind: unknown payment kind {raw_kind!r}") from exc

    return Payment(
        amount=parse_amount(entry.get("amount"), f"{name}.amount"),
        paid_at=paid_at,
        kind=kind,
        meter_previous=parse_amount(entry.get("meterPrevious"), f"{name}.meterPrevious", optional=True),
        meter_current=parse_amount(entry.get("meterCurrent"), f"{name}.meterCurrent", optional=True),
    )


def parse_assignment(entry: Mapping[str, Any], name: str = "assignment") -> AssignmentEntry:
    updated_at = parse_instant(entry.get("updatedAt"), f"{name}.updatedAt")
    if updated_at is None:
        raise ValidationError(f"{name}.updatedAt is required")
    return AssignmentEntry(
        property_id=normalize_id(entry.get("propertyId")),
        unit_id=normalize_id(entry.get("unitId")),
        updated_at=updated_at,
    )


def parse_rent_change(entry: Mapping[str, Any], name: str = "rentChange") -> RentChange:
    effective_from = parse_instant(entry.get("effectiveFrom"), f"{name}.effectiveFrom")
    if effective_from is None:
        raise ValidationError(f"{name}.effectiveFrom is required")
    return RentChange(
        amount=parse_amount(entry.get("amount"), f"{name}.amount"),
        effective_from=effective_from,
    )


def parse_tenant_record(raw: Mapping[str, Any]) -> TenantSnapshot:
    """Build a TenantSnapshot from a stored tenant document.

    Args:
        raw: Tenant document with camelCase keys.

    Returns:
        An immutable snapshot with identifiers normalised and timestamps in UTC.

    Raises:
        ValidationError: On non-numeric amounts or unparseable dates.
    """
    return TenantSnapshot(
        tenant_id=normalize_id(raw.get("_id", raw.get("id"))),
        landlord_id=normalize_id(raw.get("landlordId")),
        starting_date=parse_instant(raw.get("startingDate"), "startingDate"),
        ending_date=parse_instant(raw.get("endingDate"), "endingDate"),
        property_id=normalize_id(raw.get("propertyId")),
        unit_id=normalize_id(raw.get("unitId")),
        monthly_rent=parse_amount(raw.get("monthlyRent", 0), "monthlyRent"),
        deposit_money=parse_amount(raw.get("depositMoney", 0), "depositMoney"),
        electricity_per_unit=parse_amount(raw.get("electricityPerUnit"), "electricityPerUnit", optional=True),
        starting_unit=parse_amount(raw.get("startingUnit"), "startingUnit", optional=True),
        current_unit=parse_amount(raw.get("currentUnit"), "currentUnit", optional=True),
        rent_changes=tuple(
            parse_rent_change(c, f"rentChanges[{i}]")
            for i, c in enumerate(raw.get("rentChanges") or [])
        ),
        tenant_history=tuple(
            parse_assignment(e, f"tenantHistory[{i}]")
            for i, e in enumerate(raw.get("tenantHistory") or [])
        ),
        payments=tuple(
            parse_payment(p, f"rentHistory[{i}]")
            for i, p in enumerate(raw.get("rentHistory") or [])
        ),
    )
