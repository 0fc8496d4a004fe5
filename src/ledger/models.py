"""Data model for rent-ledger reconstruction.

Inputs are immutable snapshots of a tenant's event logs:
- AssignmentEntry: property/unit assignment changes
- RentChange: rent-rate changes
- Payment: rent and electricity payments

Outputs are derived records recomputed on every call:
- TenancyPeriod: a maximal interval spent in one property
- PeriodResult: billing figures for one tenancy period
- BillingResult: aggregate figures for the whole tenancy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class TenantStatus(str, Enum):
    ACTIVE = "Active"
    DUE = "Due"
    INACTIVE = "Inactive"
    UNASSIGNED = "Unassigned"


class PaymentKind(str, Enum):
    RENT = "rent"
    ELECTRICITY = "electricity"


@dataclass(frozen=True)
class AssignmentEntry:
    """One row of the assignment-history log."""

    property_id: str | None
    unit_id: str | None
    updated_at: datetime


@dataclass(frozen=True)
class RentChange:
    """A monthly rent rate taking effect from a given instant."""

    amount: float
    effective_from: datetime


@dataclass(frozen=True)
class Payment:
    """A recorded payment. Meter readings only apply to electricity payments."""

    amount: float
    paid_at: datetime
    kind: PaymentKind = PaymentKind.RENT
    meter_previous: float | None = None
    meter_current: float | None = None


@dataclass(frozen=True)
class TenantSnapshot:
    """Everything the engine needs to know about one tenant, frozen in time."""

    tenant_id: str | None = None
    starting_date: datetime | None = None
    ending_date: datetime | None = None
    property_id: str | None = None
    unit_id: str | None = None
    monthly_rent: float = 0.0
    deposit_money: float = 0.0
    electricity_per_unit: float | None = None
    starting_unit: float | None = None
    current_unit: float | None = None
    rent_changes: tuple[RentChange, ...] = ()
    tenant_history: tuple[AssignmentEntry, ...] = ()
    payments: tuple[Payment, ...] = ()
    landlord_id: str | None = None

    @property
    def is_assigned(self) -> bool:
        return self.property_id is not None

    @property
    def rent_payments(self) -> tuple[Payment, ...]:
        return tuple(p for p in self.payments if p.kind is PaymentKind.RENT)

    @property
    def electricity_payments(self) -> tuple[Payment, ...]:
        return tuple(p for p in self.payments if p.kind is PaymentKind.ELECTRICITY)


@dataclass(frozen=True)
class TenancyPeriod:
    """Half-open interval [start, end) of calendar days spent in one property."""

    property_id: str | None
    start: date
    end: date
    unit_id: str | None = None

    @property
    def days(self) -> int:
        return (self.end - self.start).days


# camelCase wire names for the result fields, in output order
_WIRE_KEYS = {
    "status": "status",
    "due": "due",
    "overpaid": "overpaid",
    "due_amount_date": "dueAmountDate",
    "total_paid": "totalPaid",
    "total_expected_rent": "totalExpectedRent",
    "total_electricity_cost": "totalElectricityCost",
    "rent_due": "rentDue",
    "electricity_due": "electricityDue",
    "rent_overpaid": "rentOverpaid",
    "electricity_overpaid": "electricityOverpaid",
    "total_rent_paid": "totalRentPaid",
    "total_electricity_paid": "totalElectricityPaid",
}


@dataclass(frozen=True)
class _ResultFields:
    status: TenantStatus
    due_amount_date: datetime | None = None
    total_expected_rent: float = 0.0
    total_electricity_cost: float = 0.0
    total_rent_paid: float = 0.0
    total_electricity_paid: float = 0.0
    rent_due: float = 0.0
    rent_overpaid: float = 0.0
    electricity_due: float = 0.0
    electricity_overpaid: float = 0.0

    @property
    def due(self) -> float:
        return self.rent_due + self.electricity_due

    @property
    def overpaid(self) -> float:
        return self.rent_overpaid + self.electricity_overpaid

    @property
    def total_paid(self) -> float:
        return self.total_rent_paid + self.total_electricity_paid

    def to_dict(self) -> dict[str, Any]:
        """Render the result with the wire-format (camelCase) keys."""
        out: dict[str, Any] = {}
        for attr, key in _WIRE_KEYS.items():
            value = getattr(self, attr)
            if isinstance(value, TenantStatus):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            out[key] = value
        return out


@dataclass(frozen=True)
class PeriodResult(_ResultFields):
    """Billing figures for a single tenancy period."""

    period: TenancyPeriod | None = None

    @property
    def property_id(self) -> str | None:
        return self.period.property_id if self.period else None

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["propertyId"] = self.property_id
        if self.period is not None:
            out["startDate"] = self.period.start.isoformat()
            out["endDate"] = self.period.end.isoformat()
        return out


@dataclass(frozen=True)
class BillingResult(_ResultFields):
    """Aggregate billing figures for a tenant."""

    periods: tuple[PeriodResult, ...] = field(default_factory=tuple)
