"""Event-log view of a tenant snapshot.

The assignment log, the rent schedule and the payments are merged into one
time-ordered sequence of tagged events and folded into an immutable
LedgerState. Nothing is ever updated in place: every event yields a new state.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from typing import Iterable, Union

from src.ledger.models import (
    AssignmentEntry,
    Payment,
    PaymentKind,
    RentChange,
    TenantSnapshot,
)
from src.utils.dates import to_utc


@dataclass(frozen=True)
class AssignmentEvent:
    at: datetime
    entry: AssignmentEntry


@dataclass(frozen=True)
class RentChangeEvent:
    at: datetime
    change: RentChange


@dataclass(frozen=True)
class PaymentEvent:
    at: datetime
    payment: Payment


LedgerEvent = Union[AssignmentEvent, RentChangeEvent, PaymentEvent]

# Tie-break for events sharing an instant: the assignment and the rate are
# known before a payment made at the same moment is booked.
_KIND_ORDER = {AssignmentEvent: 0, RentChangeEvent: 1, PaymentEvent: 2}


@dataclass(frozen=True)
class LedgerState:
    """Folded event log."""

    assignments: tuple[AssignmentEntry, ...] = ()
    rent_changes: tuple[RentChange, ...] = ()
    rent_payments: tuple[Payment, ...] = ()
    electricity_payments: tuple[Payment, ...] = ()

    @property
    def payments(self) -> tuple[Payment, ...]:
        return self.rent_payments + self.electricity_payments


def build_event_log(tenant: TenantSnapshot) -> tuple[LedgerEvent, ...]:
    """Flatten a snapshot into a chronologically ordered event sequence."""
    events: list[LedgerEvent] = []
    events.extend(AssignmentEvent(e.updated_at, e) for e in tenant.tenant_history)
    events.extend(RentChangeEvent(c.effective_from, c) for c in tenant.rent_changes)
    events.extend(PaymentEvent(p.paid_at, p) for p in tenant.payments)
    events.sort(key=lambda ev: (to_utc(ev.at), _KIND_ORDER[type(ev)]))
    return tuple(events)


def apply_event(state: LedgerState, event: LedgerEvent) -> LedgerState:
    """Pure reducer: return the state that follows ``event``."""
    if isinstance(event, AssignmentEvent):
        return dataclasses.replace(state, assignments=state.assignments + (event.entry,))
    if isinstance(event, RentChangeEvent):
        return dataclasses.replace(state, rent_changes=state.rent_changes + (event.change,))
    if isinstance(event, PaymentEvent):
        if event.payment.kind is PaymentKind.ELECTRICITY:
            return dataclasses.replace(
                state, electricity_payments=state.electricity_payments + (event.payment,)
            )
        return dataclasses.replace(state, rent_payments=state.rent_payments + (event.payment,))
    raise TypeError(f"Unknown ledger event: {event!r}")


def fold(events: Iterable[LedgerEvent]) -> LedgerState:
    return reduce(apply_event, events, LedgerState())


def replay(tenant: TenantSnapshot) -> TenantSnapshot:
    """Return ``tenant`` with every log rebuilt from its ordered event sequence."""
    state = fold(build_event_log(tenant))
    return dataclasses.replace(
        tenant,
        tenant_history=state.assignments,
        rent_changes=state.rent_changes,
        payments=state.payments,
    )
