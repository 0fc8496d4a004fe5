"""FIFO allocation of payments across tenancy periods.

Rent and electricity are two independent pools. Each pool is spent on the
oldest period first; whatever is left after every expectation is met lands on
the overflow period as an overpayment. The two pools never offset each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from src.ledger.models import Payment


@dataclass(frozen=True)
class Allocation:
    """Result of spreading payments over periods."""

    rent_paid: tuple[float, ...]
    electricity_paid: tuple[float, ...]
    rent_overpaid: float          # Unallocated rent after every period is covered
    electricity_overpaid: float   # Unallocated electricity after the charge is covered

    def rent_due(self, expected: Sequence[float]) -> list[float]:
        return [max(0.0, e - p) for e, p in zip(expected, self.rent_paid)]

    def electricity_due(self, expected: Sequence[float]) -> list[float]:
        return [max(0.0, e - p) for e, p in zip(expected, self.electricity_paid)]


def _spend(pool: float, expected: Sequence[float], overflow_index: int | None) -> tuple[list[float], float]:
    """Spend ``pool`` on ``expected`` in order; return per-slot credit and the remainder."""
    credited = []
    for amount in expected:
        take = min(pool, max(0.0, amount))
        credited.append(take)
        pool -= take

    remainder = pool
    if remainder > 0 and overflow_index is not None:
        credited[overflow_index] += remainder
    return credited, remainder


def allocate(
    expected_rent: Sequence[float],
    expected_electricity: Sequence[float],
    rent_payments: Sequence[Payment],
    electricity_payments: Sequence[Payment],
    electricity_index: int | None = None,
    rent_index: int | None = None,
) -> Allocation:
    """Distribute payments over chronologically ordered periods.

    Args:
        expected_rent: Expected rent per period, oldest first.
        expected_electricity: Expected electricity cost per period.
        rent_payments: All rent payments, regardless of date.
        electricity_payments: All electricity payments.
        electricity_index: Period holding the electricity charge; receives
            electricity overflow. Defaults to the most recent period.
        rent_index: Period receiving rent overflow. Defaults to the most
            recent period.

    Returns:
        Allocation with per-period credits and the overall overpayments.
    """
    if len(expected_rent) != len(expected_electricity):
        raise ValueError("expected_rent and expected_electricity must have the same length")

    last = len(expected_rent) - 1 if expected_rent else None
    if electricity_index is None:
        electricity_index = last
    if rent_index is None:
        rent_index = last

    rent_pool = sum((p.amount for p in rent_payments), 0.0)
    electricity_pool = sum((p.amount for p in electricity_payments), 0.0)

    rent_paid, rent_left = _spend(rent_pool, expected_rent, rent_index)
    electricity_paid, electricity_left = _spend(
        electricity_pool, expected_electricity, electricity_index
    )

    return Allocation(
        rent_paid=tuple(rent_paid),
        electricity_paid=tuple(electricity_paid),
        rent_overpaid=rent_left,
        electricity_overpaid=electricity_left,
    )
