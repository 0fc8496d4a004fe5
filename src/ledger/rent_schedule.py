"""Rent schedule resolution: which monthly rate applies to a given month."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from src.ledger.models import RentChange
from src.utils.dates import to_day


def effective_rent(
    year: int,
    month: int,
    changes: Sequence[RentChange],
    fallback: float,
) -> float:
    """Return the monthly rent in force for ``year``/``month``.

    A change applies from the month whose first day is on or after its
    ``effective_from`` date. Before the first change takes effect, the first
    change's amount is used.

    Args:
        year: Calendar year.
        month: Calendar month, 1-12.
        changes: Rent changes sorted ascending by ``effective_from``.
        fallback: Nominal monthly rent used when there are no changes.

    Returns:
        The applicable monthly rent.
    """
    if not changes:
        return fallback

    first_of_month = date(year, month, 1)
    applicable = changes[0].amount
    for change in changes:
        if to_day(change.effective_from) <= first_of_month:
            applicable = change.amount
        else:
            break
    return applicable
