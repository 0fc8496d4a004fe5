"""ScenarioSampler: generates diverse tenant histories for robustness checks.

Produces random but valid TenantSnapshot instances with moves between
properties (0–3), rent increases, rent and electricity payments and meter
readings. Also provides named presets for reproducible examples.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import numpy as np

from src.ledger.models import (
    AssignmentEntry,
    Payment,
    PaymentKind,
    RentChange,
    TenantSnapshot,
)


# Property / unit pools for variety
_PROPERTIES = ["maple-court", "harbor-view", "oak-residency", "riverside", "elm-towers"]
_UNITS_PER_PROPERTY = 6


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Scenario:
    """A tenant snapshot together with the instant it should be evaluated at."""

    name: str
    tenant: TenantSnapshot
    as_of: datetime


class ScenarioSampler:
    """Generate randomized or preset tenant scenarios."""

    def __init__(
        self,
        start_window: tuple[datetime, datetime] = (_utc(2022, 1, 1), _utc(2024, 12, 31)),
        tenancy_days_range: tuple[int, int] = (20, 900),
        rent_range: tuple[float, float] = (500.0, 15000.0),
        max_moves: int = 3,
        max_rent_increases: int = 2,
        max_payments: int = 24,
        end_probability: float = 0.2,
        unassign_probability: float = 0.1,
        metered_probability: float = 0.6,
    ):
        self.start_window = start_window
        self.tenancy_days_range = tenancy_days_range
        self.rent_range = rent_range
        self.max_moves = max_moves
        self.max_rent_increases = max_rent_increases
        self.max_payments = max_payments
        self.end_probability = end_probability
        self.unassign_probability = unassign_probability
        self.metered_probability = metered_probability

    def _pick_days(self, rng: np.random.Generator, count: int, span: int) -> list[int]:
        """Distinct day offsets in [1, span - 1], ascending."""
        if span <= 2 or count <= 0:
            return []
        count = min(count, span - 2)
        return sorted(int(d) for d in rng.choice(np.arange(1, span - 1), size=count, replace=False))

    def sample(self, rng: np.random.Generator | None = None, name: str = "random") -> Scenario:
        """Sample a random tenant history.

        Args:
            rng: Numpy random Generator for reproducibility.
            name: Label attached to the scenario.

        Returns:
            A Scenario whose snapshot passes validation.
        """
        if rng is None:
            rng = np.random.default_rng()

        window = (self.start_window[1] - self.start_window[0]).days
        start = self.start_window[0] + timedelta(days=int(rng.integers(0, window + 1)))
        span = int(rng.integers(self.tenancy_days_range[0], self.tenancy_days_range[1] + 1))
        as_of = start + timedelta(days=span)

        def unit_for(prop: str) -> str:
            return f"{prop}-u{int(rng.integers(1, _UNITS_PER_PROPERTY + 1))}"

        # Assignment history: the initial placement plus any moves
        n_moves = int(rng.integers(0, self.max_moves + 1))
        move_days = self._pick_days(rng, n_moves, span)
        history = []
        for offset in [0] + move_days:
            prop = _PROPERTIES[int(rng.integers(0, len(_PROPERTIES)))]
            history.append(AssignmentEntry(prop, unit_for(prop), start + timedelta(days=offset)))

        property_id, unit_id = history[-1].property_id, history[-1].unit_id
        ending_date = None
        roll = rng.random()
        if roll < self.end_probability:
            ending_date = start + timedelta(days=int(rng.integers(1, span + 1)))
        elif roll < self.end_probability + self.unassign_probability:
            leave = history[-1].updated_at + timedelta(days=int(rng.integers(1, 60)))
            history.append(AssignmentEntry(None, None, leave))
            property_id = unit_id = None

        # Rent schedule: the opening rate plus increases
        rent = round(float(rng.uniform(*self.rent_range)), -1)
        changes = [RentChange(rent, start)]
        for offset in self._pick_days(rng, int(rng.integers(0, self.max_rent_increases + 1)), span):
            rent = round(rent * float(rng.uniform(1.0, 1.15)), -1)
            changes.append(RentChange(rent, start + timedelta(days=offset)))

        payments = []
        for _ in range(int(rng.integers(0, self.max_payments + 1))):
            payments.append(
                Payment(
                    amount=round(float(rng.uniform(0.0, 1.5 * changes[0].amount)), 2),
                    paid_at=start + timedelta(days=int(rng.integers(0, span + 1))),
                    kind=PaymentKind.RENT,
                )
            )

        per_unit = starting_unit = current_unit = None
        if rng.random() < self.metered_probability:
            per_unit = float(rng.integers(5, 13))
            starting_unit = float(rng.integers(0, 5000))
            current_unit = starting_unit + float(rng.integers(0, 2000))
            n_bills = int(rng.integers(0, 4))
            readings = np.sort(rng.uniform(starting_unit, current_unit, size=n_bills))
            bill_days = np.sort(rng.integers(0, span + 1, size=n_bills))
            previous = starting_unit
            for reading, day in zip(readings, bill_days):
                reading = float(np.floor(reading))
                payments.append(
                    Payment(
                        amount=round((reading - previous) * per_unit, 2),
                        paid_at=start + timedelta(days=int(day)),
                        kind=PaymentKind.ELECTRICITY,
                        meter_previous=previous,
                        meter_current=reading,
                    )
                )
                previous = reading

        tenant = TenantSnapshot(
            tenant_id=f"{name}-{int(rng.integers(0, 1_000_000)):06d}",
            starting_date=start,
            ending_date=ending_date,
            property_id=property_id,
            unit_id=unit_id,
            monthly_rent=rent,
            electricity_per_unit=per_unit,
            starting_unit=starting_unit,
            current_unit=current_unit,
            rent_changes=tuple(changes),
            tenant_history=tuple(history),
            payments=tuple(payments),
        )
        return Scenario(name=name, tenant=tenant, as_of=as_of)

    @staticmethod
    def preset(name: str) -> Scenario:
        """Return a named preset scenario.

        Available presets:
            - "fresh_start": 10000/month from 2024-01-01, nothing paid, seen on 2024-03-01
            - "rent_increase": 1000 rising to 1500 from March 2024
            - "moved_once": Property A until 2024-04-10, then Property B; one 12000 payment
            - "metered": 100 units at 8 per unit, 500 paid towards electricity
            - "ended_tenancy": ended 2024-03-01 with rent fully paid

        Raises:
            ValueError: If preset name is unknown.
        """
        presets = {
            "fresh_start": Scenario(
                "fresh_start",
                TenantSnapshot(
                    tenant_id="fresh_start",
                    starting_date=_utc(2024, 1, 1),
                    property_id="prop-a",
                    unit_id="prop-a-101",
                    monthly_rent=10000,
                ),
                _utc(2024, 3, 1),
            ),
            "rent_increase": Scenario(
                "rent_increase",
                TenantSnapshot(
                    tenant_id="rent_increase",
                    starting_date=_utc(2024, 1, 1),
                    property_id="prop-a",
                    unit_id="prop-a-101",
                    monthly_rent=1500,
                    rent_changes=(
                        RentChange(1000, _utc(2024, 1, 1)),
                        RentChange(1500, _utc(2024, 3, 1)),
                    ),
                ),
                _utc(2024, 4, 1),
            ),
            "moved_once": Scenario(
                "moved_once",
                TenantSnapshot(
                    tenant_id="moved_once",
                    starting_date=_utc(2024, 1, 1),
                    property_id="prop-b",
                    unit_id="prop-b-201",
                    monthly_rent=3000,
                    tenant_history=(
                        AssignmentEntry("prop-a", "prop-a-101", _utc(2024, 1, 1)),
                        AssignmentEntry("prop-b", "prop-b-201", _utc(2024, 4, 10)),
                    ),
                    payments=(Payment(12000, _utc(2024, 2, 1)),),
                ),
                _utc(2024, 6, 15),
            ),
            "metered": Scenario(
                "metered",
                TenantSnapshot(
                    tenant_id="metered",
                    starting_date=_utc(2024, 1, 1),
                    property_id="prop-a",
                    unit_id="prop-a-101",
                    monthly_rent=5000,
                    electricity_per_unit=8,
                    starting_unit=1200,
                    current_unit=1300,
                    payments=(
                        Payment(5000, _utc(2024, 1, 5)),
                        Payment(500, _utc(2024, 1, 31), PaymentKind.ELECTRICITY, 1200, 1262.5),
                    ),
                ),
                _utc(2024, 2, 1),
            ),
            "ended_tenancy": Scenario(
                "ended_tenancy",
                TenantSnapshot(
                    tenant_id="ended_tenancy",
                    starting_date=_utc(2024, 1, 1),
                    ending_date=_utc(2024, 3, 1),
                    property_id="prop-a",
                    unit_id="prop-a-101",
                    monthly_rent=1000,
                    payments=(Payment(2000, _utc(2024, 2, 28)),),
                ),
                _utc(2024, 6, 1),
            ),
        }

        if name not in presets:
            valid = ", ".join(sorted(presets.keys()))
            raise ValueError(f"Unknown preset {name!r}. Valid: {valid}")

        return presets[name]
