"""Sanity check: print month-by-month statements for the preset scenarios.

Usage:
    python scripts/sanity_check.py
    python scripts/sanity_check.py --preset moved_once
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.ledger.engine import compute_billing, monthly_statement
from src.ledger.scenario_sampler import ScenarioSampler
from src.utils.config import load_engine_config

PRESETS = ["fresh_start", "rent_increase", "moved_once", "metered", "ended_tenancy"]


def render(name: str, config) -> None:
    scenario = ScenarioSampler.preset(name)
    result = compute_billing(scenario.tenant, scenario.as_of, config)

    print(f"\n{'#'*72}")
    print(f"  {name}  (as of {scenario.as_of.date()})")
    print(f"{'#'*72}")

    current = None
    for entry in monthly_statement(scenario.tenant, scenario.as_of, config):
        if entry.period != current:
            current = entry.period
            print(f"  {current.property_id} [{current.start} → {current.end})")
        line = entry.line
        print(
            f"    {line.year}-{line.month:02d}  "
            f"days {line.days_occupied:>2d}/{line.days_in_month}  "
            f"rent {line.rent:>10,.2f}  expected {line.expected:>10,.2f}"
        )

    for r in result.periods:
        print(
            f"  {str(r.property_id):.<20s} expected {r.total_expected_rent:>10,.2f}  "
            f"paid {r.total_rent_paid:>10,.2f}  due {r.rent_due:>10,.2f}  "
            f"overpaid {r.rent_overpaid:>10,.2f}"
        )

    print(f"\n  Status: {result.status.value}")
    print(f"  Rent:        expected {result.total_expected_rent:>10,.2f}  due {result.rent_due:>10,.2f}")
    print(f"  Electricity: cost     {result.total_electricity_cost:>10,.2f}  due {result.electricity_due:>10,.2f}")

    # Sanity checks
    if result.rent_due > 0 and result.rent_overpaid > 0:
        print("  ⚠️ WARNING: rent both due and overpaid!")
    again = compute_billing(scenario.tenant, scenario.as_of, config)
    if again != result:
        print("  ⚠️ WARNING: result changed on recomputation!")


def main():
    parser = argparse.ArgumentParser(description="Sanity check: walk through preset statements")
    parser.add_argument("--config", type=str, default="configs/engine/default.yaml")
    parser.add_argument("--preset", type=str, choices=PRESETS, default=None)
    args = parser.parse_args()

    config = load_engine_config(args.config)
    for name in [args.preset] if args.preset else PRESETS:
        render(name, config)


if __name__ == "__main__":
    main()
