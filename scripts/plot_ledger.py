"""Plot cumulative expected rent against cumulative payments for a tenant.

Usage:
    python scripts/plot_ledger.py
    python scripts/plot_ledger.py --preset moved_once --output results/moved_once.png
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import pandas as pd

from src.ledger.engine import compute_billing, monthly_statement
from src.ledger.scenario_sampler import ScenarioSampler

# One colour per property, cycling
COLORS = ["#3498db", "#9b59b6", "#2ecc71", "#e67e22", "#e74c3c"]


def make_plot(name: str, output_path: str) -> None:
    """Step plot of expected vs paid rent, shaded by tenancy period."""
    scenario = ScenarioSampler.preset(name)
    tenant, as_of = scenario.tenant, scenario.as_of
    result = compute_billing(tenant, as_of)

    lines = monthly_statement(tenant, as_of)
    expected = pd.DataFrame(
        {
            "date": [pd.Timestamp(e.line.year, e.line.month, 1) for e in lines],
            "amount": [e.line.expected for e in lines],
        }
    ).groupby("date")["amount"].sum().cumsum()

    payments = pd.DataFrame(
        {
            "date": [pd.Timestamp(p.paid_at.date()) for p in tenant.rent_payments],
            "amount": [p.amount for p in tenant.rent_payments],
        },
        columns=["date", "amount"],
    ).groupby("date")["amount"].sum().sort_index().cumsum()

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.step(expected.index, expected.values, where="post", label="Expected rent", color="#333333")
    if not payments.empty:
        ax.step(payments.index, payments.values, where="post", label="Paid", color="#2ecc71")

    for i, r in enumerate(result.periods):
        ax.axvspan(
            pd.Timestamp(r.period.start), pd.Timestamp(r.period.end),
            alpha=0.12, color=COLORS[i % len(COLORS)], label=str(r.property_id),
        )

    ax.set_title(
        f"{name}: due {result.rent_due:,.0f}, overpaid {result.rent_overpaid:,.0f} "
        f"({result.status.value})",
        fontsize=13, fontweight="bold",
    )
    ax.set_ylabel("Cumulative amount")
    ax.grid(axis="y", alpha=0.3)
    ax.legend(loc="upper left")

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(str(out), dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"Plot saved to {out}")


def main():
    parser = argparse.ArgumentParser(description="Plot a tenant's ledger")
    parser.add_argument("--preset", type=str, default="moved_once")
    parser.add_argument("--output", type=str, default=None)
    args = parser.parse_args()

    make_plot(args.preset, args.output or f"results/{args.preset}_ledger.png")


if __name__ == "__main__":
    main()
