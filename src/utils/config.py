"""YAML configuration loader and dataclasses for engine setup."""

from __future__ import annotations

import yaml
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from src.ledger.proration import ProrationConfig
from src.ledger.records import parse_instant, parse_tenant_record
from src.ledger.models import TenantSnapshot


def _resolve_config_path(path: str | Path) -> Path:
    """Resolve a config path, anchoring relative paths to the project root.

    The project root is identified as the nearest ancestor directory that
    contains ``pyproject.toml``.  If the file exists as-is (e.g. an absolute
    path or the CWD happens to be the project root already), it is returned
    unchanged.
    """
    p = Path(path)
    if p.is_absolute() or p.exists():
        return p

    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").exists():
            # Returned even when missing so open() raises a descriptive error
            return parent / p

    return p


@dataclass
class EngineConfig:
    """Billing engine configuration."""

    proration: ProrationConfig = field(default_factory=ProrationConfig)
    settle_tolerance: float = 0.01  # Sub-cent balances count as settled


@dataclass
class Portfolio:
    """A landlord's tenants as loaded from a portfolio file."""

    tenants: list[TenantSnapshot] = field(default_factory=list)
    as_of: datetime | None = None
    landlord_id: str | None = None
    property_ids: list[str] | None = None
    property_names: dict[str, str] = field(default_factory=dict)


def load_engine_config(path: str | Path) -> EngineConfig:
    """Load an EngineConfig from a YAML file.

    Args:
        path: Path to a YAML config file (e.g., configs/engine/default.yaml).

    Returns:
        Populated EngineConfig instance.
    """
    path = _resolve_config_path(path)
    with open(path, "r") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    proration_dict = raw.get("proration", {}) or {}
    proration = ProrationConfig(
        full_month_min_days=int(proration_dict.get("full_month_min_days", 16)),
        partial_fraction=float(proration_dict.get("partial_fraction", 0.5)),
    )

    return EngineConfig(
        proration=proration,
        settle_tolerance=float(raw.get("settle_tolerance", 0.01)),
    )


def load_portfolio(path: str | Path) -> Portfolio:
    """Load a portfolio of raw tenant records from a YAML file.

    Expected layout::

        as_of: 2024-06-15T00:00:00Z     # optional
        landlord_id: L1                 # optional
        properties:                     # optional, enables ownership checks
          - {id: P1, name: Maple Court}
        tenants:
          - {startingDate: ..., propertyId: P1, monthlyRent: 1000, ...}
    """
    path = _resolve_config_path(path)
    with open(path, "r") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    properties = raw.get("properties")
    property_ids = None
    names: dict[str, str] = {}
    if properties is not None:
        property_ids = [str(p["id"]) for p in properties]
        names = {str(p["id"]): str(p.get("name", p["id"])) for p in properties}

    landlord_id = raw.get("landlord_id")
    tenants = []
    for i, record in enumerate(raw.get("tenants", [])):
        record = dict(record)
        record.setdefault("_id", f"T{i + 1}")
        if landlord_id is not None:
            record.setdefault("landlordId", landlord_id)
        tenants.append(parse_tenant_record(record))

    return Portfolio(
        tenants=tenants,
        as_of=parse_instant(raw.get("as_of"), "as_of"),
        landlord_id=None if landlord_id is None else str(landlord_id),
        property_ids=property_ids,
        property_names=names,
    )
