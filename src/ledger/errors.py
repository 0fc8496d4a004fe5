"""Exception hierarchy for the billing engine."""

from __future__ import annotations


class BillingError(ValueError):
    """Base class for every error raised by the billing engine."""


class ValidationError(BillingError):
    """Malformed or missing input, rejected before any computation runs."""


class DataInconsistencyError(BillingError):
    """Input is well-formed but contradicts itself or the landlord's records."""


class ComputationError(BillingError):
    """An internal invariant was violated. Always a programming defect."""
