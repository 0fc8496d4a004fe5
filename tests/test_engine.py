"""End-to-end tests for the billing engine.

Expected figures are worked out by hand from the proration rule: a month with
16+ occupied days bills the full rent, 1-15 days bill half.
"""

import dataclasses
from datetime import date, datetime, timezone

import pytest

from src.ledger.engine import (
    _check_invariants,
    compute_billing,
    compute_property_overview,
    monthly_statement,
)
from src.ledger.errors import ComputationError, DataInconsistencyError, ValidationError
from src.ledger.models import (
    AssignmentEntry,
    BillingResult,
    Payment,
    PeriodResult,
    TenancyPeriod,
    TenantSnapshot,
    TenantStatus,
)
from src.ledger.proration import ProrationConfig
from src.ledger.scenario_sampler import ScenarioSampler
from src.utils.config import EngineConfig


def utc(y, m, d):
    return datetime(y, m, d, tzinfo=timezone.utc)


def run_preset(name):
    scenario = ScenarioSampler.preset(name)
    return scenario, compute_billing(scenario.tenant, scenario.as_of)


# ── Preset scenarios ──────────────────────────────────────────────────────

class TestPresetScenarios:

    def test_fresh_start_owes_two_months(self):
        scenario, result = run_preset("fresh_start")
        assert result.total_expected_rent == pytest.approx(20000)
        assert result.rent_due == pytest.approx(20000)
        assert result.due == pytest.approx(20000)
        assert result.status is TenantStatus.DUE
        assert result.due_amount_date == scenario.as_of

    def test_rent_increase_applies_from_march(self):
        _, result = run_preset("rent_increase")
        assert result.total_expected_rent == pytest.approx(1000 + 1000 + 1500)

    def test_moved_once_fifo(self):
        _, result = run_preset("moved_once")
        a, b = result.periods
        assert a.property_id == "prop-a"
        assert a.total_expected_rent == pytest.approx(10500)  # Jan-Mar full, 9 days of April
        assert a.total_rent_paid == pytest.approx(10500)
        assert a.rent_due == 0
        assert b.property_id == "prop-b"
        assert b.total_expected_rent == pytest.approx(7500)   # 21 days of April, May, 14 days of June
        assert b.total_rent_paid == pytest.approx(1500)
        assert b.rent_due == pytest.approx(6000)
        assert result.rent_due == pytest.approx(6000)
        assert result.status is TenantStatus.DUE

    def test_metered_electricity_due(self):
        _, result = run_preset("metered")
        assert result.rent_due == 0
        assert result.total_electricity_cost == pytest.approx(800)
        assert result.total_electricity_paid == pytest.approx(500)
        assert result.electricity_due == pytest.approx(300)
        assert result.status is TenantStatus.DUE

    def test_ended_tenancy_is_inactive(self):
        _, result = run_preset("ended_tenancy")
        assert result.total_expected_rent == pytest.approx(2000)
        assert result.due == 0
        assert result.overpaid == 0
        assert result.status is TenantStatus.INACTIVE
        assert result.due_amount_date is None


# ── Lifecycle edge cases ──────────────────────────────────────────────────

class TestLifecycle:

    def test_never_assigned(self):
        result = compute_billing(TenantSnapshot(tenant_id="x", monthly_rent=1000), utc(2024, 6, 1))
        assert result.status is TenantStatus.UNASSIGNED
        assert result.periods == ()
        assert result.total_expected_rent == 0
        assert result.due_amount_date is None

    def test_onboarding_owes_nothing_yet(self):
        tenant = TenantSnapshot(starting_date=utc(2024, 6, 1), monthly_rent=6000)
        result = compute_billing(tenant, utc(2024, 6, 15))
        assert result.status is TenantStatus.DUE
        assert result.due == 0
        assert result.periods == ()

    def test_onboarding_payment_is_not_credited_to_any_property(self):
        tenant = TenantSnapshot(
            starting_date=utc(2024, 6, 1),
            monthly_rent=6000,
            payments=(Payment(700, utc(2024, 6, 2)),),
        )
        assert compute_property_overview(tenant, utc(2024, 6, 15)) == []
        assert compute_billing(tenant, utc(2024, 6, 15)).rent_overpaid == pytest.approx(700)

    def test_overpayment_after_leaving_stays_on_last_property(self):
        tenant = TenantSnapshot(
            starting_date=utc(2024, 1, 1),
            ending_date=utc(2024, 5, 1),
            monthly_rent=1000,
            tenant_history=(
                AssignmentEntry("A", None, utc(2024, 1, 1)),
                AssignmentEntry(None, None, utc(2024, 3, 1)),
            ),
            payments=(Payment(5000, utc(2024, 1, 2)),),
        )
        result = compute_billing(tenant, utc(2024, 6, 1))
        assert [(p.property_id, p.total_rent_paid, p.rent_overpaid) for p in result.periods] == [
            ("A", pytest.approx(5000), pytest.approx(3000)),
            (None, 0.0, 0.0),
        ]
        assert result.rent_overpaid == pytest.approx(3000)
        assert result.status is TenantStatus.INACTIVE

    def test_payment_without_periods_is_overpaid(self):
        tenant = TenantSnapshot(monthly_rent=1000, payments=(Payment(500, utc(2024, 1, 1)),))
        result = compute_billing(tenant, utc(2024, 6, 1))
        assert result.rent_overpaid == pytest.approx(500)
        assert result.rent_due == 0

    def test_unassigned_by_history(self):
        tenant = TenantSnapshot(
            starting_date=utc(2024, 2, 1),
            monthly_rent=2500,
            tenant_history=(
                AssignmentEntry("oak", None, utc(2024, 2, 1)),
                AssignmentEntry(None, None, utc(2024, 4, 20)),
            ),
            payments=(Payment(2500, utc(2024, 2, 3)),),
        )
        result = compute_billing(tenant, utc(2024, 6, 15))
        assert [p.period for p in result.periods] == [
            TenancyPeriod("oak", date(2024, 2, 1), date(2024, 4, 20))
        ]
        assert result.total_expected_rent == pytest.approx(7500)  # Feb, Mar, 19 days of April
        assert result.rent_due == pytest.approx(5000)
        assert result.status is TenantStatus.INACTIVE

    def test_sub_cent_balance_is_settled(self):
        tenant = TenantSnapshot(
            starting_date=utc(2024, 1, 1),
            property_id="prop-a",
            monthly_rent=1000,
            payments=(Payment(999.995, utc(2024, 1, 2)),),
        )
        result = compute_billing(tenant, utc(2024, 2, 1))
        assert result.rent_due == 0.0
        assert result.status is TenantStatus.ACTIVE

    def test_overpayment_lands_on_latest_period(self):
        scenario = ScenarioSampler.preset("moved_once")
        tenant = dataclasses.replace(scenario.tenant, payments=(Payment(20000, utc(2024, 2, 1)),))
        result = compute_billing(tenant, scenario.as_of)
        assert result.rent_overpaid == pytest.approx(2000)
        assert [p.rent_overpaid for p in result.periods] == pytest.approx([0, 2000])
        assert result.status is TenantStatus.ACTIVE

    def test_electricity_charged_to_live_property(self):
        scenario = ScenarioSampler.preset("moved_once")
        tenant = dataclasses.replace(
            scenario.tenant, electricity_per_unit=8, starting_unit=1200, current_unit=1300
        )
        a, b = compute_billing(tenant, scenario.as_of).periods
        assert a.total_electricity_cost == 0
        assert b.total_electricity_cost == pytest.approx(800)
        assert b.electricity_due == pytest.approx(800)

    def test_custom_proration_config(self):
        cfg = EngineConfig(proration=ProrationConfig(full_month_min_days=10, partial_fraction=0.25))
        tenant = TenantSnapshot(starting_date=utc(2024, 1, 1), property_id="p", monthly_rent=1000)
        result = compute_billing(tenant, utc(2024, 1, 10), cfg)  # 9 days elapsed
        assert result.total_expected_rent == pytest.approx(250)


# ── Call shapes and determinism ───────────────────────────────────────────

class TestCallShapes:

    def test_overview_matches_aggregate(self):
        scenario = ScenarioSampler.preset("moved_once")
        overview = compute_property_overview(scenario.tenant, scenario.as_of)
        result = compute_billing(scenario.tenant, scenario.as_of)
        assert list(result.periods) == overview
        assert sum(p.total_expected_rent for p in overview) == pytest.approx(result.total_expected_rent)
        assert sum(p.due for p in overview) == pytest.approx(result.due)

    def test_recomputation_is_identical(self):
        scenario = ScenarioSampler.preset("metered")
        assert compute_billing(scenario.tenant, scenario.as_of) == compute_billing(
            scenario.tenant, scenario.as_of
        )

    def test_date_and_datetime_as_of_agree(self):
        scenario = ScenarioSampler.preset("fresh_start")
        by_day = compute_billing(scenario.tenant, date(2024, 3, 1))
        by_instant = compute_billing(scenario.tenant, utc(2024, 3, 1))
        assert by_day == by_instant

    def test_wire_format(self):
        scenario, result = run_preset("moved_once")
        out = result.to_dict()
        assert out["status"] == "Due"
        assert out["dueAmountDate"] == scenario.as_of.isoformat()
        assert out["rentDue"] == pytest.approx(6000)
        assert out["totalPaid"] == pytest.approx(12000)
        for key in ("due", "overpaid", "totalExpectedRent", "totalElectricityCost",
                    "electricityDue", "rentOverpaid", "electricityOverpaid",
                    "totalRentPaid", "totalElectricityPaid"):
            assert key in out

        period = result.periods[1].to_dict()
        assert period["propertyId"] == "prop-b"
        assert period["startDate"] == "2024-04-10"
        assert period["endDate"] == "2024-06-15"

    def test_monthly_statement(self):
        scenario = ScenarioSampler.preset("moved_once")
        lines = monthly_statement(scenario.tenant, scenario.as_of)
        assert [(e.period.property_id, e.line.month) for e in lines] == [
            ("prop-a", 1), ("prop-a", 2), ("prop-a", 3), ("prop-a", 4),
            ("prop-b", 4), ("prop-b", 5), ("prop-b", 6),
        ]
        assert sum(e.line.expected for e in lines) == pytest.approx(18000)


# ── Errors ────────────────────────────────────────────────────────────────

class TestErrors:

    def test_invalid_input_raises_before_computing(self):
        tenant = TenantSnapshot(property_id="prop-a", monthly_rent=1000)  # no starting date
        with pytest.raises(ValidationError):
            compute_billing(tenant, utc(2024, 6, 1))

    def test_foreign_property_raises(self):
        scenario = ScenarioSampler.preset("moved_once")
        with pytest.raises(DataInconsistencyError):
            compute_billing(scenario.tenant, scenario.as_of, owned_property_ids=["prop-b"])

    def test_invariant_violation_is_a_computation_error(self):
        period = TenancyPeriod("p", date(2024, 1, 1), date(2024, 2, 1))
        broken = BillingResult(
            status=TenantStatus.DUE,
            rent_due=100,
            rent_overpaid=50,
            periods=(PeriodResult(status=TenantStatus.DUE, period=period),),
        )
        with pytest.raises(ComputationError):
            _check_invariants(broken, 0.01)

    def test_overlapping_periods_are_a_computation_error(self):
        first = PeriodResult(TenantStatus.ACTIVE, period=TenancyPeriod("p", date(2024, 1, 1), date(2024, 3, 1)))
        second = PeriodResult(TenantStatus.ACTIVE, period=TenancyPeriod("q", date(2024, 2, 1), date(2024, 4, 1)))
        with pytest.raises(ComputationError):
            _check_invariants(BillingResult(TenantStatus.ACTIVE, periods=(first, second)), 0.01)
