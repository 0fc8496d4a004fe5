"""Unit tests for electricity cost and FIFO payment allocation."""

from datetime import date, datetime, timezone

import pytest

from src.ledger.allocation import allocate
from src.ledger.electricity import (
    electricity_cost,
    electricity_period_index,
    latest_occupied_index,
    meter_consumption,
)
from src.ledger.models import Payment, PaymentKind, TenancyPeriod, TenantSnapshot


def utc(y, m, d):
    return datetime(y, m, d, tzinfo=timezone.utc)


def rent(amount):
    return Payment(amount, utc(2024, 1, 1))


def elec(amount):
    return Payment(amount, utc(2024, 1, 1), PaymentKind.ELECTRICITY)


# ── Electricity cost ──────────────────────────────────────────────────────

class TestElectricityCost:

    def test_units_times_rate(self):
        tenant = TenantSnapshot(electricity_per_unit=8, starting_unit=1200, current_unit=1300)
        assert electricity_cost(tenant) == pytest.approx(800)

    def test_fractional_readings(self):
        tenant = TenantSnapshot(electricity_per_unit=7.5, starting_unit=10.5, current_unit=12.5)
        assert electricity_cost(tenant) == pytest.approx(15)

    @pytest.mark.parametrize("missing", ["electricity_per_unit", "starting_unit", "current_unit"])
    def test_missing_field_costs_nothing(self, missing):
        fields = {"electricity_per_unit": 8, "starting_unit": 100, "current_unit": 150}
        fields[missing] = None
        assert electricity_cost(TenantSnapshot(**fields)) == 0.0

    def test_reading_below_start_costs_nothing(self):
        tenant = TenantSnapshot(electricity_per_unit=8, starting_unit=500, current_unit=400)
        assert electricity_cost(tenant) == 0.0

    def test_meter_consumption(self):
        assert meter_consumption(Payment(500, utc(2024, 1, 31), PaymentKind.ELECTRICITY, 1200, 1262.5)) == 62.5
        assert meter_consumption(elec(100)) is None


class TestElectricityPeriod:

    PERIODS = [
        TenancyPeriod("prop-a", date(2024, 1, 1), date(2024, 2, 1)),
        TenancyPeriod("prop-b", date(2024, 2, 1), date(2024, 3, 1)),
        TenancyPeriod(None, date(2024, 3, 1), date(2024, 4, 1)),
    ]

    def test_latest_period_on_live_property(self):
        assert electricity_period_index(TenantSnapshot(property_id="prop-a"), self.PERIODS) == 0

    def test_unassigned_uses_most_recent_occupied(self):
        assert electricity_period_index(TenantSnapshot(), self.PERIODS) == 1

    def test_no_periods(self):
        assert electricity_period_index(TenantSnapshot(property_id="prop-a"), []) is None

    def test_latest_occupied_skips_unassigned_tail(self):
        assert latest_occupied_index(self.PERIODS) == 1
        assert latest_occupied_index(self.PERIODS[2:]) is None


# ── FIFO allocation ───────────────────────────────────────────────────────

class TestAllocate:

    def test_oldest_period_paid_first(self):
        a = allocate([10500, 7500], [0, 0], [rent(12000)], [])
        assert a.rent_paid == pytest.approx((10500, 1500))
        assert a.rent_due([10500, 7500]) == pytest.approx([0, 6000])
        assert a.rent_overpaid == 0

    def test_payment_dates_do_not_matter(self):
        early = allocate([1000, 1000], [0, 0], [Payment(1500, utc(2020, 1, 1))], [])
        late = allocate([1000, 1000], [0, 0], [Payment(1500, utc(2030, 1, 1))], [])
        assert early == late

    def test_overflow_credited_to_latest_period(self):
        a = allocate([1000, 1000], [0, 0], [rent(2500)], [])
        assert a.rent_paid == pytest.approx((1000, 1500))
        assert a.rent_overpaid == pytest.approx(500)

    def test_exact_payment_leaves_nothing(self):
        a = allocate([1000, 2000], [0, 0], [rent(1000), rent(2000)], [])
        assert a.rent_due([1000, 2000]) == [0.0, 0.0]
        assert a.rent_overpaid == 0

    def test_pools_never_offset(self):
        """Extra rent does not pay for electricity."""
        a = allocate([1000], [300], [rent(1500)], [elec(0)])
        assert a.rent_overpaid == pytest.approx(500)
        assert a.electricity_due([300]) == pytest.approx([300])

    def test_electricity_overflow_goes_to_charged_period(self):
        a = allocate([1000, 1000], [300, 0], [], [elec(500)], electricity_index=0)
        assert a.electricity_paid == pytest.approx((500, 0))
        assert a.electricity_overpaid == pytest.approx(200)

    def test_no_periods_reports_remainder(self):
        a = allocate([], [], [rent(700)], [elec(50)])
        assert a.rent_paid == ()
        assert a.rent_overpaid == pytest.approx(700)
        assert a.electricity_overpaid == pytest.approx(50)

    def test_zero_rent_period_receives_nothing_until_overflow(self):
        a = allocate([1000, 0, 1000], [0, 0, 0], [rent(1500)], [])
        assert a.rent_paid == pytest.approx((1000, 0, 500))

    def test_rent_overflow_to_given_period(self):
        a = allocate([1000, 1000, 0], [0, 0, 0], [rent(3500)], [], rent_index=1)
        assert a.rent_paid == pytest.approx((1000, 2500, 0))
        assert a.rent_overpaid == pytest.approx(1500)

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            allocate([1000], [], [], [])
