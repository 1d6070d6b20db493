"""
Tests for PriceableBond orchestration.

Validates:
- Cached prices are stable and every market change reprices
- Path counts survive market changes; calibration survives path changes
- Model switching with rollback
- Terminated and non-priceable bonds give no price
- Accrued interest, clean price and coupon information
- Knock states follow the valuation date
"""

import logging
import math
from datetime import date
from typing import Any, Dict

import pytest

from bondpricer.bond.priceable import ModelState
from bondpricer.bond.schema import build_bond
from bondpricer.config import PricingConfig
from bondpricer.market import FlatRateCurve, IndexData, Market
from bondpricer.models import default_models

from conftest import COUPON_DAYS, make_market


FIXED_COUPONS = 0.02 * sum(COUPON_DAYS) / 365


class TestDirtyPrice:
    """Pricing and discounting."""

    def test_fixed_bond_undiscounted(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        assert bond.dirty_price() == pytest.approx(1.0 + FIXED_COUPONS)

    def test_fixed_bond_discounted(self, fixed_bond_dict: Dict[str, Any], valuation_date: date) -> None:
        """Each amount is discounted from its payment date."""
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(valuation_date, rate=0.01)

        elapsed = 0
        expected = 0.0
        for days in COUPON_DAYS:
            elapsed += days
            expected += 0.02 * days / 365 * math.exp(-0.01 * elapsed / 365)
        expected += math.exp(-0.01 * elapsed / 365)

        assert bond.dirty_price() == pytest.approx(expected, rel=1e-12)

    def test_missing_curve_prices_undiscounted(
        self,
        fixed_bond_dict: Dict[str, Any],
        valuation_date: date,
        caplog: pytest.LogCaptureFixture
    ) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = Market(valuation_date=valuation_date, fx_rates={"JPY": 1.0})

        with caplog.at_level(logging.ERROR):
            price = bond.dirty_price()

        assert price == pytest.approx(1.0 + FIXED_COUPONS)
        assert "FIXED-2Y : missing discount curve" in caplog.text

    def test_no_market(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)

        assert bond.model_state == ModelState.UNINITIALIZED
        assert bond.dirty_price() is None
        assert bond.accrued_amount() is None

    def test_not_priceable(
        self,
        fixed_bond_dict: Dict[str, Any],
        flat_market: Market,
        caplog: pytest.LogCaptureFixture
    ) -> None:
        fixed_bond_dict["redemption"] = {"type": "forward", "variable": "NKY", "strike": "@NKY"}
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        with caplog.at_level(logging.ERROR):
            assert bond.dirty_price() is None

        assert "invalid payoff or trigger" in caplog.text

    def test_discount_factors(self, fixed_bond_dict: Dict[str, Any], valuation_date: date) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(valuation_date, rate=0.01)

        factors = bond.discount_factors()

        assert [d for d, _ in factors] == [
            date(2024, 7, 15), date(2025, 1, 15), date(2025, 7, 15), date(2026, 1, 15),
        ]
        assert factors[0][1] == pytest.approx(math.exp(-0.01 * 182 / 365))


class TestCaching:
    """Cache reads are stable; every mutation is visible on the next read."""

    def test_repeated_reads_identical(
        self,
        range_bond_dict: Dict[str, Any],
        vol_market: Market,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = vol_market

        first = bond.dirty_price()
        second = bond.dirty_price()

        assert first is not None
        assert first == second
        assert bond.cache.contains(("dirty_price", "montecarlo1f", pricing_config.num_paths))

    def test_market_change_reprices(
        self,
        range_bond_dict: Dict[str, Any],
        valuation_date: date,
        pricing_config: PricingConfig
    ) -> None:
        """A new market on the same date is reflected immediately."""
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = make_market(valuation_date, nky=95.0)
        in_range = bond.dirty_price()

        bond.market = make_market(valuation_date, nky=120.0)
        out_of_range = bond.dirty_price()

        assert in_range == pytest.approx(FIXED_COUPONS + 0.95)
        assert out_of_range == pytest.approx(FIXED_COUPONS + 1.0)

    def test_market_without_calibration_reprices(
        self,
        range_bond_dict: Dict[str, Any],
        valuation_date: date,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = make_market(valuation_date, nky=95.0)
        bond.dirty_price()

        bond.set_market_no_calibration(make_market(valuation_date, nky=120.0))

        assert bond.dirty_price() == pytest.approx(FIXED_COUPONS + 1.0)

    def test_unseeded_paths_stable_until_recalibration(
        self,
        range_bond_dict: Dict[str, Any],
        vol_market: Market
    ) -> None:
        """Without a seed the random stream belongs to the calibration."""
        bond = build_bond(range_bond_dict, PricingConfig(num_paths=500, seed=None))
        bond.market = vol_market
        first = bond.dirty_price()

        bond.clear_cache()
        assert bond.dirty_price() == first

        bond.set_market_no_calibration(vol_market)
        assert bond.dirty_price() == first

        bond.market = vol_market
        assert bond.dirty_price() != first

    def test_clear_cache_reaches_model(
        self,
        range_bond_dict: Dict[str, Any],
        vol_market: Market,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = vol_market
        bond.dirty_price()
        assert len(bond.model.model_cache) > 0

        bond.clear_cache()

        assert len(bond.model.model_cache) == 0
        assert len(bond.cache) == 0


class TestPathCount:
    """Path count changes."""

    def test_market_setter_keeps_path_count(
        self,
        range_bond_dict: Dict[str, Any],
        valuation_date: date,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = make_market(valuation_date)
        assert bond.set_mc_paths(500)

        bond.market = make_market(valuation_date, nky=105.0)

        assert bond.mc_paths == 500

    def test_path_change_keeps_calibration(
        self,
        range_bond_dict: Dict[str, Any],
        vol_market: Market,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = vol_market
        generation = bond.calibration_cache.generation

        bond.set_mc_paths(300)

        assert bond.calibration_cache.generation == generation
        assert bond.calibration_cache.contains(("volatility", "NKY"))
        assert bond.mc_paths == 300

    def test_temporary_path_count(
        self,
        range_bond_dict: Dict[str, Any],
        vol_market: Market,
        pricing_config: PricingConfig
    ) -> None:
        bond = build_bond(range_bond_dict, pricing_config)
        bond.market = vol_market

        assert bond.dirty_price_with_paths(100) is not None
        assert bond.mc_paths == pricing_config.num_paths

    def test_set_paths_without_model(self, fixed_bond_dict: Dict[str, Any]) -> None:
        assert not build_bond(fixed_bond_dict).set_mc_paths(100)


class TestModelSwitching:
    """Registry lookups and rollback."""

    def test_switch_and_back(self, range_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(range_bond_dict, PricingConfig(num_paths=100, seed=1))
        bond.market = flat_market

        assert bond.switch_model("forward")
        assert bond.current_model_name == "forward"
        assert bond.switch_model()
        assert bond.current_model_name == "montecarlo1f"
        assert bond.modelnames == ["closedform", "forward", "montecarlo1f"]

    def test_unknown_model_rolls_back(
        self,
        fixed_bond_dict: Dict[str, Any],
        flat_market: Market,
        caplog: pytest.LogCaptureFixture
    ) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        with caplog.at_level(logging.WARNING):
            assert not bond.switch_model("heston")

        assert bond.current_model_name == "forward"
        assert bond.model is not None
        assert bond.dirty_price() == pytest.approx(1.0 + FIXED_COUPONS)
        assert "unknown model heston" in caplog.text

    def test_failing_builder_rolls_back(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        models = default_models()
        models["broken"] = lambda market, bond: None
        bond = build_bond(fixed_bond_dict, models=models)
        bond.market = flat_market

        assert not bond.switch_model("broken")
        assert bond.current_model_name == "forward"
        assert bond.model_state == ModelState.CALIBRATED

    def test_no_model_state(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        fixed_bond_dict["model"] = "broken"
        bond = build_bond(fixed_bond_dict, models={"broken": lambda market, bond: None})
        bond.market = flat_market

        assert bond.model_state == ModelState.NO_MODEL
        assert bond.dirty_price() is None


class TestEarlyTermination:
    """Call triggers observed before the valuation date."""

    @pytest.fixture
    def callable_dict(self, fixed_bond_dict: Dict[str, Any]) -> Dict[str, Any]:
        """First coupon callable when NKY >= 100; NKY fixed at 105 that day."""
        fixed_bond_dict["calls"] = [{"trigger": {"NKY": 100.0}}]
        fixed_bond_dict["fixing_history"] = {"2024-01-15": {"NKY": 105.0}}
        return fixed_bond_dict

    def test_triggered_before_payment(self, callable_dict: Dict[str, Any]) -> None:
        """Triggered but not yet paid: first coupon plus redemption."""
        bond = build_bond(callable_dict)
        bond.market = make_market(date(2024, 4, 15))

        assert bond.early_termination_date == date(2024, 7, 15)
        assert not bond.is_terminated
        assert bond.dirty_price() == pytest.approx(1.0 + 0.02 * 182 / 365)

    def test_terminated(self, callable_dict: Dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
        bond = build_bond(callable_dict)
        bond.market = make_market(date(2024, 8, 1))

        with caplog.at_level(logging.INFO):
            assert bond.dirty_price() is None

        assert bond.is_terminated
        assert "terminated on 2024-07-15" in caplog.text

    def test_not_triggered(self, callable_dict: Dict[str, Any]) -> None:
        callable_dict["fixing_history"] = {"2024-01-15": {"NKY": 95.0}}
        bond = build_bond(callable_dict)
        bond.market = make_market(date(2024, 8, 1))

        assert bond.early_termination_date is None
        assert bond.dirty_price() is not None

    def test_add_fixings(self, fixed_bond_dict: Dict[str, Any]) -> None:
        fixed_bond_dict["calls"] = [{"trigger": {"NKY": 100.0}}]
        bond = build_bond(fixed_bond_dict)
        bond.add_fixings(date(2024, 1, 15), {"NKY": 101.0})

        bond.market = make_market(date(2024, 8, 1), nky=80.0)

        assert bond.is_terminated

    def test_add_fixings_after_market(self, fixed_bond_dict: Dict[str, Any]) -> None:
        """A trigger fixing recorded on a live bond terminates it immediately."""
        fixed_bond_dict["calls"] = [{"trigger": {"NKY": 100.0}}]
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2024, 8, 1), nky=80.0)
        assert not bond.is_terminated
        assert bond.dirty_price() is not None

        bond.add_fixings(date(2024, 1, 15), {"NKY": 101.0})

        assert bond.early_termination_date == date(2024, 7, 15)
        assert bond.is_terminated
        assert bond.dirty_price() is None


class TestKnockStateLifecycle:
    """Base knock states follow the valuation date."""

    @pytest.fixture
    def range_coupon_dict(self, fixed_bond_dict: Dict[str, Any]) -> Dict[str, Any]:
        fixed_bond_dict["coupon"] = {
            "type": "rangeforward",
            "variable": "NKY",
            "triggerlow": 90,
            "triggerhigh": 110,
            "strike": 100,
            "amount": 0.02,
        }
        fixed_bond_dict["fixing_history"] = {"2024-01-15": {"NKY": 95.0}}
        return fixed_bond_dict

    def test_past_fixing_knocks_in(self, range_coupon_dict: Dict[str, Any]) -> None:
        bond = build_bond(range_coupon_dict)
        bond.market = make_market(date(2024, 4, 15))

        first = bond.scheduled_payoffs[0]
        assert bond.scheduled_payoffs.state(first).knocked_in
        assert bond.current_rate() == pytest.approx(0.02 * 0.95)

    def test_earlier_date_resets(self, range_coupon_dict: Dict[str, Any]) -> None:
        """Moving the valuation date before the event undoes the knock."""
        bond = build_bond(range_coupon_dict)
        bond.market = make_market(date(2024, 4, 15))
        generation = bond.calibration_cache.generation

        bond.market = make_market(date(2024, 1, 10))

        first = bond.scheduled_payoffs[0]
        assert not bond.scheduled_payoffs.state(first).knocked_in
        assert bond.calibration_cache.generation > generation

        bond.market = make_market(date(2024, 4, 15))
        assert bond.scheduled_payoffs.state(first).knocked_in

    def test_spot_fallback(self, range_coupon_dict: Dict[str, Any]) -> None:
        """Without recorded fixings the market spot is used."""
        range_coupon_dict["fixing_history"] = {}
        bond = build_bond(range_coupon_dict)
        bond.market = make_market(date(2024, 4, 15), nky=120.0)

        first = bond.scheduled_payoffs[0]
        assert not bond.scheduled_payoffs.state(first).knocked_in
        assert bond.scheduled_payoffs.fixings_at(first) == {"NKY": 120.0}

    def test_added_fixing_replaces_spot(self, range_coupon_dict: Dict[str, Any]) -> None:
        """A fixing recorded after the market is set reprices like one known upfront."""
        bond = build_bond(range_coupon_dict)
        bond.market = make_market(date(2024, 8, 1), nky=80.0)
        second = bond.scheduled_payoffs[1]
        assert not bond.scheduled_payoffs.state(second).knocked_in
        before = bond.dirty_price()

        bond.add_fixings(date(2024, 7, 15), {"NKY": 95.0})

        assert bond.scheduled_payoffs.state(second).knocked_in
        assert bond.scheduled_payoffs.fixings_at(second) == {"NKY": 95.0}

        range_coupon_dict["fixing_history"]["2024-07-15"] = {"NKY": 95.0}
        fresh = build_bond(range_coupon_dict)
        fresh.market = make_market(date(2024, 8, 1), nky=80.0)

        assert bond.dirty_price() != pytest.approx(before)
        assert bond.dirty_price() == pytest.approx(fresh.dirty_price())


class TestAccrued:
    """Accrued interest and clean price."""

    def test_mid_period(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2024, 4, 15))

        accrued = bond.accrued_amount()

        assert accrued == pytest.approx(0.02 * 91 / 365)
        assert bond.clean_price() == pytest.approx(bond.dirty_price() - accrued)

    def test_before_issue(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2024, 1, 10))

        assert bond.accrued_amount() == 0.0

    def test_on_issue_date(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        assert bond.accrued_amount() == 0.0
        assert bond.clean_price() == pytest.approx(bond.dirty_price())

    def test_last_period(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2025, 10, 15))

        assert len(bond.live_coupons) == 1
        assert bond.accrued_amount() == pytest.approx(0.02 * 92 / 365)

    def test_zero_coupon(self, fixed_bond_dict: Dict[str, Any]) -> None:
        fixed_bond_dict["schedule"]["rule"] = "zero"
        fixed_bond_dict["coupon"] = {"type": "fixed", "amount": 0.0}
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2025, 1, 15))

        assert bond.accrued_amount() == 0.0


class TestCouponInformation:
    """Current rate, next payment and basis point value."""

    def test_next_payment(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2024, 4, 15))

        assert bond.current_rate() == pytest.approx(0.02)
        payment_date, amount = bond.next_payment()
        assert payment_date == date(2024, 7, 15)
        assert amount == pytest.approx(0.02 * 182 / 365)

    def test_bp_value(self, fixed_bond_dict: Dict[str, Any]) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(date(2024, 4, 15))

        assert bond.bp_value() == pytest.approx((91 + 184 + 181 + 184) / 365 * 0.0001)

    def test_underlyings(self, range_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(range_bond_dict, PricingConfig(num_paths=10, seed=1))
        assert bond.get_underlyings() == {"NKY": None}

        bond.market = flat_market

        underlying = bond.get_underlyings()["NKY"]
        assert underlying.spot == 100.0
        assert underlying.currency == "JPY"


class TestShiftedCopies:
    """Date and trigger shifted bonds."""

    def test_date_shifted(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        shifted = bond.date_shifted(-30)

        assert shifted.effective_date == date(2023, 12, 16)
        assert bond.effective_date == date(2024, 1, 15)
        assert shifted.valuation_date == flat_market.valuation_date
        assert shifted.current_model_name == bond.current_model_name

    def test_trigger_shifted(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        fixed_bond_dict["redemption"] = {"type": "forward", "variable": "USDJPY", "strike": 150}
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market
        rows = [[None], [160.0], [None], [None], [None]]

        shifted = bond.trigger_shifted(rows)

        assert shifted.live_triggers == rows
        assert bond.live_triggers == [[None]] * 5
        # USDJPY forward is 150: never reaches 160, so the price is unchanged
        assert shifted.dirty_price() == pytest.approx(bond.dirty_price())
