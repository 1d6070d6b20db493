"""
Tests for bump-and-reprice sensitivities.

The FX bond redeems USDJPY / 150 under the forward model, so a relative
move of the dollar moves the price one for one.
"""

from datetime import date
from typing import Any, Dict

import pytest

from bondpricer.bond.schema import build_bond
from bondpricer.market import Market
from bondpricer.risk import BumpingConfig, compute_fx_delta, fx_currencies

from conftest import COUPON_DAYS, make_market


class TestFxDelta:
    """FX delta by relative currency bumps."""

    def test_central_delta(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market

        result = compute_fx_delta(bond)

        assert result.base_price == pytest.approx(1.0)
        assert result.fx_delta["USD"] == pytest.approx(1.0, rel=1e-9)
        assert result.diagnostics["num_bump_scenarios"] == 2

    def test_one_sided_delta(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market

        result = compute_fx_delta(bond, BumpingConfig(fx_bump=0.02, use_central_diff=False))

        assert result.fx_delta["USD"] == pytest.approx(1.0, rel=1e-9)
        assert result.diagnostics["num_bump_scenarios"] == 1

    def test_market_restored(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        before = bond.dirty_price()

        compute_fx_delta(bond)

        assert bond.market is flat_market
        assert bond.dirty_price() == before

    def test_fx_currencies(self, fx_bond_dict: Dict[str, Any], range_bond_dict: Dict[str, Any]) -> None:
        assert fx_currencies(build_bond(fx_bond_dict)) == ["USD"]
        assert fx_currencies(build_bond(range_bond_dict)) == []

    def test_missing_market(self, fx_bond_dict: Dict[str, Any]) -> None:
        result = compute_fx_delta(build_bond(fx_bond_dict))

        assert result.base_price is None
        assert result.fx_delta == {}


class TestRho:
    """Parallel rate bump."""

    def test_fixed_bond_rho(self, fixed_bond_dict: Dict[str, Any], valuation_date: date) -> None:
        """At zero rates rho is minus the time-weighted sum of the cashflows."""
        bond = build_bond(fixed_bond_dict)
        bond.market = make_market(valuation_date)

        result = compute_fx_delta(bond, BumpingConfig(compute_rho=True))

        expected = 0.0
        elapsed = 0
        for days in COUPON_DAYS:
            elapsed += days
            expected -= 0.02 * days / 365 * elapsed / 365
        expected -= elapsed / 365

        assert result.fx_delta == {}
        assert result.rho == pytest.approx(expected, rel=1e-6)

    def test_rho_skipped_by_default(self, fixed_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fixed_bond_dict)
        bond.market = flat_market

        assert compute_fx_delta(bond).rho is None

    def test_undefined_bumped_price(self, range_bond_dict: Dict[str, Any], valuation_date: date) -> None:
        """No model means no bumped prices and no figures."""
        range_bond_dict["coupon"] = {"type": "forward", "variable": "USDJPY", "strike": 150, "amount": 0.02}
        bond = build_bond(range_bond_dict)
        bond.market = make_market(valuation_date)

        result = compute_fx_delta(bond, BumpingConfig(compute_rho=True))

        assert result.base_price is None
        assert result.fx_delta == {"USD": None}
        assert result.rho is None
        assert result.diagnostics["num_bump_scenarios"] == 4
