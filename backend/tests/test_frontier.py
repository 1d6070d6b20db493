"""
Tests for implied FX frontiers.

The FX bond redeems USDJPY / 150 with zero coupons and zero rates, so after
scaling the USD value by y its price is 1/y and the par frontier sits at the
current spot of 150.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from bondpricer.bond.priceable import PriceableBond
from bondpricer.bond.schema import build_bond
from bondpricer.config import FrontierConfig, PricingConfig
from bondpricer.core.solver import BRENT
from bondpricer.market import Market


class TestFxFrontier:
    """Single-date frontier."""

    def test_par_frontier_at_spot(
        self,
        fx_bond_dict: Dict[str, Any],
        flat_market: Market,
        frontier_config: FrontierConfig
    ) -> None:
        bond = build_bond(fx_bond_dict, frontier_config=frontier_config)
        bond.market = flat_market

        assert bond.next_bermudan == date(2024, 7, 15)
        frontier = bond.fx_frontier()

        assert bond.underlyings == ["USDJPY"]
        assert frontier[0] == pytest.approx(150.0, abs=0.2)

    def test_target_moves_frontier(
        self,
        fx_bond_dict: Dict[str, Any],
        flat_market: Market
    ) -> None:
        """Price 1/y hits 0.8 at y = 1.25, i.e. USDJPY = 120."""
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        config = FrontierConfig(target=0.8, accuracy=1e-6, max_iteration=60)

        frontier = bond.fx_frontier(date(2025, 1, 15), config)

        assert frontier[0] == pytest.approx(120.0, abs=1e-3)

    def test_brent_solver(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        config = FrontierConfig(accuracy=1e-6, max_iteration=100)

        frontier = bond.fx_frontier(config=config, solver=BRENT)

        assert frontier[0] == pytest.approx(150.0, abs=1e-3)

    def test_unreachable_target(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        """1/y never reaches 20 inside [0.1, 10]."""
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market

        assert bond.fx_frontier(config=FrontierConfig(target=20.0)) == [None]

    def test_original_bond_untouched(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        before = bond.dirty_price()

        bond.fx_frontier()

        assert bond.market is flat_market
        assert bond.dirty_price() == before

    def test_non_fx_underlying(self, range_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(range_bond_dict, PricingConfig(num_paths=100, seed=1))
        bond.market = flat_market

        assert bond.fx_frontier(date(2024, 7, 15)) == [None]

    def test_no_bermudan_date(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        fx_bond_dict["calls"] = []
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market

        assert bond.next_bermudan is None
        assert bond.fx_frontier() == [None]

    def test_no_market(self, fx_bond_dict: Dict[str, Any]) -> None:
        assert build_bond(fx_bond_dict).fx_frontier(date(2024, 7, 15)) == [None]


class TestFxFrontiers:
    """Frontiers across all Bermudan dates."""

    def test_reverse_chronological_with_later_triggers(
        self,
        fx_bond_dict: Dict[str, Any],
        flat_market: Market,
        monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Each solve sees the frontiers already found for later dates."""
        calls: List[Any] = []

        def fake_frontier(
            self: PriceableBond,
            valuation_date: Optional[date] = None,
            config: Optional[FrontierConfig] = None
        ) -> List[Optional[float]]:
            calls.append((valuation_date, self.live_triggers))
            return [100.0 + len(calls)]

        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        monkeypatch.setattr(PriceableBond, "fx_frontier", fake_frontier)

        triggers = bond.fx_frontiers()

        assert [d for d, _ in calls] == [
            date(2026, 1, 15), date(2025, 7, 15), date(2025, 1, 15), date(2024, 7, 15),
        ]
        # Second solve (2025-07-15) sees the first result on the 2026-01-15 coupon
        assert calls[1][1][3] == [101.0]
        assert calls[3][1][1:4] == [[103.0], [102.0], [101.0]]
        assert triggers == [[104.0], [103.0], [102.0], [101.0], [None]]

    def test_triggered_dates_skipped(
        self,
        fx_bond_dict: Dict[str, Any],
        flat_market: Market,
        monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Periods that already carry a trigger keep it."""
        fx_bond_dict["calls"] = [{"bermudan": True}, {"bermudan": True, "trigger": {"USDJPY": 170.0}}]
        seen: List[date] = []

        def fake_frontier(self, valuation_date=None, config=None):
            seen.append(valuation_date)
            return [140.0]

        bond = build_bond(fx_bond_dict)
        bond.market = flat_market
        monkeypatch.setattr(PriceableBond, "fx_frontier", fake_frontier)

        triggers = bond.fx_frontiers()

        assert seen == [date(2024, 7, 15)]
        assert triggers[:2] == [[140.0], [170.0]]

    def test_rows_align_with_live_periods(self, fx_bond_dict: Dict[str, Any], flat_market: Market) -> None:
        bond = build_bond(fx_bond_dict)
        bond.market = flat_market

        triggers = bond.fx_frontiers(FrontierConfig(max_iteration=40))

        assert len(triggers) == len(bond.live_payoffs)
        assert triggers[-1] == [None]
        # Nothing is left to price once the final coupon date becomes today
        assert triggers[3] == [None]
        assert triggers[2][0] == pytest.approx(150.0, abs=0.2)
