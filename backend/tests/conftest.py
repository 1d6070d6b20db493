"""
Shared pytest fixtures for bondpricer tests.

Provides a flat-rate JPY market, bond specifications on a NULL calendar
(every day a business day, so schedule dates are easy to read) and small
Monte Carlo configurations.
"""

import pytest
from datetime import date
from typing import Any, Dict

from bondpricer.config import FrontierConfig, PricingConfig
from bondpricer.market import FlatRateCurve, IndexData, Market


@pytest.fixture
def valuation_date() -> date:
    """Standard valuation date for tests (the bonds' effective date)."""
    return date(2024, 1, 15)


@pytest.fixture
def pricing_config() -> PricingConfig:
    """Standard pricing configuration for tests."""
    return PricingConfig(
        num_paths=2_000,  # Smaller for faster tests
        seed=42,
        block_size=500,
    )


@pytest.fixture
def frontier_config() -> FrontierConfig:
    return FrontierConfig(max_iteration=40, probe_paths=50)


def make_market(
    valuation_date: date,
    usdjpy: float = 150.0,
    nky: float = 100.0,
    rate: float = 0.0,
    volatility: float = 0.0
) -> Market:
    """JPY-centred market with one FX pair (USDJPY) and one index (NKY)."""
    return Market(
        valuation_date=valuation_date,
        fx_rates={"USD": usdjpy, "JPY": 1.0},
        rate_curves={"JPY": FlatRateCurve(rate), "USD": FlatRateCurve(rate)},
        indices={"NKY": IndexData(spot=nky, currency="JPY", volatility=volatility)},
        fx_volatilities={"USDJPY": volatility},
    )


@pytest.fixture
def flat_market(valuation_date: date) -> Market:
    """Zero rates, zero volatility: every model collapses onto the forward."""
    return make_market(valuation_date)


@pytest.fixture
def vol_market(valuation_date: date) -> Market:
    """Zero rates with 20% volatility on every underlying."""
    return make_market(valuation_date, volatility=0.2)


@pytest.fixture
def schedule_dict() -> Dict[str, Any]:
    """Two-year semi-annual schedule, 2024-01-15 to 2026-01-15."""
    return {
        "effective_date": "2024-01-15",
        "termination_date": "2026-01-15",
        "tenor": "6M",
        "calendar": "NULL",
        "rule": "backward",
    }


@pytest.fixture
def fixed_bond_dict(schedule_dict: Dict[str, Any]) -> Dict[str, Any]:
    """2% fixed coupon bond redeeming at par."""
    return {
        "id": "FIXED-2Y",
        "currency": "JPY",
        "schedule": schedule_dict,
        "coupon": {"type": "fixed", "amount": 0.02},
        "redemption": {"type": "fixed", "amount": 1.0},
        "model": "forward",
    }


@pytest.fixture
def range_bond_dict(schedule_dict: Dict[str, Any]) -> Dict[str, Any]:
    """2% fixed coupons, range knock-in forward redemption on NKY."""
    return {
        "id": "RANGE-NKY",
        "currency": "JPY",
        "schedule": schedule_dict,
        "coupon": {"type": "fixed", "amount": 0.02},
        "redemption": {
            "type": "rangeforward",
            "variable": "NKY",
            "triggerlow": 90,
            "triggerhigh": 110,
            "strike": 100,
        },
    }


@pytest.fixture
def fx_bond_dict(schedule_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Zero coupon, USDJPY forward redemption struck at 150, callable on
    every coupon date.
    """
    return {
        "id": "FX-USDJPY",
        "currency": "JPY",
        "schedule": schedule_dict,
        "coupon": {"type": "fixed", "amount": 0.0},
        "redemption": {"type": "forward", "variable": "USDJPY", "strike": 150},
        "calls": [{"bermudan": True}] * 4,
        "model": "forward",
    }


# ACT/365F day counts of the four coupon periods of schedule_dict
COUPON_DAYS = (182, 184, 181, 184)
