"""
Bond Pricer - schedule-driven structured bond pricing.

Values structured bonds whose cash flows are defined declaratively (trigger
levels, strikes, knock conditions) against a business-day schedule:
- Schedule generation (zero / backward / forward rules, stub merging)
- Payoff variants with irreversible per-scenario knock-in state
- Single-factor Monte Carlo, forward and closed-form pricing models
- Dirty / clean price, accrued interest and implied FX frontiers

Example:
    >>> from bondpricer import build_bond, load_bond_spec, Market
    >>> bond = build_bond(load_bond_spec("bond.json"))
    >>> bond.market = market
    >>> print(f"Dirty price: {bond.dirty_price():.4%}")
"""

__version__ = "0.1.0"

from bondpricer.config import FrontierConfig, PricingConfig

# Core utilities
from bondpricer.core import (
    BusinessDayConvention,
    Calendar,
    CalculationPeriod,
    DateGenerationRule,
    DayCountConvention,
    FixingInformation,
    Period,
    Schedule,
    ValueCache,
    Bisection,
    Brent,
    generate_schedule,
)

# Market
from bondpricer.market import (
    DiscountCurve,
    FlatRateCurve,
    IndexData,
    Market,
    PiecewiseConstantRateCurve,
    Underlying,
)

# Payoffs
from bondpricer.payoffs import (
    CallOption,
    FixedPayoff,
    ForwardPayoff,
    NullPayoff,
    PayoffSpec,
    PayoffState,
    RangeForwardPayoff,
    ScheduledPayoffs,
    evaluate,
    evaluate_path,
    evaluate_scalar,
    payoff_from_spec,
)

# Engines and models
from bondpricer.engines import BlackScholes1f, MonteCarloEngine
from bondpricer.models import (
    ClosedForm1fModel,
    ForwardModel,
    MonteCarlo1fModel,
    PricingModel,
    default_models,
)

# Bonds
from bondpricer.bond import (
    BondSpec,
    ModelState,
    PriceableBond,
    ScheduleSpec,
    build_bond,
    load_bond_spec,
)

# Risk and reporting
from bondpricer.risk import BumpingConfig, FxDeltaResult, compute_fx_delta
from bondpricer.reporting import CashflowEntry, CashflowReport, generate_cashflow_report

__all__ = [
    "__version__",
    "FrontierConfig",
    "PricingConfig",
    # Core
    "BusinessDayConvention",
    "Calendar",
    "CalculationPeriod",
    "DateGenerationRule",
    "DayCountConvention",
    "FixingInformation",
    "Period",
    "Schedule",
    "ValueCache",
    "Bisection",
    "Brent",
    "generate_schedule",
    # Market
    "DiscountCurve",
    "FlatRateCurve",
    "IndexData",
    "Market",
    "PiecewiseConstantRateCurve",
    "Underlying",
    # Payoffs
    "CallOption",
    "FixedPayoff",
    "ForwardPayoff",
    "NullPayoff",
    "PayoffSpec",
    "PayoffState",
    "RangeForwardPayoff",
    "ScheduledPayoffs",
    "evaluate",
    "evaluate_path",
    "evaluate_scalar",
    "payoff_from_spec",
    # Engines and models
    "BlackScholes1f",
    "MonteCarloEngine",
    "ClosedForm1fModel",
    "ForwardModel",
    "MonteCarlo1fModel",
    "PricingModel",
    "default_models",
    # Bonds
    "BondSpec",
    "ModelState",
    "PriceableBond",
    "ScheduleSpec",
    "build_bond",
    "load_bond_spec",
    # Risk and reporting
    "BumpingConfig",
    "FxDeltaResult",
    "compute_fx_delta",
    "CashflowEntry",
    "CashflowReport",
    "generate_cashflow_report",
]
