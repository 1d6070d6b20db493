"""Market collaborators: rate curves, discount curves and market snapshots."""

from bondpricer.market.rates import (
    RateCurve,
    FlatRateCurve,
    PiecewiseConstantRateCurve,
    DiscountCurve,
)
from bondpricer.market.market import (
    CURRENCIES,
    IndexData,
    Market,
    Underlying,
    is_fx_pair,
)

__all__ = [
    "RateCurve",
    "FlatRateCurve",
    "PiecewiseConstantRateCurve",
    "DiscountCurve",
    "CURRENCIES",
    "IndexData",
    "Market",
    "Underlying",
    "is_fx_pair",
]
