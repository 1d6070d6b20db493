"""
Market snapshot consumed by the pricing models.

Holds FX rates, discount curves per currency and index data as of one
valuation date, and builds the Underlying objects Monte Carlo engines need.
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
import logging
import math
from typing import Dict, Mapping, Optional

from bondpricer.market.rates import DiscountCurve, RateCurve

logger = logging.getLogger(__name__)

CURRENCIES = frozenset({
    "AUD", "BRL", "CAD", "CHF", "CNY", "EUR", "GBP", "HKD", "IDR", "INR",
    "JPY", "KRW", "MXN", "NOK", "NZD", "PLN", "RUB", "SEK", "SGD", "TRY",
    "TWD", "USD", "ZAR",
})

# Horizon at which curve zero rates are sampled for flat simulation drifts.
DRIFT_HORIZON_DAYS = 365


def is_fx_pair(name: str) -> bool:
    """True for six-letter names made of two known currency codes."""
    return len(name) == 6 and name[:3] in CURRENCIES and name[3:] in CURRENCIES


@dataclass(frozen=True)
class Underlying:
    """
    A simulated underlying with flat continuous rates.

    Attributes:
        name: Variable name referenced by payoffs (e.g. "USDJPY", "NKY")
        spot: Current level
        currency: Currency the underlying is quoted in
        volatility: Lognormal volatility (annualised)
        domestic_rate: Continuously compounded rate of the quote currency
        foreign_rate: Dividend yield, or the base currency rate for FX
    """

    name: str
    spot: float
    currency: str
    volatility: float = 0.0
    domestic_rate: float = 0.0
    foreign_rate: float = 0.0

    def forward(self, t: float) -> float:
        """Forward level at t years."""
        if t <= 0:
            return self.spot
        return self.spot * math.exp((self.domestic_rate - self.foreign_rate) * t)


@dataclass(frozen=True)
class IndexData:
    """Market quote for a non-FX index."""

    spot: float
    currency: str
    volatility: float = 0.0
    dividend_yield: float = 0.0


@dataclass
class Market:
    """
    Market snapshot as of one valuation date.

    Attributes:
        valuation_date: Market date
        fx_rates: Value of one unit of each currency in a common pivot
        rate_curves: Discounting curve per currency
        indices: Non-FX index quotes by name
        fx_volatilities: Volatility per FX pair name (e.g. "USDJPY")
        paramset: Free-form identifier of the snapshot
    """

    valuation_date: date
    fx_rates: Dict[str, float] = field(default_factory=dict)
    rate_curves: Dict[str, RateCurve] = field(default_factory=dict)
    indices: Dict[str, IndexData] = field(default_factory=dict)
    fx_volatilities: Dict[str, float] = field(default_factory=dict)
    paramset: str = ""

    def fx(self, ccy_a: str, ccy_b: str) -> Optional[float]:
        """Price of one unit of ccy_a expressed in ccy_b."""
        a = self.fx_rates.get(ccy_a)
        b = self.fx_rates.get(ccy_b)
        if a is None or b is None or b == 0.0:
            return None
        return a / b

    def fx_shifted(self, multipliers: Mapping[str, float]) -> "Market":
        """Market in which each listed currency's value is divided by its multiplier."""
        shifted = dict(self.fx_rates)
        for ccy, mult in multipliers.items():
            if ccy in shifted:
                shifted[ccy] = shifted[ccy] / mult
        return replace(self, fx_rates=shifted)

    def rate_shifted(self, bump: float) -> "Market":
        """Market with every rate curve shifted in parallel."""
        return replace(self, rate_curves={k: c.shifted(bump) for k, c in self.rate_curves.items()})

    def get_discount_curve(self, currency: str) -> Optional[DiscountCurve]:
        curve = self.rate_curves.get(currency)
        if curve is None:
            return None
        return DiscountCurve(curve, self.valuation_date, currency)

    def _zero_rate(self, currency: str) -> float:
        curve = self.rate_curves.get(currency)
        if curve is None:
            return 0.0
        horizon = self.valuation_date + timedelta(days=DRIFT_HORIZON_DAYS)
        return curve.zero_rate(self.valuation_date, horizon)

    def get_index(self, name: str) -> Optional[Underlying]:
        """Underlying for a variable name, or None if the market cannot build it."""
        if name in self.indices:
            data = self.indices[name]
            return Underlying(
                name=name,
                spot=data.spot,
                currency=data.currency,
                volatility=data.volatility,
                domestic_rate=self._zero_rate(data.currency),
                foreign_rate=data.dividend_yield,
            )

        if is_fx_pair(name):
            base, quote = name[:3], name[3:]
            spot = self.fx(base, quote)
            if spot is None:
                return None
            return Underlying(
                name=name,
                spot=spot,
                currency=quote,
                volatility=self.fx_volatilities.get(name, 0.0),
                domestic_rate=self._zero_rate(quote),
                foreign_rate=self._zero_rate(base),
            )

        return None

    def spot(self, name: str) -> Optional[float]:
        underlying = self.get_index(name)
        return underlying.spot if underlying is not None else None
