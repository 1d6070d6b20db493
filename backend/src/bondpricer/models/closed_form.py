"""
Closed-form single-underlying model.

Expected payoffs under a lognormal underlying, for cash-settled legs
without call triggers:

- fixed: amount
- forward: amount * F / K
- range forward (in range): amount * (1 - P(in) + E[S ; in] / K)
- range forward (out of range): amount * (P(in) + (F - E[S ; in]) / K)

where F is the forward at the event date and "in" is low <= S <= high.
"""

import logging
import math
from typing import List, Optional, TYPE_CHECKING

from bondpricer.engines.black_scholes import range_moments
from bondpricer.market.market import Market, Underlying
from bondpricer.models.base import PricingModel
from bondpricer.payoffs.payoff import (
    FixedPayoff,
    ForwardPayoff,
    RangeForwardPayoff,
    SettlementType,
)
from bondpricer.payoffs.scheduled import ScheduledPayoff, ScheduledPayoffs

if TYPE_CHECKING:
    from bondpricer.bond.priceable import PriceableBond

logger = logging.getLogger(__name__)

NAN = float("nan")


class ClosedForm1fModel(PricingModel):
    """Analytic expectation of each period on one lognormal underlying."""

    name = "closedform"

    def __init__(
        self,
        valuation_date,
        scheduled_payoffs: ScheduledPayoffs,
        underlying: Underlying,
        volatility: float,
        bond_id: str = ""
    ) -> None:
        super().__init__(valuation_date, scheduled_payoffs, 0, bond_id)
        self.underlying = underlying
        self.volatility = volatility

    def expected_rate(self, item: ScheduledPayoff, t: float) -> float:
        """Expected payoff rate of one item whose event is t years ahead."""
        payoff = item.payoff
        state = self.scheduled_payoffs.state(item)
        forward = self.underlying.forward(t)
        stdev = self.volatility * math.sqrt(t)

        if isinstance(payoff, FixedPayoff):
            return payoff.amount if payoff.is_priceable else NAN

        if not payoff.is_priceable:
            return NAN

        if isinstance(payoff, ForwardPayoff):
            (strike,) = payoff.strikes.values()
            return payoff.amount * forward / strike

        if isinstance(payoff, RangeForwardPayoff):
            (strike,) = payoff.strikes.values()
            if state.knocked_in:
                return payoff.amount * forward / strike
            (low,) = payoff.trigger_low.values() or (None,)
            (high,) = payoff.trigger_high.values() or (None,)
            prob_in, mean_in = range_moments(forward, low, high, stdev)
            if payoff.forward_in_range:
                return payoff.amount * (1.0 - prob_in + mean_in / strike)
            return payoff.amount * (prob_in + (forward - mean_in) / strike)

        return NAN

    def compute_amounts(self) -> List[float]:
        leg = self.scheduled_payoffs
        amounts = []
        for s, t in zip(leg, leg.event_date_years(self.valuation_date)):
            if t > 0.0:
                rate = self.expected_rate(s, t)
            else:
                rate = leg.price_snapshot(leg.fixings_at(s), s)
            amounts.append(rate * s.period.day_count)
        return amounts

    def model_forward(self) -> Optional[List[float]]:
        years = self.scheduled_payoffs.event_date_years(self.valuation_date)
        return [self.underlying.forward(t) for t in sorted({t for t in years if t > 0.0})]


def build_closed_form(market: Market, bond: "PriceableBond") -> Optional[ClosedForm1fModel]:
    """
    Closed-form model for a bond.

    Rejects legs on other than one variable, physical settlement, call
    triggers, null payoffs and multi-strike payoffs.
    """
    leg = bond.live_payoffs
    variables = sorted(leg.variables)
    if len(variables) != 1:
        logger.warning(f"{bond.id} : {ClosedForm1fModel.name} needs one underlying, got {variables}")
        return None

    for s in leg:
        if s.call.is_trigger:
            logger.warning(f"{bond.id} : {ClosedForm1fModel.name} does not support call triggers")
            return None
        if s.payoff.settlement == SettlementType.PHYSICAL:
            logger.warning(f"{bond.id} : {ClosedForm1fModel.name} does not support physical settlement")
            return None
        if not isinstance(s.payoff, (FixedPayoff, ForwardPayoff, RangeForwardPayoff)):
            logger.warning(f"{bond.id} : {ClosedForm1fModel.name} does not support {s.payoff.kind} payoffs")
            return None
        if isinstance(s.payoff, (ForwardPayoff, RangeForwardPayoff)) and len(s.payoff.strikes) != 1:
            logger.warning(f"{bond.id} : {ClosedForm1fModel.name} needs one strike per payoff")
            return None

    variable = variables[0]
    underlying = market.get_index(variable)
    if underlying is None:
        logger.warning(f"{bond.id} : invalid index {variable}")
        return None
    if underlying.currency != bond.currency:
        logger.warning(f"{bond.id} : quanto model not supported ({variable} in {underlying.currency})")
        return None

    volatility = bond.calibration_cache.get_or_compute(
        ("volatility", variable), lambda: underlying.volatility
    )
    return ClosedForm1fModel(market.valuation_date, leg, underlying, volatility, bond.id)
