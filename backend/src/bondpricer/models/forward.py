"""Deterministic model: every future fixing equals its forward."""

import logging
from typing import Dict, List, Optional, TYPE_CHECKING

from bondpricer.market.market import Market, Underlying
from bondpricer.models.base import PricingModel
from bondpricer.payoffs.scheduled import ScheduledPayoffs

if TYPE_CHECKING:
    from bondpricer.bond.priceable import PriceableBond

logger = logging.getLogger(__name__)


class ForwardModel(PricingModel):
    """Prices the leg once, along the forward curve of each variable."""

    name = "forward"

    def __init__(
        self,
        valuation_date,
        scheduled_payoffs: ScheduledPayoffs,
        underlyings: Dict[str, Underlying],
        bond_id: str = ""
    ) -> None:
        super().__init__(valuation_date, scheduled_payoffs, 0, bond_id)
        self.underlyings = underlyings

    def forward_fixings(self) -> List[List[Dict[str, float]]]:
        """Fixing history of each item: forwards for future dates, known fixings otherwise."""
        leg = self.scheduled_payoffs
        histories = []
        for s, years in zip(leg, leg.observation_years(self.valuation_date)):
            known = leg.fixings_at(s)
            histories.append([
                {name: u.forward(t) for name, u in self.underlyings.items()} if t > 0.0 else known
                for t in years
            ])
        return histories

    def compute_amounts(self) -> List[float]:
        return self.scheduled_payoffs.price_path(self.forward_fixings())

    def model_forward(self) -> Optional[List[float]]:
        if len(self.underlyings) != 1:
            return None
        (underlying,) = self.underlyings.values()
        years = self.scheduled_payoffs.observation_years(self.valuation_date)
        return [underlying.forward(t) for t in sorted({t for ys in years for t in ys if t > 0.0})]


def build_forward(market: Market, bond: "PriceableBond") -> Optional[ForwardModel]:
    """Forward model over every variable of the live leg."""
    leg = bond.live_payoffs
    underlyings = {}
    for name in sorted(leg.variables):
        underlying = market.get_index(name)
        if underlying is None:
            logger.warning(f"{bond.id} : invalid index {name}")
            return None
        underlyings[name] = underlying
    return ForwardModel(market.valuation_date, leg, underlyings, bond.id)
