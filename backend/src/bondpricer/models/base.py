"""
Pricing model interface.

A model turns the live leg of a bond into expected cash amounts per period
and discounts them. Expected amounts are memoised in the model cache per
path count; any path-count change clears it.
"""

from abc import ABC, abstractmethod
from datetime import date
import logging
import math
from typing import Callable, List, Optional, TYPE_CHECKING

from bondpricer.core.cache import ValueCache
from bondpricer.market.market import Market
from bondpricer.market.rates import DiscountCurve
from bondpricer.payoffs.scheduled import ScheduledPayoffs, finite_or_none

if TYPE_CHECKING:
    from bondpricer.bond.priceable import PriceableBond

logger = logging.getLogger(__name__)

# (market, bond) -> model, or None when the model cannot be built
ModelBuilder = Callable[[Market, "PriceableBond"], Optional["PricingModel"]]


class PricingModel(ABC):
    """
    Abstract pricing model.

    Attributes:
        valuation_date: Market date the model was built for
        scheduled_payoffs: Live leg priced by the model
        model_cache: Memoised results, cleared on path-count change
        is_calibrated: False until calibrate() succeeded
        bond_id: Owner identifier used in diagnostics
    """

    name: str = "model"

    def __init__(
        self,
        valuation_date: date,
        scheduled_payoffs: ScheduledPayoffs,
        mc_paths: int = 0,
        bond_id: str = ""
    ) -> None:
        self.valuation_date = valuation_date
        self.scheduled_payoffs = scheduled_payoffs
        self.bond_id = bond_id
        self.model_cache = ValueCache(f"{self.name}:{bond_id}")
        self.is_calibrated = True
        self._mc_paths = mc_paths

    @property
    def mc_paths(self) -> int:
        return self._mc_paths

    @mc_paths.setter
    def mc_paths(self, paths: int) -> None:
        if paths != self._mc_paths:
            self._mc_paths = paths
            self.model_cache.clear()

    def calibrate(self) -> "PricingModel":
        """Fit model parameters; the base model has none."""
        self.is_calibrated = True
        self.model_cache.clear()
        return self

    @abstractmethod
    def compute_amounts(self) -> List[float]:
        """Expected cash amount per live period; empty when it cannot price."""

    def expected_amounts(self) -> List[float]:
        return self.model_cache.get_or_compute(("amounts", self.mc_paths), self.compute_amounts)

    def price(self, curve: Optional[DiscountCurve] = None) -> Optional[float]:
        """
        Sum of expected amounts, discounted to the valuation date.

        Args:
            curve: Discount curve; None returns the undiscounted sum

        Returns:
            Dirty price, or None if any amount is undefined
        """
        amounts = self.expected_amounts()
        if len(amounts) != len(self.scheduled_payoffs):
            return None
        if curve is None:
            return finite_or_none(math.fsum(amounts))
        return finite_or_none(math.fsum(
            a * curve(s.period.payment_date) for a, s in zip(amounts, self.scheduled_payoffs)
        ))

    def model_forward(self) -> Optional[List[float]]:
        """Forward level per event date implied by the model, if it has one."""
        return None

    @property
    def model_status(self) -> str:
        return f"{self.name} paths={self.mc_paths}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.valuation_date}, periods={len(self.scheduled_payoffs)})"
