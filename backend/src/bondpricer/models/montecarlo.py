"""
Single-underlying Monte Carlo model.

Simulates the leg's variable at every future observation date, prices the leg on
each path and averages per period.
"""

from dataclasses import replace
import logging
from typing import Callable, List, Optional, TYPE_CHECKING

import numpy as np
from numpy.random import SeedSequence

from bondpricer.config import PricingConfig
from bondpricer.engines.base import MonteCarloEngine, analyze_paths
from bondpricer.engines.black_scholes import BlackScholes1f
from bondpricer.market.market import Market, Underlying
from bondpricer.models.base import PricingModel
from bondpricer.payoffs.scheduled import ScheduledPayoffs

if TYPE_CHECKING:
    from bondpricer.bond.priceable import PriceableBond

logger = logging.getLogger(__name__)

# (underlying, calibrated volatility, config) -> engine, or None if unsupported
EngineFactory = Callable[[Underlying, float, PricingConfig], Optional[MonteCarloEngine]]


def black_scholes_engine(
    underlying: Underlying,
    volatility: float,
    config: PricingConfig
) -> MonteCarloEngine:
    return BlackScholes1f(
        underlying,
        volatility,
        seed=config.seed,
        block_size=config.block_size,
        max_workers=config.max_workers,
    )


class MonteCarlo1fModel(PricingModel):
    """
    Monte Carlo model on one underlying.

    Attributes:
        engine: Path engine for the underlying
        variable: Name of the simulated variable
    """

    name = "montecarlo1f"

    def __init__(
        self,
        valuation_date,
        scheduled_payoffs: ScheduledPayoffs,
        engine: MonteCarloEngine,
        variable: str,
        mc_paths: int = 100_000,
        bond_id: str = ""
    ) -> None:
        super().__init__(valuation_date, scheduled_payoffs, mc_paths, bond_id)
        self.engine = engine
        self.variable = variable

    def observation_years(self) -> List[List[float]]:
        return self.scheduled_payoffs.observation_years(self.valuation_date)

    def future_years(self) -> List[float]:
        return sorted({t for years in self.observation_years() for t in years if t > 0.0})

    def generate_paths(self, num_paths: int):
        """Simulated paths at the future observation dates, or None on a date mismatch."""
        future = self.future_years()
        dates_used, paths = self.engine.generate_paths(future, num_paths)
        if list(dates_used) != future:
            logger.error(
                f"{self.bond_id} : MC paths dates {list(dates_used)} do not match "
                f"event dates {future}"
            )
            return None
        return dates_used, paths

    def mc_price(self, num_paths: int) -> List[float]:
        """
        Mean cash amount per period over num_paths simulated paths.

        Returns an empty list when pricing fails; failures are logged.
        """
        leg = self.scheduled_payoffs
        years = self.observation_years()
        known = [leg.fixings_at(s) for s in leg]

        if not self.future_years():
            return leg.price_path([[fixings] * len(ys) for fixings, ys in zip(known, years)])

        if num_paths <= 0:
            logger.error(f"{self.bond_id} : invalid number of paths {num_paths}")
            return []

        try:
            generated = self.generate_paths(num_paths)
            if generated is None:
                return []
            dates_used, paths = generated
            column = {t: j for j, t in enumerate(dates_used)}

            totals = np.zeros(len(leg))
            for path in paths:
                histories = [
                    [{self.variable: float(path[column[t]])} if t > 0.0 else known[i] for t in ys]
                    for i, ys in enumerate(years)
                ]
                totals += leg.price_path(histories)
            return (totals / len(paths)).tolist()

        except Exception:
            logger.exception(f"{self.bond_id} : Monte Carlo pricing failed")
            return []

    def compute_amounts(self) -> List[float]:
        return self.mc_price(self.mc_paths)

    def model_forward(self) -> Optional[List[float]]:
        def compute() -> Optional[List[float]]:
            generated = self.generate_paths(self.mc_paths)
            if generated is None:
                return None
            return analyze_paths(*generated).mean

        return self.model_cache.get_or_compute(("forward", self.mc_paths), compute)

    @property
    def model_status(self) -> str:
        return f"{self.name} paths={self.mc_paths} {self.engine.model_status}"


def build_montecarlo1f(
    market: Market,
    bond: "PriceableBond",
    engine_factory: Optional[EngineFactory] = None
) -> Optional[MonteCarlo1fModel]:
    """
    Build a single-underlying Monte Carlo model for a bond.

    Rejects legs referencing other than one variable, variables the market
    cannot build, quanto legs and underlyings without an engine.
    """
    leg = bond.live_payoffs
    variables = sorted(leg.variables)
    if len(variables) != 1:
        logger.warning(f"{bond.id} : {MonteCarlo1fModel.name} needs one underlying, got {variables}")
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
    config = bond.pricing_config
    if config.seed is None:
        # Unseeded runs keep one random stream per calibration, so re-pricing
        # without recalibration uses the same paths.
        seed = bond.calibration_cache.get_or_compute(("seed", variable), lambda: SeedSequence().entropy)
        config = replace(config, seed=seed)

    factory = engine_factory if engine_factory is not None else black_scholes_engine
    engine = factory(underlying, volatility, config)
    if engine is None:
        logger.warning(f"{bond.id} : no Monte Carlo engine for {variable}")
        return None

    return MonteCarlo1fModel(
        market.valuation_date,
        leg,
        engine,
        variable,
        mc_paths=bond.pricing_config.num_paths,
        bond_id=bond.id,
    )
