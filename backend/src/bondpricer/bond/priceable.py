"""
Priceable bond: market, model and caches around a scheduled leg.

PriceableBond owns the current market snapshot, the active pricing model
and a registry of model builders, plus two caches:

- cache: general values (prices), cleared on every recalibration, market
  or model change and on explicit request
- calibration_cache: calibrated model parameters, cleared only when the
  model is recalibrated

The active model's own cache is linked to both, so clearing either one
clears it as well. Every public operation runs under the bond's RLock.
"""

from datetime import date, timedelta
from enum import Enum
import functools
import logging
import math
import threading
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from bondpricer.config import FrontierConfig, PricingConfig
from bondpricer.core.cache import ValueCache
from bondpricer.core.day_count import day_count_fraction
from bondpricer.core.schedule import CalculationPeriod
from bondpricer.core.solver import BISECTION, RangedRootFinder
from bondpricer.market.market import Market, Underlying, is_fx_pair
from bondpricer.market.rates import DiscountCurve
from bondpricer.models import DEFAULT_MODEL_NAME, ModelBuilder, PricingModel, default_models
from bondpricer.payoffs.payoff import evaluate, is_fixed
from bondpricer.payoffs.scheduled import ScheduledPayoff, ScheduledPayoffs, finite_or_none

logger = logging.getLogger(__name__)

BASIS_POINT = 0.0001


class ModelState(str, Enum):
    """Lifecycle of the bond's pricing model."""

    UNINITIALIZED = "uninitialized"
    CALIBRATED = "calibrated"
    NO_MODEL = "no_model"


def synchronized(method: Callable) -> Callable:
    """Run a bond method under the bond's lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class PriceableBond:
    """
    A structured bond that can be priced against a market.

    Attributes:
        id: Bond identifier used in diagnostics
        currency: Settlement currency
        scheduled_payoffs: Full leg (coupons and redemption)
        issue_date: Issue date; no accrued interest before it
        fixing_history: Observed fixings by event date
        models: Model builders by name
        current_model_name: Name of the model last initialised
        pricing_config: Monte Carlo defaults for model builders
        frontier_config: FX frontier defaults
    """

    def __init__(
        self,
        id: str,
        currency: str,
        scheduled_payoffs: ScheduledPayoffs,
        issue_date: Optional[date] = None,
        fixing_history: Optional[Mapping[date, Mapping[str, float]]] = None,
        models: Optional[Dict[str, ModelBuilder]] = None,
        default_model_name: str = DEFAULT_MODEL_NAME,
        pricing_config: Optional[PricingConfig] = None,
        frontier_config: Optional[FrontierConfig] = None
    ) -> None:
        self.id = id
        self.currency = currency
        self.scheduled_payoffs = scheduled_payoffs
        self.issue_date = issue_date if issue_date is not None else self.effective_date
        self.fixing_history: Dict[date, Dict[str, float]] = {
            d: dict(v) for d, v in (fixing_history or {}).items()
        }
        self.models = dict(models) if models is not None else default_models()
        self.default_model_name = default_model_name
        self.current_model_name = default_model_name
        self.pricing_config = pricing_config or PricingConfig()
        self.frontier_config = frontier_config or FrontierConfig()

        self.cache = ValueCache(f"{id}:value")
        self.calibration_cache = ValueCache(f"{id}:calibration")
        self.model: Optional[PricingModel] = None
        self.early_termination_date: Optional[date] = None
        self._market: Optional[Market] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Schedule shortcuts
    # ------------------------------------------------------------------

    @property
    def effective_date(self) -> Optional[date]:
        return min((p.start_date for p in self.scheduled_payoffs.periods), default=None)

    @property
    def termination_date(self) -> Optional[date]:
        return max((p.end_date for p in self.scheduled_payoffs.periods), default=None)

    @property
    def underlyings(self) -> List[str]:
        return self.scheduled_payoffs.underlyings

    @property
    def valuation_date(self) -> Optional[date]:
        return self._market.valuation_date if self._market is not None else None

    @property
    def live_payoffs(self) -> ScheduledPayoffs:
        """Periods paying after the valuation date (the whole leg without a market)."""
        vd = self.valuation_date
        if vd is None:
            return self.scheduled_payoffs
        return self.scheduled_payoffs.live(vd)

    @property
    def live_coupons(self) -> List[ScheduledPayoff]:
        return [s for s in self.live_payoffs if not s.is_redemption]

    @property
    def modelnames(self) -> List[str]:
        return sorted(self.models)

    # ------------------------------------------------------------------
    # Market and model lifecycle
    # ------------------------------------------------------------------

    @property
    def market(self) -> Optional[Market]:
        return self._market

    @market.setter
    def market(self, new_market: Market) -> None:
        with self._lock:
            previous = self._market
            recalibrate = previous is None or previous.valuation_date == new_market.valuation_date
            if not recalibrate:
                self.scheduled_payoffs.states.reset()
                self.calibration_cache.clear()
            self._install_market(new_market, recalibrate)

    @synchronized
    def set_market_no_calibration(self, new_market: Market) -> None:
        """Replace the market, keeping calibrated parameters."""
        self._install_market(new_market, False)

    def _install_market(self, new_market: Market, recalibrate: bool) -> None:
        previous_paths = self.mc_paths
        self._market = new_market
        self.scheduled_payoffs.update_future_fixings(new_market.valuation_date, self.fixing_source)
        self.initialize_early_termination()
        self.initialize_model(recalibrate, self.current_model_name)
        if previous_paths is not None:
            self.set_mc_paths(previous_paths, cache_clear=False)

    def fixing_source(self, event_date: date, variables: FrozenSet[str]) -> Dict[str, float]:
        """Recorded fixings of an event date, falling back to market spots."""
        recorded = self.fixing_history.get(event_date, {})
        fixings = {}
        for name in variables:
            if name in recorded:
                fixings[name] = recorded[name]
            elif self._market is not None:
                spot = self._market.spot(name)
                if spot is not None:
                    fixings[name] = spot
        return fixings

    @synchronized
    def add_fixings(self, event_date: date, fixings: Mapping[str, float]) -> None:
        """
        Record observed fixings.

        With a market set, knock states are rebuilt from the updated history
        (replacing any spot fallback), early termination is re-evaluated and
        cached prices are dropped.
        """
        self.fixing_history.setdefault(event_date, {}).update(fixings)
        if self._market is not None:
            self.scheduled_payoffs.states.reset()
            self.scheduled_payoffs.update_future_fixings(self._market.valuation_date, self.fixing_source)
            self.initialize_early_termination()
        self.cache.clear()

    def initialize_early_termination(self) -> None:
        vd = self.valuation_date
        if vd is None:
            self.early_termination_date = None
            return
        self.early_termination_date = self.scheduled_payoffs.early_termination_date(vd, self.fixing_source)

    @property
    def is_terminated(self) -> Optional[bool]:
        vd = self.valuation_date
        if vd is None:
            return None
        return self.early_termination_date is not None and self.early_termination_date <= vd

    def _set_model(self, model: Optional[PricingModel]) -> None:
        if self.model is not None:
            self.cache.unlink(self.model.model_cache)
            self.calibration_cache.unlink(self.model.model_cache)
        self.model = model
        if model is not None:
            self.cache.link(model.model_cache)
            self.calibration_cache.link(model.model_cache)

    @synchronized
    def initialize_model(self, recalibrate: bool = True, model_name: Optional[str] = None) -> None:
        """
        Build the named model on the current market.

        Args:
            recalibrate: Clear calibrated parameters and calibrate afresh
            model_name: Registry name; defaults to the current model
        """
        name = model_name or self.current_model_name
        self.current_model_name = name
        self._set_model(None)

        if recalibrate:
            self.calibration_cache.clear()

        builder = self.models.get(name)
        if self._market is None:
            logger.warning(f"{self.id} : missing market")
        elif builder is None:
            logger.error(f"{self.id} : unknown model {name}")
        else:
            model = builder(self._market, self)
            if model is not None and recalibrate:
                model = model.calibrate()
            self._set_model(model)

        self.cache.clear()

    @synchronized
    def switch_model(self, model_name: Optional[str] = None, recalibrate: bool = True) -> bool:
        """
        Switch to another registered model.

        Returns:
            True on success. On failure the previous model is rebuilt and
            False is returned.
        """
        previous = self.current_model_name
        self.initialize_model(recalibrate, model_name or self.default_model_name)
        if self.model is None:
            logger.warning(f"{self.id} : model {model_name} failed, reverting to {previous}")
            self.initialize_model(recalibrate, previous)
            return False
        return True

    @synchronized
    def calibrate_model(self) -> None:
        if self.model is not None:
            self._set_model(self.model.calibrate())
            self.cache.clear()

    @property
    def model_state(self) -> ModelState:
        if self._market is None:
            return ModelState.UNINITIALIZED
        if self.model is None:
            return ModelState.NO_MODEL
        return ModelState.CALIBRATED

    @synchronized
    def clear_cache(self) -> None:
        """Drop cached values (the model cache follows)."""
        self.cache.clear()

    @synchronized
    def set_mc_paths(self, paths: int, cache_clear: bool = True) -> bool:
        if self.model is None:
            return False
        self.model.mc_paths = paths
        if cache_clear:
            self.cache.clear()
        return True

    @property
    def mc_paths(self) -> Optional[int]:
        return self.model.mc_paths if self.model is not None else None

    @synchronized
    def get_underlyings(self) -> Dict[str, Optional[Underlying]]:
        if self._market is None:
            return {u: None for u in self.underlyings}
        return {u: self._market.get_index(u) for u in self.underlyings}

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    @property
    def discount_curve(self) -> Optional[DiscountCurve]:
        if self._market is None:
            return None
        return self._market.get_discount_curve(self.currency)

    @synchronized
    def discount_factors(self) -> Optional[List[Tuple[date, float]]]:
        curve = self.discount_curve
        vd = self.valuation_date
        if curve is None or vd is None:
            return None
        payment_dates = sorted({p.payment_date for p in self.scheduled_payoffs.periods})
        return [(d, curve(d)) for d in payment_dates if d > vd]

    def _price_check(self) -> bool:
        if not self.scheduled_payoffs.is_priceable:
            logger.error(f"{self.id} : invalid payoff or trigger")
            return False
        if self.is_terminated:
            logger.info(f"{self.id} : terminated on {self.early_termination_date}")
            return False
        if self.model is None:
            logger.error(f"{self.id} : missing model")
            return False
        return True

    def _model_price(self) -> Optional[float]:
        curve = self.discount_curve
        if curve is None:
            logger.error(f"{self.id} : missing discount curve")
        return self.model.price(curve)

    @synchronized
    def dirty_price(self) -> Optional[float]:
        """Price including accrued interest (1.0 = 100%), or None with a diagnostic."""
        if not self._price_check():
            return None
        key = ("dirty_price", self.current_model_name, self.model.mc_paths)
        return self.cache.get_or_compute(key, self._model_price)

    @synchronized
    def dirty_price_with_paths(self, paths: int) -> Optional[float]:
        """Dirty price with a temporary Monte Carlo path count."""
        if not self._price_check():
            return None
        original = self.model.mc_paths
        self.model.mc_paths = paths
        try:
            return self._model_price()
        finally:
            self.model.mc_paths = original

    def _spot_rate(self, item: ScheduledPayoff) -> float:
        """Payoff rate from assigned fixings, or from market spots while unfixed."""
        state = self.scheduled_payoffs.state(item)
        if is_fixed(item.payoff, state) or not item.payoff.variables:
            return evaluate(item.payoff, state.fixings, state)
        spots = {}
        for name in item.payoff.variables:
            spot = self._market.spot(name) if self._market is not None else None
            if spot is not None:
                spots[name] = spot
        return evaluate(item.payoff, spots, state)

    @synchronized
    def accrued_amount(self) -> Optional[float]:
        """Accrued coupon at the valuation date, or None when undefined."""
        vd = self.valuation_date
        if vd is None:
            return None
        if self.issue_date is not None and self.issue_date >= vd:
            return 0.0
        if not any(not s.is_redemption for s in self.scheduled_payoffs):
            return 0.0

        coupons = self.live_coupons
        termination = self.termination_date
        if len(coupons) == 1 and termination in (coupons[0].period.payment_date, coupons[0].period.end_date):
            item = coupons[0]
            period = item.period
            if vd <= period.start_date:
                return 0.0
            elapsed = day_count_fraction(period.start_date, vd, period.day_count_convention)
            amount = elapsed * self._spot_rate(item)
        else:
            amount = math.fsum(
                s.period.accrued(vd) * self._spot_rate(s)
                for s in coupons if s.period.is_current_period(vd)
            )
        return None if math.isnan(amount) else amount

    @synchronized
    def clean_price(self) -> Optional[float]:
        dirty = self.dirty_price()
        accrued = self.accrued_amount()
        if dirty is None or accrued is None:
            return None
        return dirty - accrued

    @synchronized
    def model_forward(self) -> Optional[List[float]]:
        return self.model.model_forward() if self.model is not None else None

    # ------------------------------------------------------------------
    # Coupon information
    # ------------------------------------------------------------------

    def _next_coupon(self) -> Optional[ScheduledPayoff]:
        coupons = self.live_coupons
        if not coupons or self._market is None:
            return None
        return min(coupons, key=lambda s: s.period.payment_date)

    @synchronized
    def current_rate(self) -> Optional[float]:
        item = self._next_coupon()
        return finite_or_none(self._spot_rate(item)) if item is not None else None

    @synchronized
    def next_payment(self) -> Optional[Tuple[date, float]]:
        item = self._next_coupon()
        if item is None:
            return None
        amount = finite_or_none(item.period.day_count * self._spot_rate(item))
        return (item.period.payment_date, amount) if amount is not None else None

    @synchronized
    def bp_value(self) -> Optional[float]:
        """Present value of one basis point of coupon over the remaining periods."""
        vd = self.valuation_date
        curve = self.discount_curve
        if vd is None or curve is None:
            return None
        return math.fsum(
            s.period.day_count_after(vd) * curve(s.period.payment_date)
            for s in self.live_payoffs if not s.is_redemption
        ) * BASIS_POINT

    @property
    def fx_list(self) -> List[str]:
        return self.live_payoffs.fx_variables()

    @property
    def live_triggers(self) -> List[List[Optional[float]]]:
        return self.live_payoffs.triggers(self.underlyings)

    @property
    def live_bermudans(self) -> List[Tuple[CalculationPeriod, bool]]:
        return [(s.period, s.call.bermudan) for s in self.live_payoffs]

    @property
    def next_bermudan(self) -> Optional[date]:
        dates = [p.payment_date for p, bermudan in self.live_bermudans if bermudan]
        return min(dates) if dates else None

    # ------------------------------------------------------------------
    # Shifted copies
    # ------------------------------------------------------------------

    def _clone(self, scheduled_payoffs: ScheduledPayoffs, day_shift: int = 0) -> "PriceableBond":
        """Copy sharing builders and calibrated parameters, on the same market."""
        shift = _date_shifter(day_shift)
        bond = PriceableBond(
            self.id,
            self.currency,
            scheduled_payoffs,
            issue_date=shift(self.issue_date) if self.issue_date is not None else None,
            fixing_history={shift(d): v for d, v in self.fixing_history.items()},
            models=self.models,
            default_model_name=self.default_model_name,
            pricing_config=self.pricing_config,
            frontier_config=self.frontier_config,
        )
        bond.current_model_name = self.current_model_name
        bond.calibration_cache.copy_entries(self.calibration_cache)
        if self._market is not None:
            bond.set_market_no_calibration(self._market)
            if self.mc_paths is not None:
                bond.set_mc_paths(self.mc_paths, cache_clear=False)
        return bond

    @synchronized
    def date_shifted(self, days: int) -> "PriceableBond":
        """Copy with every schedule date moved by days (negative moves earlier)."""
        return self._clone(self.scheduled_payoffs.date_shifted(days), days)

    @synchronized
    def trigger_shifted(self, triggers: List[List[Optional[float]]]) -> "PriceableBond":
        """
        Copy with the call triggers of the live periods replaced.

        Args:
            triggers: One row per live period, aligned with underlyings
        """
        underlyings = self.underlyings
        rows = self.scheduled_payoffs.triggers(underlyings)
        live_keys = [s.key for s in self.live_payoffs]
        position = {s.key: i for i, s in enumerate(self.scheduled_payoffs)}
        for key, row in zip(live_keys, triggers):
            rows[position[key]] = list(row)
        return self._clone(self.scheduled_payoffs.trigger_shifted(rows, underlyings))

    # ------------------------------------------------------------------
    # FX frontiers
    # ------------------------------------------------------------------

    @synchronized
    def fx_frontier(
        self,
        valuation_date: Optional[date] = None,
        config: Optional[FrontierConfig] = None,
        solver: RangedRootFinder = BISECTION
    ) -> List[Optional[float]]:
        """
        FX levels at which the dirty price equals the target.

        The bond is moved so that valuation_date (default: next Bermudan
        date) becomes today, then for each FX underlying quoted in the bond
        currency the base currency is scaled by y and the bond re-priced
        without recalibration until price(y) hits the target.

        Returns:
            One entry per underlying: current FX / solved multiplier, or
            None for non-FX underlyings and unsolved cases
        """
        cfg = config or self.frontier_config
        underlyings = self.underlyings
        market = self._market
        target_date = valuation_date or self.next_bermudan

        if market is None or target_date is None or self.dirty_price_with_paths(cfg.probe_paths) is None:
            return [None] * len(underlyings)

        bond = self.date_shifted((market.valuation_date - target_date).days)

        results: List[Optional[float]] = []
        for name in underlyings:
            if not is_fx_pair(name) or name[3:] != self.currency:
                results.append(None)
                continue
            base, quote = name[:3], name[3:]

            def price_difference(y: float) -> float:
                bond.set_market_no_calibration(market.fx_shifted({base: y}))
                if cfg.paths > 0:
                    bond.set_mc_paths(cfg.paths, cache_clear=False)
                price = bond.dirty_price()
                return (price if price is not None else float("nan")) - cfg.target

            multiplier = solver.solve(
                price_difference, cfg.low_range, cfg.high_range, cfg.accuracy, cfg.max_iteration
            )
            spot = market.fx(base, quote)
            if multiplier is None or spot is None:
                logger.warning(f"{self.id} : no FX frontier for {name} on {target_date}")
                results.append(None)
            else:
                results.append(spot / multiplier)
        return results

    @synchronized
    def fx_frontiers(self, config: Optional[FrontierConfig] = None) -> List[List[Optional[float]]]:
        """
        FX frontier at every live Bermudan date without a trigger.

        Dates are solved latest first; each solve sees the frontiers already
        found for later dates as call triggers.

        Returns:
            One row per live period, aligned with underlyings
        """
        cfg = config or self.frontier_config
        live = self.live_payoffs
        call_dates = sorted(
            (
                (s.period.payment_date, index)
                for index, s in enumerate(live)
                if s.call.bermudan and not s.call.is_trigger
            ),
            key=lambda x: x[0],
            reverse=True,
        )

        triggers = live.triggers(self.underlyings)
        for payment_date, index in call_dates:
            shifted = self.trigger_shifted(triggers)
            triggers[index] = shifted.fx_frontier(payment_date, cfg)
            logger.debug(f"{self.id} : frontier {payment_date} {triggers[index]}")
        return triggers

    def __repr__(self) -> str:
        return f"PriceableBond({self.id!r}, {self.currency}, periods={len(self.scheduled_payoffs)})"


def _date_shifter(days: int) -> Callable[[date], date]:
    delta = timedelta(days=days)
    return lambda d: d + delta
