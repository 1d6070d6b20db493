"""
Scheduled payoffs: the bond's leg.

Each ScheduledPayoff pairs one CalculationPeriod with one payoff definition
and a call descriptor. ScheduledPayoffs keeps them sorted by event date and
owns the per-scenario knock states of its payoffs.
"""

from dataclasses import dataclass, field, replace
from datetime import date
import logging
import math
from typing import (
    Callable,
    Dict,
    FrozenSet,
    Hashable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
)

from bondpricer.core.day_count import DayCountConvention, signed_year_fraction
from bondpricer.core.schedule import CalculationPeriod
from bondpricer.market.market import is_fx_pair
from bondpricer.payoffs.payoff import (
    Payoff,
    SettlementType,
    assign_fixings,
    evaluate,
    evaluate_path,
    is_finite,
)
from bondpricer.payoffs.state import BASE_SCENARIO, PayoffState, ScenarioStates

logger = logging.getLogger(__name__)

# (event date, variables) -> observed fixings
FixingSource = Callable[[date, FrozenSet[str]], Mapping[str, float]]


@dataclass(frozen=True)
class CallOption:
    """
    Early redemption features of one period.

    Attributes:
        bermudan: Issuer may call on this period's payment date
        trigger: Automatic call levels by variable; empty for none
        trigger_up: Triggered when fixings are at or above the levels
            (at or below when False)
        bonus: Extra redemption amount paid on call
    """

    bermudan: bool = False
    trigger: Dict[str, float] = field(default_factory=dict)
    trigger_up: bool = True
    bonus: float = 0.0

    @property
    def is_trigger(self) -> bool:
        return bool(self.trigger)

    @property
    def redemption_amount(self) -> float:
        return 1.0 + self.bonus

    def is_triggered(self, fixings: Mapping[str, float]) -> bool:
        """All trigger levels met; False when a required fixing is missing."""
        if not self.trigger:
            return False
        for name, level in self.trigger.items():
            value = fixings.get(name)
            if not is_finite(value):
                return False
            if self.trigger_up and value < level:
                return False
            if not self.trigger_up and value > level:
                return False
        return True

    def with_trigger(self, levels: Mapping[str, Optional[float]]) -> "CallOption":
        """Copy with trigger levels replaced; None entries are dropped."""
        return replace(self, trigger={k: v for k, v in levels.items() if v is not None})


@dataclass(frozen=True)
class ScheduledPayoff:
    """One leg entry; key identifies the payoff's knock state."""

    period: CalculationPeriod
    payoff: Payoff
    call: CallOption = field(default_factory=CallOption)
    key: int = 0

    @property
    def is_redemption(self) -> bool:
        return self.period.is_redemption

    @property
    def observation_dates(self) -> List[date]:
        """
        Fixing dates of the payoff, oldest first.

        Physical delivery is decided on the event date and settled against
        the payment date fixing; cash payoffs only observe the event date.
        """
        if self.payoff.settlement == SettlementType.PHYSICAL:
            return [self.period.event_date, self.period.payment_date]
        return [self.period.event_date]


class ScheduledPayoffs:
    """
    Ordered leg of scheduled payoffs.

    Subsets returned by live() share knock states with their parent;
    shifted copies (dates or triggers) get an independent copy.
    """

    def __init__(
        self,
        items: Sequence[ScheduledPayoff],
        states: Optional[ScenarioStates] = None
    ) -> None:
        self.items: List[ScheduledPayoff] = sorted(items, key=lambda s: s.period.event_date)
        self.states = states if states is not None else ScenarioStates()

    @classmethod
    def build(
        cls,
        periods: Sequence[CalculationPeriod],
        payoffs: Sequence[Payoff],
        calls: Optional[Sequence[CallOption]] = None
    ) -> "ScheduledPayoffs":
        if len(periods) != len(payoffs):
            raise ValueError(f"{len(periods)} periods but {len(payoffs)} payoffs")
        calls = list(calls) if calls is not None else [CallOption()] * len(periods)
        if len(calls) != len(periods):
            raise ValueError(f"{len(periods)} periods but {len(calls)} call options")
        return cls([
            ScheduledPayoff(period, payoff, call, key)
            for key, (period, payoff, call) in enumerate(zip(periods, payoffs, calls))
        ])

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ScheduledPayoff]:
        return iter(self.items)

    def __getitem__(self, idx: int) -> ScheduledPayoff:
        return self.items[idx]

    @property
    def periods(self) -> List[CalculationPeriod]:
        return [s.period for s in self.items]

    @property
    def payoffs(self) -> List[Payoff]:
        return [s.payoff for s in self.items]

    @property
    def calls(self) -> List[CallOption]:
        return [s.call for s in self.items]

    @property
    def variables(self) -> FrozenSet[str]:
        """Variables referenced by payoffs and call triggers."""
        names = set()
        for s in self.items:
            names |= s.payoff.variables
            names |= set(s.call.trigger)
        return frozenset(names)

    @property
    def underlyings(self) -> List[str]:
        return sorted(self.variables)

    @property
    def is_priceable(self) -> bool:
        return all(
            s.payoff.is_priceable and all(is_finite(v) for v in s.call.trigger.values())
            for s in self.items
        )

    def state(self, item: ScheduledPayoff, scenario: Hashable = BASE_SCENARIO) -> PayoffState:
        return self.states.get(item.key, scenario)

    def filtered(self, predicate: Callable[[ScheduledPayoff], bool]) -> "ScheduledPayoffs":
        return ScheduledPayoffs([s for s in self.items if predicate(s)], self.states)

    def live(self, valuation_date: date) -> "ScheduledPayoffs":
        """Periods paying after the valuation date."""
        return self.filtered(lambda s: s.period.payment_date > valuation_date)

    def event_date_years(self, valuation_date: date) -> List[float]:
        """Event dates as ACT/365F years from the valuation date (negative when past)."""
        return [
            signed_year_fraction(valuation_date, s.period.event_date, DayCountConvention.ACT_365F)
            for s in self.items
        ]

    def observation_years(self, valuation_date: date) -> List[List[float]]:
        """Observation dates of each item as ACT/365F years from the valuation date."""
        return [
            [signed_year_fraction(valuation_date, d, DayCountConvention.ACT_365F) for d in s.observation_dates]
            for s in self.items
        ]

    def update_future_fixings(self, valuation_date: date, fixing_source: FixingSource) -> None:
        """
        Align base knock states with a valuation date.

        Events on or before the valuation date get the observed fixings of
        their payoff and call trigger variables; later events are cleared of
        anything assigned earlier.
        """
        for s in self.items:
            state = self.states.get(s.key)
            if s.period.event_date <= valuation_date:
                names = s.payoff.variables | frozenset(s.call.trigger)
                if names:
                    assign_fixings(s.payoff, fixing_source(s.period.event_date, names), state)
            elif state.knocked_in or state.has_fixings:
                state.reset()

    def fixings_at(self, item: ScheduledPayoff, scenario: Hashable = BASE_SCENARIO) -> Dict[str, float]:
        return dict(self.states.get(item.key, scenario).fixings)

    def price_path(
        self,
        histories: Sequence[Sequence[Mapping[str, float]]],
        scenario: Optional[Hashable] = None
    ) -> List[float]:
        """
        Cash amount per period along one fixing path.

        Args:
            histories: For each item, one snapshot per observation date
                (see ScheduledPayoff.observation_dates)
            scenario: Scenario whose knock states are used; None evaluates
                against throwaway copies of the base states

        Returns:
            price x day count per period. A call trigger met on the event
            date adds the redemption amount to that period and zeroes every
            later one.
        """
        if len(histories) != len(self.items):
            raise ValueError(f"{len(histories)} fixing histories for {len(self.items)} periods")

        amounts = [0.0] * len(self.items)
        for i, (s, history) in enumerate(zip(self.items, histories)):
            if scenario is None:
                state = self.states.get(s.key).copy()
            else:
                state = self.states.get(s.key, scenario)

            amounts[i] = evaluate_path(s.payoff, history, state) * s.period.day_count

            if not s.is_redemption and history and s.call.is_triggered(history[0]):
                amounts[i] += s.call.redemption_amount
                break
        return amounts

    def price_snapshot(self, fixings: Mapping[str, float], item: ScheduledPayoff) -> float:
        """Rate of one item against a snapshot using its base state."""
        return evaluate(item.payoff, fixings, self.states.get(item.key))

    def early_termination_date(self, valuation_date: date, fixing_source: FixingSource) -> Optional[date]:
        """Payment date of the first call trigger already met on or before the valuation date."""
        for s in self.items:
            if s.period.event_date > valuation_date:
                break
            if s.call.is_trigger and not s.is_redemption:
                if s.call.is_triggered(fixing_source(s.period.event_date, frozenset(s.call.trigger))):
                    return s.period.payment_date
        return None

    def triggers(self, underlyings: Sequence[str]) -> List[List[Optional[float]]]:
        """Trigger level per item, aligned with underlyings (None where absent)."""
        return [[s.call.trigger.get(u) for u in underlyings] for s in self.items]

    @property
    def bermudans(self) -> List[bool]:
        return [s.call.bermudan for s in self.items]

    def trigger_shifted(
        self,
        triggers: Sequence[Sequence[Optional[float]]],
        underlyings: Sequence[str]
    ) -> "ScheduledPayoffs":
        """
        Copy with call triggers replaced.

        triggers[i] lists levels aligned with underlyings for self.items[i];
        items beyond the given rows keep their call.
        """
        items = []
        for i, s in enumerate(self.items):
            if i < len(triggers):
                levels = dict(zip(underlyings, triggers[i]))
                s = replace(s, call=s.call.with_trigger(levels))
            items.append(s)
        return ScheduledPayoffs(items, self.states.copy())

    def date_shifted(self, days: int) -> "ScheduledPayoffs":
        """Copy with every period moved by a number of calendar days."""
        return ScheduledPayoffs(
            [replace(s, period=s.period.shifted(days)) for s in self.items],
            self.states.copy(),
        )

    def fx_variables(self) -> List[str]:
        return [u for u in self.underlyings if is_fx_pair(u)]

    def __str__(self) -> str:
        return "\n".join(f"{s.period} {s.payoff} {s.call}" for s in self.items)


def finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value
