"""
Payoff variants and their evaluation.

The set of payoffs is closed: FixedPayoff, NullPayoff, ForwardPayoff and
RangeForwardPayoff, discriminated by their ``kind`` tag. Definitions are
immutable; knock-in state lives in a separate PayoffState (see state.py).

Evaluation entry points (all dispatch on ``kind``):
- evaluate(payoff, fixings, state): one multi-underlying snapshot
- evaluate_scalar(payoff, fixing, state): one single-underlying value
- evaluate_path(payoff, history, state): a fixing history, latest last
- evaluate_scalar_path(payoff, values, state): a scalar history

Scalar inputs are mapped onto a one-entry snapshot of the payoff's single
variable, so both modes share the same rules. Undetermined results are NaN,
never zero.
"""

from enum import Enum
import math
from typing import (
    Annotated,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from bondpricer.payoffs.state import PayoffState

NAN = float("nan")

Fixings = Mapping[str, float]


class PayoffKind(str, Enum):
    """Payoff variant tags."""

    FIXED = "fixed"
    NULL = "null"
    FORWARD = "forward"
    RANGE_FORWARD = "rangeforward"


class SettlementType(str, Enum):
    """Settlement at maturity."""

    CASH = "cash"
    PHYSICAL = "physical"


def is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _all_finite(values: Iterable[float]) -> bool:
    return all(is_finite(v) for v in values)


def _valid_fixings(fixings: Fixings, names: Iterable[str]) -> bool:
    return all(name in fixings and is_finite(fixings[name]) for name in names)


def _percent(v: float) -> str:
    return f"{v:.2%}" if is_finite(v) else str(v)


class FixedPayoff(BaseModel):
    """Deterministic rate, e.g. a fixed coupon."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fixed"] = "fixed"
    amount: float = 0.0
    description: Optional[str] = None

    @property
    def variables(self) -> FrozenSet[str]:
        return frozenset()

    @property
    def is_priceable(self) -> bool:
        return is_finite(self.amount)

    @property
    def settlement(self) -> SettlementType:
        return SettlementType.CASH

    def __str__(self) -> str:
        return _percent(self.amount)


class NullPayoff(BaseModel):
    """Placeholder for an unusable formula; never priceable."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["null"] = "null"
    description: Optional[str] = None

    @property
    def variables(self) -> FrozenSet[str]:
        return frozenset()

    @property
    def is_priceable(self) -> bool:
        return False

    @property
    def settlement(self) -> SettlementType:
        return SettlementType.CASH

    def __str__(self) -> str:
        return self.description or "null"


class ForwardPayoff(BaseModel):
    """amount x worst-of(fixing / strike), no knock feature."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["forward"] = "forward"
    strikes: Dict[str, float] = Field(default_factory=dict)
    amount: float = 1.0
    physical: bool = False
    description: Optional[str] = None

    @property
    def variables(self) -> FrozenSet[str]:
        return frozenset(self.strikes)

    @property
    def strike_variables(self) -> FrozenSet[str]:
        return frozenset(self.strikes)

    @property
    def is_priceable(self) -> bool:
        return bool(self.strikes) and _all_finite(self.strikes.values()) and is_finite(self.amount)

    @property
    def settlement(self) -> SettlementType:
        return SettlementType.PHYSICAL if self.physical else SettlementType.CASH

    def __str__(self) -> str:
        return f"{_percent(self.amount)} x Min([{','.join(sorted(self.strikes))}] / {self.strikes})"


class RangeForwardPayoff(BaseModel):
    """
    Range knock-in forward.

    Knocked in when every trigger variable lies within [low, high]
    (forward_in_range) or when any lies outside (not forward_in_range).
    Pays the full amount until knocked in, then amount x the worst
    fixing/strike ratio across strike variables.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["rangeforward"] = "rangeforward"
    trigger_low: Dict[str, float] = Field(default_factory=dict)
    trigger_high: Dict[str, float] = Field(default_factory=dict)
    strikes: Dict[str, float] = Field(default_factory=dict)
    forward_in_range: bool = True
    physical: bool = False
    amount: float = 1.0
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_variable_overlap(self) -> "RangeForwardPayoff":
        """Trigger and strike variables must share at least one name."""
        triggers = self.trigger_variables
        if triggers and self.strikes and triggers.isdisjoint(self.strikes):
            raise ValueError(
                f"trigger variables {sorted(triggers)} and strike variables "
                f"{sorted(self.strikes)} are disjoint"
            )
        return self

    @property
    def trigger_variables(self) -> FrozenSet[str]:
        return frozenset(self.trigger_low) | frozenset(self.trigger_high)

    @property
    def strike_variables(self) -> FrozenSet[str]:
        return frozenset(self.strikes)

    @property
    def variables(self) -> FrozenSet[str]:
        return self.trigger_variables | self.strike_variables

    @property
    def is_priceable(self) -> bool:
        return (
            bool(self.strikes)
            and _all_finite(self.trigger_low.values())
            and _all_finite(self.trigger_high.values())
            and _all_finite(self.strikes.values())
            and is_finite(self.amount)
        )

    @property
    def settlement(self) -> SettlementType:
        return SettlementType.PHYSICAL if self.physical else SettlementType.CASH

    def __str__(self) -> str:
        return (
            f"{_percent(self.amount)} [{self.trigger_low}] [{self.trigger_high}] "
            f"{_percent(self.amount)} x Min([{','.join(sorted(self.strikes))}] / {self.strikes})"
        )


Payoff = Annotated[
    Union[FixedPayoff, NullPayoff, ForwardPayoff, RangeForwardPayoff],
    Field(discriminator="kind"),
]

PAYOFF_ADAPTER: TypeAdapter = TypeAdapter(Payoff)


# ---------------------------------------------------------------------------
# Knock determination and formulas
# ---------------------------------------------------------------------------

def is_knock_in(payoff: Payoff, fixings: Fixings, state: Optional[PayoffState] = None) -> Optional[bool]:
    """
    Knock-in condition for a snapshot.

    Returns True when already knocked in, None when the trigger variables
    are missing or non-finite, otherwise the range test. Payoffs without a
    knock feature are never knocked in.
    """
    if payoff.kind != PayoffKind.RANGE_FORWARD.value:
        return False
    if state is not None and state.knocked_in:
        return True
    if not payoff.is_priceable or not _valid_fixings(fixings, payoff.trigger_variables):
        return None
    in_range = (
        all(fixings[name] >= level for name, level in payoff.trigger_low.items())
        and all(fixings[name] <= level for name, level in payoff.trigger_high.items())
    )
    return in_range if payoff.forward_in_range else not in_range


def _worst_of(payoff: Union[ForwardPayoff, RangeForwardPayoff], fixings: Fixings) -> float:
    if not payoff.is_priceable or not _valid_fixings(fixings, payoff.strike_variables):
        return NAN
    return payoff.amount * min(fixings[name] / strike for name, strike in payoff.strikes.items())


def _range_forward_price(payoff: RangeForwardPayoff, fixings: Fixings, knocked_in: bool) -> float:
    if not knocked_in:
        return payoff.amount
    return _worst_of(payoff, fixings)


def is_fixed(payoff: Payoff, state: Optional[PayoffState]) -> bool:
    """True once the payoff's outcome no longer depends on future fixings."""
    if payoff.kind == PayoffKind.FIXED.value:
        return payoff.is_priceable
    if payoff.kind == PayoffKind.NULL.value or state is None:
        return False
    if state.knocked_in:
        return True
    return state.has_fixings and _valid_fixings(state.fixings, payoff.variables)


# ---------------------------------------------------------------------------
# Per-kind evaluators
# ---------------------------------------------------------------------------

def _fixed_snapshot(payoff: FixedPayoff, fixings: Fixings, state: PayoffState) -> float:
    return payoff.amount if payoff.is_priceable else NAN


def _fixed_history(payoff: FixedPayoff, history: Sequence[Fixings], state: PayoffState) -> float:
    return payoff.amount if payoff.is_priceable else NAN


def _null_snapshot(payoff: NullPayoff, fixings: Fixings, state: PayoffState) -> float:
    return NAN


def _null_history(payoff: NullPayoff, history: Sequence[Fixings], state: PayoffState) -> float:
    return NAN


def _forward_snapshot(payoff: ForwardPayoff, fixings: Fixings, state: PayoffState) -> float:
    return _worst_of(payoff, fixings)


def _forward_history(payoff: ForwardPayoff, history: Sequence[Fixings], state: PayoffState) -> float:
    if not history:
        return NAN
    return _worst_of(payoff, history[-1])


def _range_forward_snapshot(payoff: RangeForwardPayoff, fixings: Fixings, state: PayoffState) -> float:
    if payoff.physical:
        if is_fixed(payoff, state):
            return _range_forward_price(payoff, fixings, state.knocked_in)
        return NAN
    knocked_in = is_knock_in(payoff, fixings, state)
    if knocked_in is None:
        return NAN
    return _range_forward_price(payoff, fixings, knocked_in)


def _range_forward_history(
    payoff: RangeForwardPayoff,
    history: Sequence[Fixings],
    state: PayoffState
) -> float:
    if not history:
        return NAN
    latest = history[-1]
    if not payoff.physical:
        return _range_forward_snapshot(payoff, latest, state)

    # Physical delivery is decided one fixing before the final one.
    if is_fixed(payoff, state):
        return _range_forward_price(payoff, latest, state.knocked_in)
    if len(history) < 2:
        return NAN
    knocked_in = is_knock_in(payoff, history[-2], state)
    if knocked_in is None:
        return NAN
    return _range_forward_price(payoff, latest, knocked_in)


_SNAPSHOT_EVALUATORS: Dict[str, Callable[..., float]] = {
    PayoffKind.FIXED.value: _fixed_snapshot,
    PayoffKind.NULL.value: _null_snapshot,
    PayoffKind.FORWARD.value: _forward_snapshot,
    PayoffKind.RANGE_FORWARD.value: _range_forward_snapshot,
}

_HISTORY_EVALUATORS: Dict[str, Callable[..., float]] = {
    PayoffKind.FIXED.value: _fixed_history,
    PayoffKind.NULL.value: _null_history,
    PayoffKind.FORWARD.value: _forward_history,
    PayoffKind.RANGE_FORWARD.value: _range_forward_history,
}


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def _scalar_snapshot(payoff: Payoff, fixing: float) -> Dict[str, float]:
    """One-entry snapshot for single-variable payoffs, empty otherwise."""
    if len(payoff.variables) != 1:
        return {}
    (name,) = payoff.variables
    return {name: fixing}


def evaluate(payoff: Payoff, fixings: Fixings, state: Optional[PayoffState] = None) -> float:
    """Price of a payoff (per unit nominal) against one fixing snapshot."""
    return _SNAPSHOT_EVALUATORS[payoff.kind](payoff, fixings, state if state is not None else PayoffState())


def evaluate_scalar(payoff: Payoff, fixing: float, state: Optional[PayoffState] = None) -> float:
    """Price against a single underlying value."""
    return evaluate(payoff, _scalar_snapshot(payoff, fixing), state)


def evaluate_path(
    payoff: Payoff,
    history: Sequence[Fixings],
    state: Optional[PayoffState] = None
) -> float:
    """Price against a fixing history (oldest first)."""
    return _HISTORY_EVALUATORS[payoff.kind](payoff, history, state if state is not None else PayoffState())


def evaluate_scalar_path(
    payoff: Payoff,
    values: Sequence[float],
    state: Optional[PayoffState] = None
) -> float:
    """Price against a history of single underlying values."""
    return evaluate_path(payoff, [_scalar_snapshot(payoff, v) for v in values], state)


def assign_fixings(payoff: Payoff, fixings: Fixings, state: PayoffState) -> None:
    """
    Record observed fixings and update the knock state.

    A triggering snapshot knocks the payoff in for good; a non-triggering or
    incomplete one leaves an earlier knock-in untouched.
    """
    state.fixings = {name: float(value) for name, value in fixings.items()}
    if is_knock_in(payoff, state.fixings, state):
        state.knock_in()


def reset_state(state: PayoffState) -> None:
    """Revert knock state and fixings, for counterfactual scenario replay only."""
    state.reset()


def parse_payoff(data: Union[Mapping, Payoff]) -> Payoff:
    """Validate a payoff definition given as a mapping with a ``kind`` tag."""
    if isinstance(data, (FixedPayoff, NullPayoff, ForwardPayoff, RangeForwardPayoff)):
        return data
    return PAYOFF_ADAPTER.validate_python(data)
