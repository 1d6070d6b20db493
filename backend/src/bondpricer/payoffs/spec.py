"""
Declarative payoff records.

A payoff is specified as a flat record, e.g.

    {"type": "rangeforward", "variable": ["USDJPY"],
     "triggerlow": 90, "triggerhigh": 110, "strike": "@USDJPY * 100%",
     "range_type": "in", "physical": 0, "amount": 1.0}

Numeric fields may be numbers or formula text; formula text is resolved once
through a FixingInformation when the payoff is built. Values that cannot be
resolved become NaN, which makes the payoff non-priceable instead of failing.
"""

import json
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bondpricer.core.fixings import FixingInformation
from bondpricer.payoffs.payoff import (
    FixedPayoff,
    ForwardPayoff,
    NullPayoff,
    Payoff,
    PayoffKind,
    RangeForwardPayoff,
)

logger = logging.getLogger(__name__)

NAN = float("nan")

Level = Union[float, str, None]
LevelField = Union[Dict[str, Level], Level]


class PayoffSpec(BaseModel):
    """Payoff specification record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = "null"
    variable: List[str] = Field(default_factory=list)
    triggerlow: LevelField = None
    triggerhigh: LevelField = None
    strike: LevelField = None
    range_type: str = "in"
    physical: Union[int, bool, str] = 0
    amount: Level = None
    description: Optional[str] = None

    @field_validator("variable", mode="before")
    @classmethod
    def split_variables(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return list(v)

    @field_validator("type", "range_type", mode="before")
    @classmethod
    def normalise_tag(cls, v: Any) -> str:
        return str(v).strip().lower() if v is not None else ""

    @property
    def is_physical(self) -> bool:
        return str(self.physical).strip().lower() in ("1", "true")

    @property
    def forward_in_range(self) -> bool:
        return self.range_type != "out"

    @classmethod
    def parse(cls, record: Union[str, Mapping[str, Any], "PayoffSpec"]) -> "PayoffSpec":
        """Accept a PayoffSpec, a mapping, or JSON text."""
        if isinstance(record, PayoffSpec):
            return record
        if isinstance(record, str):
            return cls.model_validate(json.loads(record))
        return cls.model_validate(dict(record))


def resolve_value(value: Level, fixing_info: FixingInformation) -> float:
    """Number, or formula text evaluated through the fixing resolver; NaN otherwise."""
    if value is None:
        return NAN
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        result = fixing_info.update_compute(value)
        return result if result is not None else NAN
    return NAN


def resolve_levels(
    field: LevelField,
    variables: List[str],
    fixing_info: FixingInformation
) -> Dict[str, float]:
    """
    Levels keyed by variable name.

    A mapping is resolved entry by entry. A scalar applies to the single
    declared variable and is dropped when several variables are declared.
    """
    if field is None:
        return {}
    if isinstance(field, Mapping):
        return {name: resolve_value(v, fixing_info) for name, v in field.items()}
    if len(variables) == 1:
        return {variables[0]: resolve_value(field, fixing_info)}
    return {}


def payoff_from_spec(
    record: Union[str, Mapping[str, Any], PayoffSpec],
    fixing_info: Optional[FixingInformation] = None
) -> Payoff:
    """
    Build a payoff definition from a specification record.

    Args:
        record: PayoffSpec, mapping, or JSON text
        fixing_info: Resolver for formula text (e.g. strikes set off the
            initial fixing); defaults to an empty resolver

    Returns:
        The payoff variant. Unknown types yield a NullPayoff.
    """
    spec = PayoffSpec.parse(record)
    info = fixing_info if fixing_info is not None else FixingInformation.empty()

    amount = resolve_value(spec.amount, info) if spec.amount is not None else 1.0

    if spec.type == PayoffKind.FIXED.value:
        return FixedPayoff(amount=amount, description=spec.description)

    if spec.type == PayoffKind.NULL.value:
        return NullPayoff(description=spec.description)

    if spec.type == PayoffKind.FORWARD.value:
        return ForwardPayoff(
            strikes=resolve_levels(spec.strike, spec.variable, info),
            amount=amount,
            physical=spec.is_physical,
            description=spec.description,
        )

    if spec.type == PayoffKind.RANGE_FORWARD.value:
        return RangeForwardPayoff(
            trigger_low=resolve_levels(spec.triggerlow, spec.variable, info),
            trigger_high=resolve_levels(spec.triggerhigh, spec.variable, info),
            strikes=resolve_levels(spec.strike, spec.variable, info),
            forward_in_range=spec.forward_in_range,
            physical=spec.is_physical,
            amount=amount,
            description=spec.description,
        )

    logger.warning(f"Unknown payoff type '{spec.type}', using null payoff")
    return NullPayoff(description=spec.description or spec.type)


def _number(v: float) -> Optional[float]:
    return v if math.isfinite(v) else None


def payoff_to_spec(payoff: Payoff) -> Dict[str, Any]:
    """Specification record of a payoff (non-finite levels become None)."""
    record: Dict[str, Any] = {"type": payoff.kind, "description": payoff.description}
    if isinstance(payoff, FixedPayoff):
        record["amount"] = _number(payoff.amount)
    elif isinstance(payoff, ForwardPayoff):
        record.update(
            variable=sorted(payoff.variables),
            strike={k: _number(v) for k, v in payoff.strikes.items()},
            physical=int(payoff.physical),
            amount=_number(payoff.amount),
        )
    elif isinstance(payoff, RangeForwardPayoff):
        record.update(
            variable=sorted(payoff.variables),
            triggerlow={k: _number(v) for k, v in payoff.trigger_low.items()},
            triggerhigh={k: _number(v) for k, v in payoff.trigger_high.items()},
            strike={k: _number(v) for k, v in payoff.strikes.items()},
            range_type="in" if payoff.forward_in_range else "out",
            physical=int(payoff.physical),
            amount=_number(payoff.amount),
        )
    return record
