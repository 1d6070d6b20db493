"""Payoff definitions, per-scenario knock state, specification records and legs."""

from bondpricer.payoffs.payoff import (
    FixedPayoff,
    ForwardPayoff,
    NullPayoff,
    Payoff,
    PayoffKind,
    RangeForwardPayoff,
    SettlementType,
    assign_fixings,
    evaluate,
    evaluate_path,
    evaluate_scalar,
    evaluate_scalar_path,
    is_fixed,
    is_knock_in,
    parse_payoff,
    reset_state,
)
from bondpricer.payoffs.state import BASE_SCENARIO, PayoffState, ScenarioStates
from bondpricer.payoffs.spec import PayoffSpec, payoff_from_spec, payoff_to_spec
from bondpricer.payoffs.scheduled import CallOption, ScheduledPayoff, ScheduledPayoffs

__all__ = [
    "FixedPayoff",
    "ForwardPayoff",
    "NullPayoff",
    "Payoff",
    "PayoffKind",
    "RangeForwardPayoff",
    "SettlementType",
    "assign_fixings",
    "evaluate",
    "evaluate_path",
    "evaluate_scalar",
    "evaluate_scalar_path",
    "is_fixed",
    "is_knock_in",
    "parse_payoff",
    "reset_state",
    "BASE_SCENARIO",
    "PayoffState",
    "ScenarioStates",
    "PayoffSpec",
    "payoff_from_spec",
    "payoff_to_spec",
    "CallOption",
    "ScheduledPayoff",
    "ScheduledPayoffs",
]
