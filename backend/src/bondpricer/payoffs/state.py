"""
Mutable evaluation state kept apart from the immutable payoff definitions.

Each (payoff key, scenario id) pair owns one PayoffState. The "base"
scenario holds the bond's live state; any other scenario is forked from
base on first access, so one payoff definition can be evaluated under many
independent scenarios (e.g. Monte Carlo paths) at the same time.
"""

from dataclasses import dataclass, field
import threading
from typing import Dict, Hashable, Tuple

BASE_SCENARIO = "base"


@dataclass
class PayoffState:
    """
    Knock state and assigned fixings of one payoff in one scenario.

    knocked_in only goes False -> True; reset() is the single way back.
    """

    knocked_in: bool = False
    fixings: Dict[str, float] = field(default_factory=dict)

    def knock_in(self) -> None:
        self.knocked_in = True

    def reset(self) -> None:
        self.knocked_in = False
        self.fixings = {}

    @property
    def has_fixings(self) -> bool:
        return bool(self.fixings)

    def copy(self) -> "PayoffState":
        return PayoffState(self.knocked_in, dict(self.fixings))


class ScenarioStates:
    """Registry of PayoffState keyed by (payoff key, scenario id)."""

    def __init__(self) -> None:
        self._states: Dict[Tuple[Hashable, Hashable], PayoffState] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, scenario: Hashable = BASE_SCENARIO) -> PayoffState:
        with self._lock:
            state = self._states.get((key, scenario))
            if state is None:
                base = self._states.get((key, BASE_SCENARIO))
                if base is None:
                    base = PayoffState()
                    self._states[(key, BASE_SCENARIO)] = base
                state = base if scenario == BASE_SCENARIO else base.copy()
                self._states[(key, scenario)] = state
            return state

    def discard(self, scenario: Hashable) -> None:
        """Forget every state of a non-base scenario."""
        if scenario == BASE_SCENARIO:
            return
        with self._lock:
            for k in [k for k in self._states if k[1] == scenario]:
                del self._states[k]

    def reset(self, scenario: Hashable = BASE_SCENARIO) -> None:
        """Reset knock state and fixings of every payoff in a scenario."""
        with self._lock:
            for (_, s), state in self._states.items():
                if s == scenario:
                    state.reset()

    def scenarios(self) -> set:
        with self._lock:
            return {s for _, s in self._states}

    def copy(self) -> "ScenarioStates":
        """Independent registry holding copies of the base states only."""
        other = ScenarioStates()
        with self._lock:
            for (key, scenario), state in self._states.items():
                if scenario == BASE_SCENARIO:
                    other._states[(key, scenario)] = state.copy()
        return other
