"""
Ranged root finders used by the FX frontier.

A solver takes f, a bracket [lo, hi], an accuracy on |f(x)| and an
iteration budget, and returns the root or None when it cannot converge.
"""

from abc import ABC, abstractmethod
import logging
import math
from typing import Callable, Optional

from scipy.optimize import brentq

logger = logging.getLogger(__name__)

Func = Callable[[float], float]


class RangedRootFinder(ABC):
    """Root finder over a closed bracket."""

    name: str = "solver"

    @abstractmethod
    def solve(
        self,
        func: Func,
        low: float,
        high: float,
        accuracy: float,
        max_iteration: int
    ) -> Optional[float]:
        """
        Find x in [low, high] with |func(x)| <= accuracy.

        Returns:
            The root, or None if the bracket has no sign change, func
            returns a non-finite value, or max_iteration is exhausted.
        """


class Bisection(RangedRootFinder):
    """Plain bisection; each step halves the bracket."""

    name = "bisection"

    def solve(
        self,
        func: Func,
        low: float,
        high: float,
        accuracy: float,
        max_iteration: int
    ) -> Optional[float]:
        f_low = func(low)
        f_high = func(high)
        if not (math.isfinite(f_low) and math.isfinite(f_high)):
            logger.debug(f"Bisection: non-finite value at bracket ({f_low}, {f_high})")
            return None
        if abs(f_low) <= accuracy:
            return low
        if abs(f_high) <= accuracy:
            return high
        if f_low * f_high > 0:
            logger.debug(f"Bisection: no sign change in [{low}, {high}]")
            return None

        for iteration in range(1, max_iteration + 1):
            mid = 0.5 * (low + high)
            f_mid = func(mid)
            logger.debug(f"Bisection iter {iteration}: x={mid} f={f_mid}")
            if not math.isfinite(f_mid):
                return None
            if abs(f_mid) <= accuracy:
                return mid
            if f_low * f_mid < 0:
                high = mid
            else:
                low, f_low = mid, f_mid

        logger.debug(f"Bisection failed to converge in {max_iteration} iterations")
        return None


class Brent(RangedRootFinder):
    """Brent's method via scipy, with the same convergence contract."""

    name = "brent"

    def solve(
        self,
        func: Func,
        low: float,
        high: float,
        accuracy: float,
        max_iteration: int
    ) -> Optional[float]:
        f_low = func(low)
        f_high = func(high)
        if not (math.isfinite(f_low) and math.isfinite(f_high)):
            return None
        if abs(f_low) <= accuracy:
            return low
        if abs(f_high) <= accuracy:
            return high
        if f_low * f_high > 0:
            return None

        try:
            root = brentq(func, low, high, maxiter=max(max_iteration, 1), disp=True)
        except (RuntimeError, ValueError) as exc:
            logger.debug(f"Brent failed: {exc}")
            return None

        value = func(root)
        if not math.isfinite(value) or abs(value) > accuracy:
            return None
        return root


BISECTION = Bisection()
BRENT = Brent()
