"""
Single-factor Black-Scholes engine and lognormal expectations.

Paths follow S(t) = F(t) * exp(-0.5 * vol^2 * t + vol * W(t)) where F(t) is
the underlying's forward, so every date is simulated with the right mean.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.random import SeedSequence, default_rng
from scipy.stats import norm

from bondpricer.engines.base import MonteCarloEngine
from bondpricer.market.market import Underlying

logger = logging.getLogger(__name__)


class BlackScholes1f(MonteCarloEngine):
    """
    Lognormal Monte Carlo engine for one underlying.

    Paths are generated in blocks of block_size; block b draws from
    SeedSequence(entropy, spawn_key=(b,)), so for a given seed the paths do
    not depend on max_workers.

    Attributes:
        underlying: Simulated underlying (spot and forward drift)
        volatility: Lognormal volatility (annualised)
        seed: Random seed; None draws fresh entropy on every reset()
        block_size: Max paths per block
        max_workers: Threads used across blocks
    """

    name = "BlackScholes1f"

    def __init__(
        self,
        underlying: Underlying,
        volatility: Optional[float] = None,
        seed: Optional[int] = None,
        block_size: int = 50_000,
        max_workers: int = 1
    ) -> None:
        self.underlying = underlying
        self.volatility = underlying.volatility if volatility is None else volatility
        self.seed = seed
        self.block_size = max(1, block_size)
        self.max_workers = max(1, max_workers)
        self._entropy = SeedSequence(seed).entropy

    def reset(self) -> None:
        """Draw a new entropy when unseeded; seeded engines are unchanged."""
        self._entropy = SeedSequence(self.seed).entropy

    @property
    def model_status(self) -> str:
        return (
            f"{self.name} {self.underlying.name} spot={self.underlying.spot:.6g} "
            f"vol={self.volatility:.4f} r={self.underlying.domestic_rate:.4f} "
            f"q={self.underlying.foreign_rate:.4f}"
        )

    def _simulate_block(
        self,
        block: int,
        size: int,
        times: np.ndarray,
        forwards: np.ndarray
    ) -> np.ndarray:
        rng = default_rng(SeedSequence(self._entropy, spawn_key=(block,)))
        dt = np.diff(times, prepend=0.0)
        z = rng.standard_normal((size, len(times)))
        brownian = np.cumsum(z * np.sqrt(dt), axis=1)
        vol = self.volatility
        return forwards * np.exp(-0.5 * vol * vol * times + vol * brownian)

    def generate_paths(
        self,
        event_years: Sequence[float],
        num_paths: int
    ) -> Tuple[List[float], np.ndarray]:
        dates = sorted(set(float(t) for t in event_years))
        if num_paths <= 0 or not dates:
            return dates, np.empty((0, len(dates)))

        times = np.maximum(np.asarray(dates, dtype=np.float64), 0.0)
        forwards = np.array([self.underlying.forward(t) for t in times])

        n_blocks = (num_paths + self.block_size - 1) // self.block_size
        sizes = [
            min(self.block_size, num_paths - b * self.block_size) for b in range(n_blocks)
        ]

        if self.max_workers > 1 and n_blocks > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                blocks = list(pool.map(
                    lambda b: self._simulate_block(b, sizes[b], times, forwards),
                    range(n_blocks),
                ))
        else:
            blocks = [self._simulate_block(b, sizes[b], times, forwards) for b in range(n_blocks)]

        logger.debug(f"{self.name}: {num_paths} paths x {len(dates)} dates in {n_blocks} blocks")
        return dates, np.vstack(blocks)


# ---------------------------------------------------------------------------
# Lognormal expectations used by the closed-form model
# ---------------------------------------------------------------------------

def prob_below(forward: float, level: float, stdev: float, inclusive: bool = True) -> float:
    """
    P(S <= level) for lognormal S with mean forward and log-stdev stdev.

    With stdev == 0 the distribution is a point mass at forward; inclusive
    chooses between P(S <= level) and P(S < level) there.
    """
    if level is None or math.isinf(level) and level > 0:
        return 1.0
    if level <= 0:
        return 0.0
    if stdev <= 0:
        return 1.0 if (forward <= level if inclusive else forward < level) else 0.0
    d = (math.log(level / forward) + 0.5 * stdev * stdev) / stdev
    return float(norm.cdf(d))


def partial_mean_below(forward: float, level: float, stdev: float, inclusive: bool = True) -> float:
    """E[S ; S <= level] for the same lognormal S."""
    if level is None or math.isinf(level) and level > 0:
        return forward
    if level <= 0:
        return 0.0
    if stdev <= 0:
        return forward if (forward <= level if inclusive else forward < level) else 0.0
    d = (math.log(level / forward) - 0.5 * stdev * stdev) / stdev
    return forward * float(norm.cdf(d))


def range_moments(
    forward: float,
    low: Optional[float],
    high: Optional[float],
    stdev: float
) -> Tuple[float, float]:
    """
    Probability and partial mean of low <= S <= high.

    Missing bounds are open ends.
    """
    lo = low if low is not None else 0.0
    hi = high if high is not None else math.inf
    prob = prob_below(forward, hi, stdev, True) - prob_below(forward, lo, stdev, False)
    mean = partial_mean_below(forward, hi, stdev, True) - partial_mean_below(forward, lo, stdev, False)
    return max(prob, 0.0), max(mean, 0.0)
