"""
Pricing defaults.

PricingConfig drives Monte Carlo model construction; FrontierConfig holds
the FX frontier solver defaults.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PricingConfig:
    """Configuration for Monte Carlo pricing."""

    num_paths: int = 100_000
    seed: Optional[int] = None
    block_size: int = 50_000
    max_workers: int = 1


@dataclass
class FrontierConfig:
    """
    FX frontier solver settings.

    Attributes:
        target: Dirty price to solve for (1.0 = 100%)
        accuracy: Tolerance on |price - target|
        max_iteration: Solver iteration budget
        low_range: Lower bound of the FX multiplier bracket
        high_range: Upper bound of the FX multiplier bracket
        paths: Monte Carlo paths per re-pricing (0 keeps the model's count)
        probe_paths: Paths of the preliminary check that the bond prices at all
    """

    target: float = 1.0
    accuracy: float = 0.001
    max_iteration: int = 20
    low_range: float = 0.1
    high_range: float = 10.0
    paths: int = 0
    probe_paths: int = 100
