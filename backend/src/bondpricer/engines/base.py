"""
Monte Carlo engine interface.

An engine simulates one underlying over a sequence of event times given as
fractional years from the valuation date.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np


@dataclass
class PathAnalysis:
    """
    Summary of simulated paths per event date.

    Attributes:
        dates: Event times in years
        mean: Mean level per date
        std: Standard deviation per date
        num_paths: Number of simulated paths
    """

    dates: List[float]
    mean: List[float]
    std: List[float]
    num_paths: int


class MonteCarloEngine(ABC):
    """Abstract base class for Monte Carlo path engines."""

    name: str = "montecarlo"

    @abstractmethod
    def generate_paths(
        self,
        event_years: Sequence[float],
        num_paths: int
    ) -> Tuple[List[float], np.ndarray]:
        """
        Simulate paths.

        Args:
            event_years: Requested event times in years
            num_paths: Number of independent paths

        Returns:
            (dates_used, paths) where paths has shape (num_paths, len(dates_used))
            and column j holds the simulated level at dates_used[j]
        """

    def reset(self) -> None:
        """Restart random streams."""

    @property
    def model_status(self) -> str:
        return self.name


def analyze_paths(dates: Sequence[float], paths: np.ndarray) -> PathAnalysis:
    """Per-date mean and standard deviation of simulated paths."""
    if paths.size == 0:
        return PathAnalysis(list(dates), [], [], 0)
    return PathAnalysis(
        dates=list(dates),
        mean=paths.mean(axis=0).tolist(),
        std=paths.std(axis=0).tolist(),
        num_paths=paths.shape[0],
    )
