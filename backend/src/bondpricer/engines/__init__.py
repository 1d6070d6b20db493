"""Monte Carlo engines and lognormal expectations."""

from bondpricer.engines.base import MonteCarloEngine, PathAnalysis, analyze_paths
from bondpricer.engines.black_scholes import (
    BlackScholes1f,
    partial_mean_below,
    prob_below,
    range_moments,
)

__all__ = [
    "MonteCarloEngine",
    "PathAnalysis",
    "analyze_paths",
    "BlackScholes1f",
    "partial_mean_below",
    "prob_below",
    "range_moments",
]
