"""
Interest rate curves for discounting and forward drifts.

Supports flat and piecewise constant continuously-compounded curves, plus
the DiscountCurve callable (date -> discount factor) used by pricing.
"""

from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
import math
from typing import List, Tuple

from bondpricer.core.day_count import DayCountConvention, day_count_fraction


class RateCurve(ABC):
    """Abstract base class for interest rate curves."""

    @abstractmethod
    def discount_factor(self, from_date: date, to_date: date) -> float:
        """Calculate discount factor from one date to another."""

    @abstractmethod
    def zero_rate(self, from_date: date, to_date: date) -> float:
        """Calculate continuously compounded zero rate."""

    @abstractmethod
    def shifted(self, bump: float) -> "RateCurve":
        """Parallel shift of the zero rates."""


@dataclass
class FlatRateCurve(RateCurve):
    """
    Flat interest rate curve (constant rate for all tenors).

    Attributes:
        rate: Continuously compounded rate
        day_count: Day count convention for rate calculation
    """

    rate: float
    day_count: DayCountConvention = DayCountConvention.ACT_365F

    def discount_factor(self, from_date: date, to_date: date) -> float:
        if to_date < from_date:
            raise ValueError(f"to_date {to_date} must be >= from_date {from_date}")
        return math.exp(-self.rate * day_count_fraction(from_date, to_date, self.day_count))

    def zero_rate(self, from_date: date, to_date: date) -> float:
        return self.rate

    def shifted(self, bump: float) -> "FlatRateCurve":
        return FlatRateCurve(self.rate + bump, self.day_count)


@dataclass
class PiecewiseConstantRateCurve(RateCurve):
    """
    Piecewise constant instantaneous rate curve.

    The rate of a tenor point applies from the previous point up to it; the
    last rate is extended flat.

    Attributes:
        tenors: (date, rate) pairs
        day_count: Day count convention
    """

    tenors: List[Tuple[date, float]] = field(default_factory=list)
    day_count: DayCountConvention = DayCountConvention.ACT_365F

    def __post_init__(self) -> None:
        self.tenors = sorted(self.tenors, key=lambda x: x[0])
        self._dates = [d for d, _ in self.tenors]

    def _rate_at(self, d: date) -> float:
        if not self.tenors:
            return 0.0
        idx = bisect_right(self._dates, d)
        return self.tenors[min(idx, len(self.tenors) - 1)][1]

    def discount_factor(self, from_date: date, to_date: date) -> float:
        if to_date < from_date:
            raise ValueError(f"to_date {to_date} must be >= from_date {from_date}")
        if to_date == from_date:
            return 1.0

        breakpoints = [from_date] + [d for d in self._dates if from_date < d < to_date] + [to_date]
        integral = sum(
            self._rate_at(start) * day_count_fraction(start, end, self.day_count)
            for start, end in zip(breakpoints[:-1], breakpoints[1:])
        )
        return math.exp(-integral)

    def zero_rate(self, from_date: date, to_date: date) -> float:
        if to_date <= from_date:
            return self._rate_at(from_date)
        yf = day_count_fraction(from_date, to_date, self.day_count)
        return -math.log(self.discount_factor(from_date, to_date)) / yf

    def shifted(self, bump: float) -> "PiecewiseConstantRateCurve":
        return PiecewiseConstantRateCurve(
            [(d, r + bump) for d, r in self.tenors], self.day_count
        )


class DiscountCurve:
    """
    Discount factors seen from a valuation date.

    Callable: curve(d) returns the discount factor for payment date d
    (1.0 on or before the valuation date).
    """

    def __init__(self, curve: RateCurve, valuation_date: date, currency: str = "") -> None:
        self.curve = curve
        self.valuation_date = valuation_date
        self.currency = currency

    def __call__(self, d: date) -> float:
        if d <= self.valuation_date:
            return 1.0
        return self.curve.discount_factor(self.valuation_date, d)

    def zero_rate(self, d: date) -> float:
        return self.curve.zero_rate(self.valuation_date, d)

    def __repr__(self) -> str:
        return f"DiscountCurve({self.currency!r}, {self.valuation_date})"
