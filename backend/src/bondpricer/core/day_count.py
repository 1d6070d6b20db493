"""
Day count conventions for coupon accrual and schedule year fractions.

Supports: ACT/360, ACT/365F, 30/360 and ABSOLUTE (unit day count used by
redemption legs).
"""

from datetime import date
from enum import Enum


class DayCountConvention(str, Enum):
    """Supported day count conventions."""

    ACT_360 = "ACT/360"
    ACT_365F = "ACT/365F"
    THIRTY_360 = "30/360"
    ABSOLUTE = "ABSOLUTE"


def _actual_days(start: date, end: date) -> int:
    return (end - start).days


def _thirty_360_days(start: date, end: date) -> int:
    """
    Calculate days using 30/360 convention (ISDA).

    Each month is treated as having 30 days, year has 360 days.
    """
    d1, m1, y1 = start.day, start.month, start.year
    d2, m2, y2 = end.day, end.month, end.year

    if d1 == 31:
        d1 = 30
    if d2 == 31 and d1 >= 30:
        d2 = 30

    return 360 * (y2 - y1) + 30 * (m2 - m1) + (d2 - d1)


def day_count_fraction(
    start: date,
    end: date,
    convention: DayCountConvention
) -> float:
    """
    Calculate the year fraction between two dates.

    Args:
        start: Start date (exclusive for accrual)
        end: End date (inclusive for accrual)
        convention: Day count convention to use

    Returns:
        Year fraction as a float. ABSOLUTE returns 1.0 for any
        non-empty interval.

    Examples:
        >>> from datetime import date
        >>> day_count_fraction(date(2024, 1, 1), date(2024, 7, 1), DayCountConvention.ACT_360)
        0.5055555555555555
    """
    if end < start:
        raise ValueError(f"End date {end} must be >= start date {start}")

    if end == start:
        return 0.0

    if convention == DayCountConvention.ACT_360:
        return _actual_days(start, end) / 360.0

    elif convention == DayCountConvention.ACT_365F:
        return _actual_days(start, end) / 365.0

    elif convention == DayCountConvention.THIRTY_360:
        return _thirty_360_days(start, end) / 360.0

    elif convention == DayCountConvention.ABSOLUTE:
        return 1.0

    else:
        raise ValueError(f"Unknown day count convention: {convention}")


def signed_year_fraction(
    start: date,
    end: date,
    convention: DayCountConvention
) -> float:
    """Year fraction that turns negative when end precedes start."""
    if end < start:
        return -day_count_fraction(end, start, convention)
    return day_count_fraction(start, end, convention)
