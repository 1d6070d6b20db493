"""Core utilities: calendars, day counts, schedules, fixings, caching and solvers."""

from bondpricer.core.day_count import DayCountConvention, day_count_fraction
from bondpricer.core.calendar import (
    BusinessDayConvention,
    Calendar,
    Period,
    TimeUnit,
    NULL_CALENDAR,
    WEEKEND_CALENDAR,
)
from bondpricer.core.schedule import (
    CalculationPeriod,
    DateGenerationRule,
    Schedule,
    STUB_MERGE_TOLERANCE_DAYS,
    generate_schedule,
)
from bondpricer.core.fixings import FixingInformation
from bondpricer.core.cache import ValueCache
from bondpricer.core.solver import RangedRootFinder, Bisection, Brent, BISECTION, BRENT

__all__ = [
    "DayCountConvention",
    "day_count_fraction",
    "BusinessDayConvention",
    "Calendar",
    "Period",
    "TimeUnit",
    "NULL_CALENDAR",
    "WEEKEND_CALENDAR",
    "CalculationPeriod",
    "DateGenerationRule",
    "Schedule",
    "STUB_MERGE_TOLERANCE_DAYS",
    "generate_schedule",
    "FixingInformation",
    "ValueCache",
    "RangedRootFinder",
    "Bisection",
    "Brent",
    "BISECTION",
    "BRENT",
]
