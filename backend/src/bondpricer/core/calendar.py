"""
Business day calendars, tenors and date adjustment conventions.

Provides the calendar arithmetic consumed by the schedule generator:
adjust a date to a business day, advance by business days or by a tenor.
"""

import calendar as _calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
import re
from typing import Iterable, Optional, Set


class BusinessDayConvention(str, Enum):
    """Business day adjustment conventions."""

    UNADJUSTED = "UNADJUSTED"
    FOLLOWING = "FOLLOWING"
    MODIFIED_FOLLOWING = "MODIFIED_FOLLOWING"
    PRECEDING = "PRECEDING"


class TimeUnit(str, Enum):
    """Units a tenor can be expressed in."""

    DAYS = "D"
    WEEKS = "W"
    MONTHS = "M"
    YEARS = "Y"


def add_months(d: date, months: int) -> date:
    """Add months to a date, clipping to the end of the target month."""
    year = d.year + (d.month + months - 1) // 12
    month = (d.month + months - 1) % 12 + 1
    max_day = _calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, max_day))


_TENOR_PATTERN = re.compile(r"^\s*(-?\d+)\s*([DWMY])\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Period:
    """
    A tenor such as 6M or 1Y.

    Attributes:
        length: Number of units (may be negative)
        unit: Time unit
    """

    length: int
    unit: TimeUnit

    @classmethod
    def parse(cls, text: str) -> "Period":
        """Parse a tenor string like "3M", "1Y", "2W" or "10D"."""
        match = _TENOR_PATTERN.match(text)
        if match is None:
            raise ValueError(f"Invalid tenor: {text!r}")
        return cls(int(match.group(1)), TimeUnit(match.group(2).upper()))

    def __mul__(self, n: int) -> "Period":
        return Period(self.length * n, self.unit)

    __rmul__ = __mul__

    def __neg__(self) -> "Period":
        return Period(-self.length, self.unit)

    def add_to(self, d: date) -> date:
        """Add this period to a date on a calendar-day basis."""
        if self.unit == TimeUnit.DAYS:
            return d + timedelta(days=self.length)
        elif self.unit == TimeUnit.WEEKS:
            return d + timedelta(weeks=self.length)
        elif self.unit == TimeUnit.MONTHS:
            return add_months(d, self.length)
        else:
            return add_months(d, 12 * self.length)

    def __str__(self) -> str:
        return f"{self.length}{self.unit.value}"


class Calendar:
    """
    Business day calendar with holiday support.

    Provides methods to check business days, adjust and advance dates.
    """

    def __init__(
        self,
        name: str = "WE",
        holidays: Optional[Iterable[date]] = None,
        weekends: bool = True
    ) -> None:
        """
        Initialize calendar.

        Args:
            name: Calendar identifier (e.g., "WE", "NULL", "TARGET")
            holidays: Holiday dates (excluding weekends)
            weekends: Treat Saturday and Sunday as holidays
        """
        self.name = name
        self._holidays: Set[date] = set(holidays or ())
        self._weekends = weekends

    def is_business_day(self, d: date) -> bool:
        """Check if a date is a business day."""
        if self._weekends and d.weekday() >= 5:
            return False
        return d not in self._holidays

    def add_business_days(self, d: date, days: int) -> date:
        """Add (or subtract, when negative) business days to a date."""
        if days == 0:
            return d

        step = 1 if days > 0 else -1
        remaining = abs(days)
        current = d

        while remaining > 0:
            current += timedelta(days=step)
            if self.is_business_day(current):
                remaining -= 1

        return current

    def next_business_day(self, d: date) -> date:
        """Get the next business day on or after the given date."""
        current = d
        while not self.is_business_day(current):
            current += timedelta(days=1)
        return current

    def prev_business_day(self, d: date) -> date:
        """Get the previous business day on or before the given date."""
        current = d
        while not self.is_business_day(current):
            current -= timedelta(days=1)
        return current

    def adjust(
        self,
        d: date,
        convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    ) -> date:
        """Adjust a date according to a business day convention."""
        if convention == BusinessDayConvention.UNADJUSTED:
            return d

        elif convention == BusinessDayConvention.FOLLOWING:
            return self.next_business_day(d)

        elif convention == BusinessDayConvention.PRECEDING:
            return self.prev_business_day(d)

        elif convention == BusinessDayConvention.MODIFIED_FOLLOWING:
            adjusted = self.next_business_day(d)
            if adjusted.month != d.month:
                adjusted = self.prev_business_day(d)
            return adjusted

        else:
            raise ValueError(f"Unknown business day convention: {convention}")

    def advance(
        self,
        d: date,
        n: int,
        unit: TimeUnit = TimeUnit.DAYS,
        convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    ) -> date:
        """
        Advance a date by n units.

        Days are counted as business days (zero days adjusts the date); weeks,
        months and years are added on a calendar basis and the result adjusted
        with the convention.
        """
        if unit == TimeUnit.DAYS:
            if n == 0:
                return self.adjust(d, convention)
            return self.add_business_days(d, n)
        return self.adjust(Period(n, unit).add_to(d), convention)

    def advance_period(
        self,
        d: date,
        period: Period,
        convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    ) -> date:
        """Advance a date by a tenor."""
        return self.advance(d, period.length, period.unit, convention)

    def add_holidays(self, holidays: Iterable[date]) -> None:
        """Add holidays to the calendar."""
        self._holidays.update(holidays)

    def __repr__(self) -> str:
        return f"Calendar({self.name!r})"


WEEKEND_CALENDAR = Calendar("WE")

NULL_CALENDAR = Calendar("NULL", weekends=False)
