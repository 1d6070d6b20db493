"""Tests for calendars, tenors and business day adjustment."""

import pytest
from datetime import date

from bondpricer.core.calendar import (
    BusinessDayConvention,
    Calendar,
    NULL_CALENDAR,
    Period,
    TimeUnit,
    add_months,
)


class TestPeriod:
    """Tests for tenor parsing and arithmetic."""

    def test_parse(self) -> None:
        assert Period.parse("6M") == Period(6, TimeUnit.MONTHS)
        assert Period.parse(" 1y ") == Period(1, TimeUnit.YEARS)
        assert Period.parse("-10D") == Period(-10, TimeUnit.DAYS)

    def test_parse_invalid(self) -> None:
        with pytest.raises(ValueError):
            Period.parse("six months")

    def test_multiply_and_negate(self) -> None:
        assert Period.parse("6M") * 3 == Period(18, TimeUnit.MONTHS)
        assert -Period.parse("1Y") == Period(-1, TimeUnit.YEARS)

    def test_add_months_clips_to_month_end(self) -> None:
        """Jan 31 + 1M lands on the last day of February."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert Period.parse("1M").add_to(date(2023, 1, 31)) == date(2023, 2, 28)

    def test_str(self) -> None:
        assert str(Period.parse("3m")) == "3M"


class TestCalendar:
    """Tests for business day logic."""

    def test_weekend_is_holiday(self) -> None:
        cal = Calendar("WE")

        assert cal.is_business_day(date(2024, 1, 12))  # Friday
        assert not cal.is_business_day(date(2024, 1, 13))  # Saturday

    def test_null_calendar_every_day(self) -> None:
        assert NULL_CALENDAR.is_business_day(date(2024, 1, 13))

    def test_explicit_holidays(self) -> None:
        cal = Calendar("TKY", holidays=[date(2024, 1, 1)])

        assert not cal.is_business_day(date(2024, 1, 1))

    def test_adjust_conventions(self) -> None:
        """Saturday 2024-06-29 under each convention."""
        cal = Calendar("WE")
        saturday = date(2024, 6, 29)

        assert cal.adjust(saturday, BusinessDayConvention.UNADJUSTED) == saturday
        assert cal.adjust(saturday, BusinessDayConvention.FOLLOWING) == date(2024, 7, 1)
        assert cal.adjust(saturday, BusinessDayConvention.PRECEDING) == date(2024, 6, 28)
        # Following would cross into July
        assert cal.adjust(saturday, BusinessDayConvention.MODIFIED_FOLLOWING) == date(2024, 6, 28)

    def test_advance_business_days(self) -> None:
        """Business days skip the weekend in both directions."""
        cal = Calendar("WE")

        assert cal.advance(date(2024, 1, 12), 1, TimeUnit.DAYS) == date(2024, 1, 15)
        assert cal.advance(date(2024, 1, 15), -2, TimeUnit.DAYS) == date(2024, 1, 11)
        assert cal.advance(date(2024, 1, 15), 0, TimeUnit.DAYS) == date(2024, 1, 15)

    def test_advance_zero_days_adjusts(self) -> None:
        """Zero business days from a weekend lands on a business day."""
        cal = Calendar("WE")
        saturday = date(2024, 6, 29)

        assert cal.advance(saturday, 0, TimeUnit.DAYS) == date(2024, 7, 1)
        assert cal.advance(saturday, 0, TimeUnit.DAYS, BusinessDayConvention.PRECEDING) == date(2024, 6, 28)
        assert cal.advance_period(saturday, Period.parse("0D")) == date(2024, 7, 1)
        assert NULL_CALENDAR.advance(saturday, 0, TimeUnit.DAYS) == saturday

    def test_advance_months_adjusts(self) -> None:
        cal = Calendar("WE")

        # 2024-03-15 + 3M = 2024-06-15 (Saturday) -> Monday
        result = cal.advance_period(date(2024, 3, 15), Period.parse("3M"))
        assert result == date(2024, 6, 17)
