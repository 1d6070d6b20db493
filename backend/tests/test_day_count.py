"""Tests for day count conventions."""

import pytest
from datetime import date

from bondpricer.core.day_count import (
    DayCountConvention,
    day_count_fraction,
    signed_year_fraction,
)


class TestDayCountFraction:
    """Tests for day_count_fraction function."""

    def test_act_360_half_year(self) -> None:
        """Test ACT/360 for roughly half a year."""
        start = date(2024, 1, 1)
        end = date(2024, 7, 1)

        result = day_count_fraction(start, end, DayCountConvention.ACT_360)

        # 182 days / 360 = 0.5055...
        assert result == pytest.approx(182 / 360, rel=1e-6)

    def test_act_365f_full_year(self) -> None:
        """Test ACT/365F for exactly one year."""
        start = date(2024, 1, 1)
        end = date(2025, 1, 1)

        result = day_count_fraction(start, end, DayCountConvention.ACT_365F)

        # 366 days (leap year) / 365
        assert result == pytest.approx(366 / 365, rel=1e-6)

    def test_thirty_360_quarter(self) -> None:
        """Test 30/360 for a quarter."""
        result = day_count_fraction(date(2024, 1, 15), date(2024, 4, 15), DayCountConvention.THIRTY_360)

        assert result == pytest.approx(0.25, rel=1e-6)

    def test_thirty_360_month_end(self) -> None:
        """31st is treated as the 30th."""
        result = day_count_fraction(date(2024, 1, 31), date(2024, 3, 31), DayCountConvention.THIRTY_360)

        assert result == pytest.approx(60 / 360, rel=1e-6)

    def test_absolute_is_unit(self) -> None:
        """ABSOLUTE counts any non-empty interval as one."""
        result = day_count_fraction(date(2024, 1, 15), date(2029, 1, 15), DayCountConvention.ABSOLUTE)

        assert result == 1.0

    def test_same_date(self) -> None:
        """Test that same date returns zero."""
        d = date(2024, 6, 15)

        assert day_count_fraction(d, d, DayCountConvention.ACT_360) == 0.0
        assert day_count_fraction(d, d, DayCountConvention.ABSOLUTE) == 0.0

    def test_end_before_start_raises(self) -> None:
        """Test that end < start raises error."""
        with pytest.raises(ValueError):
            day_count_fraction(date(2024, 6, 15), date(2024, 1, 1), DayCountConvention.ACT_360)


class TestSignedYearFraction:
    """Tests for signed_year_fraction function."""

    def test_forward_matches_day_count(self) -> None:
        start, end = date(2024, 1, 15), date(2024, 7, 15)

        assert signed_year_fraction(start, end, DayCountConvention.ACT_365F) == pytest.approx(182 / 365)

    def test_backward_is_negative(self) -> None:
        """Past dates give negative year fractions instead of raising."""
        result = signed_year_fraction(date(2024, 7, 15), date(2024, 1, 15), DayCountConvention.ACT_365F)

        assert result == pytest.approx(-182 / 365)
