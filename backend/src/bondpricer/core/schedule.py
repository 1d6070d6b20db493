"""
Schedule generation for structured bonds.

Turns high-level conventions (effective/termination dates, tenor, calendar,
generation rule, notice days) into an ordered sequence of calculation
periods, optionally followed by a redemption leg spanning the whole bond.
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
import logging
from typing import Iterator, List, Optional, Sequence

from bondpricer.core.calendar import (
    BusinessDayConvention,
    Calendar,
    Period,
    TimeUnit,
)
from bondpricer.core.day_count import DayCountConvention, day_count_fraction

logger = logging.getLogger(__name__)

# Generated start/end dates closer than this to the effective/termination
# date are merged into it instead of leaving a stub.
STUB_MERGE_TOLERANCE_DAYS = 14


class DateGenerationRule(str, Enum):
    """How coupon periods are rolled out between effective and termination."""

    ZERO = "zero"
    BACKWARD = "backward"
    FORWARD = "forward"


@dataclass(frozen=True)
class CalculationPeriod:
    """
    A single calculation period.

    Attributes:
        event_date: Fixing (observation) date
        start_date: Accrual start
        end_date: Accrual end
        payment_date: Calendar-adjusted payment date
        day_count_convention: Accrual day count
        is_redemption: True for the redemption leg
    """

    event_date: date
    start_date: date
    end_date: date
    payment_date: date
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365F
    is_redemption: bool = False

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} must be <= end_date {self.end_date}"
            )

    @classmethod
    def create(
        cls,
        start_date: date,
        end_date: date,
        notice: int,
        in_arrears: bool,
        day_count: DayCountConvention,
        calendar: Calendar,
        payment_convention: BusinessDayConvention,
        is_redemption: bool = False,
    ) -> "CalculationPeriod":
        """Build a period, deriving its event and payment dates."""
        reference = end_date if in_arrears else start_date
        event_date = calendar.advance(reference, -notice, TimeUnit.DAYS)
        payment_date = calendar.adjust(end_date, payment_convention)
        return cls(
            event_date=event_date,
            start_date=start_date,
            end_date=end_date,
            payment_date=payment_date,
            day_count_convention=day_count,
            is_redemption=is_redemption,
        )

    @property
    def day_count(self) -> float:
        """Accrual fraction of the whole period."""
        return day_count_fraction(self.start_date, self.end_date, self.day_count_convention)

    def is_current_period(self, ref: date) -> bool:
        return self.start_date <= ref < self.end_date

    def accrued(self, ref: date) -> float:
        """Accrual fraction elapsed at ref (zero outside the period)."""
        if not self.is_current_period(ref):
            return 0.0
        return day_count_fraction(self.start_date, ref, self.day_count_convention)

    def day_count_after(self, ref: date) -> float:
        """Accrual fraction remaining after ref."""
        if ref >= self.end_date:
            return 0.0
        if ref <= self.start_date:
            return self.day_count
        return day_count_fraction(ref, self.end_date, self.day_count_convention)

    def shifted(self, days: int) -> "CalculationPeriod":
        delta = timedelta(days=days)
        return replace(
            self,
            event_date=self.event_date + delta,
            start_date=self.start_date + delta,
            end_date=self.end_date + delta,
            payment_date=self.payment_date + delta,
        )

    def __str__(self) -> str:
        return (
            f"{self.event_date} {self.start_date} {self.end_date} "
            f"{self.payment_date} {self.day_count_convention.value}"
        )


@dataclass
class Schedule:
    """
    Calculation periods sorted by event date.

    leg_order[i] is the generation-order index of periods[i], so coupon
    periods can be matched up with an appended redemption leg.
    """

    periods: List[CalculationPeriod] = field(default_factory=list)
    leg_order: List[int] = field(default_factory=list)

    @classmethod
    def from_periods(cls, periods: Sequence[CalculationPeriod]) -> "Schedule":
        order = sorted(range(len(periods)), key=lambda i: periods[i].event_date)
        return cls(periods=[periods[i] for i in order], leg_order=order)

    def __len__(self) -> int:
        return len(self.periods)

    def __iter__(self) -> Iterator[CalculationPeriod]:
        return iter(self.periods)

    def __getitem__(self, idx: int) -> CalculationPeriod:
        return self.periods[idx]

    @property
    def effective_date(self) -> Optional[date]:
        return min((p.start_date for p in self.periods), default=None)

    @property
    def termination_date(self) -> Optional[date]:
        return max((p.end_date for p in self.periods), default=None)

    @property
    def start_dates(self) -> List[date]:
        return [p.start_date for p in self.periods]

    @property
    def end_dates(self) -> List[date]:
        return [p.end_date for p in self.periods]

    @property
    def event_dates(self) -> List[date]:
        return [p.event_date for p in self.periods]

    @property
    def payment_dates(self) -> List[date]:
        return [p.payment_date for p in self.periods]

    def _years(self, dates: List[date]) -> List[float]:
        origin = self.effective_date
        return [
            day_count_fraction(origin, d, p.day_count_convention) if d >= origin else 0.0
            for p, d in zip(self.periods, dates)
        ]

    @property
    def start_years(self) -> List[float]:
        return self._years(self.start_dates)

    @property
    def end_years(self) -> List[float]:
        return self._years(self.end_dates)

    @property
    def event_years(self) -> List[float]:
        return self._years(self.event_dates)

    @property
    def payment_years(self) -> List[float]:
        return self._years(self.payment_dates)

    def current_periods(self, ref: date) -> List[CalculationPeriod]:
        return [p for p in self.periods if p.is_current_period(ref)]

    def __str__(self) -> str:
        return "eventdate startdate enddate paymentdate\n" + "\n".join(
            str(p) for p in self.periods
        )


def generate_schedule(
    effective_date: date,
    termination_date: date,
    tenor: Period,
    calendar: Calendar,
    calendar_convention: BusinessDayConvention = BusinessDayConvention.UNADJUSTED,
    payment_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING,
    termination_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING,
    rule: DateGenerationRule = DateGenerationRule.BACKWARD,
    fixing_in_arrears: bool = False,
    notice_days: int = 0,
    day_count: DayCountConvention = DayCountConvention.ACT_365F,
    first_date: Optional[date] = None,
    next_to_last_date: Optional[date] = None,
    add_redemption: bool = False,
    maturity_notice: int = 0,
) -> Schedule:
    """
    Generate the calculation periods of a bond.

    Args:
        effective_date: First accrual start
        termination_date: Last accrual end
        tenor: Coupon frequency (e.g. Period.parse("6M"))
        calendar: Calendar for event and payment dates
        calendar_convention: Adjustment applied to rolled period boundaries
        payment_convention: Adjustment of payment dates
        termination_convention: Adjustment of the payment on termination_date
        rule: Zero, Backward or Forward generation
        fixing_in_arrears: Fix at period end rather than start
        notice_days: Business days between event date and fixing reference
        day_count: Accrual day count of coupon periods
        first_date: Forward-rule front stub end (must be after effective_date)
        next_to_last_date: Backward-rule back stub start (must be before termination_date)
        add_redemption: Append a redemption leg spanning the whole schedule
        maturity_notice: Notice days for the redemption leg

    Returns:
        Schedule sorted by event date. An unknown rule logs an error and
        leaves the coupon part empty.
    """
    if first_date is not None and not first_date > effective_date:
        raise ValueError(f"first_date {first_date} must be after effective_date {effective_date}")
    if next_to_last_date is not None and not next_to_last_date < termination_date:
        raise ValueError(
            f"next_to_last_date {next_to_last_date} must be before termination_date {termination_date}"
        )

    def calc_period(start: date, end: date) -> CalculationPeriod:
        convention = termination_convention if end == termination_date else payment_convention
        return CalculationPeriod.create(
            start, end, notice_days, fixing_in_arrears, day_count, calendar, convention
        )

    def roll(initial: date, n: int) -> date:
        return calendar.adjust((tenor * n).add_to(initial), calendar_convention)

    def within_tolerance(a: date, b: date) -> bool:
        return abs((a - b).days) < STUB_MERGE_TOLERANCE_DAYS

    coupon_legs: List[CalculationPeriod] = []

    if rule == DateGenerationRule.ZERO:
        coupon_legs.append(calc_period(effective_date, termination_date))

    elif rule == DateGenerationRule.BACKWARD:
        initial = termination_date
        if next_to_last_date is not None:
            coupon_legs.append(calc_period(next_to_last_date, termination_date))
            initial = next_to_last_date

        periods = 1
        start = initial
        while True:
            end = start
            start = roll(initial, -periods)
            if within_tolerance(effective_date, start):
                start = effective_date
            coupon_legs.append(calc_period(max(start, effective_date), end))
            periods += 1
            if not start > effective_date:
                break

    elif rule == DateGenerationRule.FORWARD:
        initial = effective_date
        if first_date is not None:
            coupon_legs.append(calc_period(effective_date, first_date))
            initial = first_date

        periods = 1
        end = initial
        while True:
            start = end
            end = roll(initial, periods)
            if within_tolerance(termination_date, end):
                end = termination_date
            coupon_legs.append(calc_period(start, min(end, termination_date)))
            periods += 1
            if not end < termination_date:
                break

    else:
        logger.error(f"Unknown schedule rule: {rule}")

    coupon_legs.sort(key=lambda p: p.event_date)

    redemption_legs: List[CalculationPeriod] = []
    if add_redemption:
        redemption_legs.append(CalculationPeriod.create(
            effective_date,
            termination_date,
            maturity_notice,
            True,
            DayCountConvention.ABSOLUTE,
            calendar,
            termination_convention,
            is_redemption=True,
        ))

    return Schedule.from_periods(coupon_legs + redemption_legs)
