"""
Pydantic schema for bond definitions.

A BondSpec holds the schedule conventions, the coupon and redemption
payoff records, call features and known fixings. build_bond() turns it into
a PriceableBond.
"""

from datetime import date
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from bondpricer.config import FrontierConfig, PricingConfig
from bondpricer.core.calendar import BusinessDayConvention, Calendar, Period
from bondpricer.core.day_count import DayCountConvention
from bondpricer.core.fixings import FixingInformation
from bondpricer.core.schedule import Schedule, generate_schedule
from bondpricer.models import ModelBuilder
from bondpricer.payoffs.payoff import Payoff
from bondpricer.payoffs.scheduled import CallOption, ScheduledPayoffs
from bondpricer.payoffs.spec import PayoffSpec, payoff_from_spec
from bondpricer.bond.priceable import PriceableBond


class ScheduleSpec(BaseModel):
    """Schedule conventions."""

    effective_date: date
    termination_date: date
    tenor: str = "6M"
    calendar: str = "WE"
    holidays: List[date] = Field(default_factory=list)
    calendar_convention: BusinessDayConvention = BusinessDayConvention.UNADJUSTED
    payment_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    termination_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    rule: str = Field(default="backward", description="zero, backward or forward")
    fixing_in_arrears: bool = False
    notice_days: int = Field(default=0, ge=0)
    day_count: DayCountConvention = DayCountConvention.ACT_365F
    first_date: Optional[date] = None
    next_to_last_date: Optional[date] = None
    add_redemption: bool = True
    maturity_notice: int = Field(default=0, ge=0)

    @field_validator("tenor")
    @classmethod
    def validate_tenor(cls, v: str) -> str:
        Period.parse(v)
        return v

    @field_validator("rule", mode="before")
    @classmethod
    def normalise_rule(cls, v: Any) -> str:
        return str(v).strip().lower()

    @model_validator(mode="after")
    def validate_dates(self) -> "ScheduleSpec":
        if self.termination_date <= self.effective_date:
            raise ValueError("termination_date must be after effective_date")
        return self

    def generate(self) -> Schedule:
        """Generate the calculation periods."""
        calendar = Calendar(self.calendar, self.holidays, weekends=self.calendar != "NULL")
        return generate_schedule(
            effective_date=self.effective_date,
            termination_date=self.termination_date,
            tenor=Period.parse(self.tenor),
            calendar=calendar,
            calendar_convention=self.calendar_convention,
            payment_convention=self.payment_convention,
            termination_convention=self.termination_convention,
            rule=self.rule,
            fixing_in_arrears=self.fixing_in_arrears,
            notice_days=self.notice_days,
            day_count=self.day_count,
            first_date=self.first_date,
            next_to_last_date=self.next_to_last_date,
            add_redemption=self.add_redemption,
            maturity_notice=self.maturity_notice,
        )


class CallSpec(BaseModel):
    """Call features of one coupon period."""

    bermudan: bool = False
    trigger: Dict[str, float] = Field(default_factory=dict)
    trigger_up: bool = True
    bonus: float = 0.0

    def to_call_option(self) -> CallOption:
        return CallOption(
            bermudan=self.bermudan,
            trigger=dict(self.trigger),
            trigger_up=self.trigger_up,
            bonus=self.bonus,
        )


class BondSpec(BaseModel):
    """
    Complete bond definition.

    Attributes:
        id: Bond identifier
        currency: Settlement currency (ISO code)
        issue_date: Issue date; defaults to the schedule's effective date
        schedule: Schedule conventions
        coupon: One payoff record for every coupon period, or one per period
        redemption: Payoff record of the redemption leg
        calls: Call features per coupon period (missing entries: none)
        fixings: Known values used to resolve formula text in payoff records
        fixing_history: Observed fixings by event date
        model: Default pricing model name
    """

    id: str = Field(..., min_length=1)
    currency: str = Field(..., min_length=3, max_length=3)
    issue_date: Optional[date] = None
    schedule: ScheduleSpec
    coupon: Union[PayoffSpec, List[PayoffSpec]] = Field(
        default_factory=lambda: PayoffSpec(type="fixed", amount=0.0)
    )
    redemption: PayoffSpec = Field(default_factory=lambda: PayoffSpec(type="fixed", amount=1.0))
    calls: List[CallSpec] = Field(default_factory=list)
    fixings: Dict[str, float] = Field(default_factory=dict)
    fixing_history: Dict[date, Dict[str, float]] = Field(default_factory=dict)
    model: str = "montecarlo1f"

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


def _coupon_payoffs(spec: BondSpec, count: int, fixing_info: FixingInformation) -> List[Payoff]:
    if isinstance(spec.coupon, PayoffSpec):
        payoff = payoff_from_spec(spec.coupon, fixing_info)
        return [payoff] * count
    if len(spec.coupon) != count:
        raise ValueError(f"{len(spec.coupon)} coupon records for {count} coupon periods")
    return [payoff_from_spec(record, fixing_info) for record in spec.coupon]


def build_bond(
    spec: Union[BondSpec, Dict[str, Any]],
    pricing_config: Optional[PricingConfig] = None,
    frontier_config: Optional[FrontierConfig] = None,
    models: Optional[Dict[str, ModelBuilder]] = None
) -> PriceableBond:
    """
    Build a PriceableBond from its specification.

    Coupon records and calls are matched to coupon periods in chronological
    order; the redemption record goes to the redemption leg.
    """
    if not isinstance(spec, BondSpec):
        spec = BondSpec.model_validate(spec)

    schedule = spec.schedule.generate()
    fixing_info = FixingInformation(dict(spec.fixings))

    coupon_periods = [p for p in schedule if not p.is_redemption]
    coupon_payoffs = iter(_coupon_payoffs(spec, len(coupon_periods), fixing_info))
    coupon_calls = iter(
        [c.to_call_option() for c in spec.calls[:len(coupon_periods)]]
        + [CallOption()] * max(0, len(coupon_periods) - len(spec.calls))
    )
    redemption = payoff_from_spec(spec.redemption, fixing_info)

    payoffs: List[Payoff] = []
    calls: List[CallOption] = []
    for period in schedule:
        if period.is_redemption:
            payoffs.append(redemption)
            calls.append(CallOption())
        else:
            payoffs.append(next(coupon_payoffs))
            calls.append(next(coupon_calls))

    return PriceableBond(
        spec.id,
        spec.currency,
        ScheduledPayoffs.build(schedule.periods, payoffs, calls),
        issue_date=spec.issue_date,
        fixing_history=spec.fixing_history,
        models=models,
        default_model_name=spec.model,
        pricing_config=pricing_config,
        frontier_config=frontier_config,
    )


def load_bond_spec(path: Union[str, Path]) -> BondSpec:
    """
    Load and validate a bond specification from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If JSON doesn't match schema
    """
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"Bond specification not found: {path}")

    with open(filepath, "r") as f:
        data = json.load(f)

    return BondSpec(**data)
