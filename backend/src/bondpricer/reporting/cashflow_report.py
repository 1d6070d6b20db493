"""
Cashflow report generation for priceable bonds.

Produces the expected cashflow table of the live periods with discount
factors and PV contributions, next to the bond's price figures.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any, Dict, List, Optional

from bondpricer.bond.priceable import PriceableBond

logger = logging.getLogger(__name__)


@dataclass
class CashflowEntry:
    """A single expected cashflow entry."""

    date: date                  # Event (observation) date
    payment_date: date          # Payment date
    type: str                   # "coupon" or "redemption"
    expected_amount: float      # Expected undiscounted amount
    discount_factor: float      # DF from valuation to payment date
    pv_contribution: float      # Expected discounted amount


@dataclass
class CashflowReport:
    """
    Expected cashflows of a bond.

    Contains:
    - Expected cashflow table
    - Dirty / clean price and accrued interest
    """

    bond_id: str
    valuation_date: Optional[date]
    model_name: str = ""
    num_paths: Optional[int] = None

    cashflows: List[CashflowEntry] = field(default_factory=list)

    dirty_price: Optional[float] = None
    accrued_amount: Optional[float] = None
    clean_price: Optional[float] = None

    @property
    def total_pv(self) -> float:
        return sum(cf.pv_contribution for cf in self.cashflows)

    def print_cashflow_table(self) -> None:
        """Print formatted cashflow table."""
        print("\n" + "=" * 80)
        print(f"CASHFLOW TABLE  {self.bond_id}  {self.valuation_date}  ({self.model_name})")
        print("=" * 80)

        print(f"\n{'Event':<12} {'Payment':<12} {'Type':<12} {'Expected':>14} {'DF':>8} {'PV':>14}")
        print("-" * 80)

        for cf in self.cashflows:
            print(
                f"{cf.date.isoformat():<12} "
                f"{cf.payment_date.isoformat():<12} "
                f"{cf.type:<12} "
                f"{cf.expected_amount:>14.6f} "
                f"{cf.discount_factor:>8.4f} "
                f"{cf.pv_contribution:>14.6f}"
            )

        print("-" * 80)
        print(f"{'TOTAL PV':<47} {' ':>8} {self.total_pv:>14.6f}")
        for label, value in (
            ("Dirty price", self.dirty_price),
            ("Accrued", self.accrued_amount),
            ("Clean price", self.clean_price),
        ):
            print(f"  {label:<12} {value:.6f}" if value is not None else f"  {label:<12} n/a")
        print("=" * 80)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "bond_id": self.bond_id,
            "valuation_date": self.valuation_date.isoformat() if self.valuation_date else None,
            "model_name": self.model_name,
            "num_paths": self.num_paths,
            "cashflows": [
                {
                    "date": cf.date.isoformat(),
                    "payment_date": cf.payment_date.isoformat(),
                    "type": cf.type,
                    "expected_amount": cf.expected_amount,
                    "discount_factor": cf.discount_factor,
                    "pv_contribution": cf.pv_contribution,
                }
                for cf in self.cashflows
            ],
            "dirty_price": self.dirty_price,
            "accrued_amount": self.accrued_amount,
            "clean_price": self.clean_price,
        }


def generate_cashflow_report(bond: PriceableBond) -> CashflowReport:
    """
    Generate the expected cashflow report of a bond on its current market.

    Args:
        bond: Bond with a market and an active model

    Returns:
        CashflowReport; the table is empty when the model cannot price
    """
    report = CashflowReport(
        bond_id=bond.id,
        valuation_date=bond.valuation_date,
        model_name=bond.current_model_name,
        num_paths=bond.mc_paths,
    )
    if bond.model is None:
        logger.warning(f"{bond.id} : missing model, empty cashflow report")
        return report

    amounts = bond.model.expected_amounts()
    leg = bond.model.scheduled_payoffs
    if len(amounts) != len(leg):
        logger.warning(f"{bond.id} : model returned no expected amounts")
        return report

    curve = bond.discount_curve
    for item, amount in zip(leg, amounts):
        df = curve(item.period.payment_date) if curve is not None else 1.0
        report.cashflows.append(CashflowEntry(
            date=item.period.event_date,
            payment_date=item.period.payment_date,
            type="redemption" if item.is_redemption else "coupon",
            expected_amount=amount,
            discount_factor=df,
            pv_contribution=amount * df,
        ))

    report.dirty_price = bond.dirty_price()
    report.accrued_amount = bond.accrued_amount()
    report.clean_price = bond.clean_price()
    return report
