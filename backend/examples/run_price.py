#!/usr/bin/env python3
"""
Example: Load, validate, and price a bond against a flat market.

Usage:
    python examples/run_price.py [bond.json] [--date D] [--usdjpy X] [--vol V] [--paths N] [--seed S] [--verbose]
"""

import sys
from datetime import date
from pathlib import Path
import argparse
import logging
import traceback

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bondpricer.bond.schema import build_bond, load_bond_spec
from bondpricer.config import PricingConfig
from bondpricer.market import FlatRateCurve, Market
from bondpricer.reporting import generate_cashflow_report


def build_market(args: argparse.Namespace) -> Market:
    """Single-pair JPY market from the command line quotes."""
    return Market(
        valuation_date=date.fromisoformat(args.date),
        fx_rates={"USD": args.usdjpy, "JPY": 1.0},
        rate_curves={"JPY": FlatRateCurve(args.jpy_rate), "USD": FlatRateCurve(args.usd_rate)},
        fx_volatilities={"USDJPY": args.vol},
        paramset="example",
    )


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Price a bond from a JSON specification"
    )
    parser.add_argument(
        "bond_spec",
        type=str,
        nargs="?",
        default=str(Path(__file__).parent / "range_forward_usdjpy.json"),
        help="Path to JSON bond specification"
    )
    parser.add_argument("--date", "-d", type=str, default="2024-03-01", help="Valuation date (ISO)")
    parser.add_argument("--usdjpy", type=float, default=150.0, help="USDJPY spot")
    parser.add_argument("--vol", type=float, default=0.10, help="USDJPY volatility")
    parser.add_argument("--jpy-rate", type=float, default=0.001, help="Flat JPY rate")
    parser.add_argument("--usd-rate", type=float, default=0.045, help="Flat USD rate")
    parser.add_argument(
        "--paths", "-n",
        type=int,
        default=50_000,
        help="Number of Monte Carlo paths"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=42,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--model", "-m",
        type=str,
        default=None,
        help="Pricing model (montecarlo1f, forward, closedform)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print detailed output"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    spec_path = Path(args.bond_spec)

    print("=" * 70)
    print("BOND PRICER")
    print("=" * 70)

    try:
        # 1. Load and validate the bond
        print(f"\n[1/3] Loading bond specification: {spec_path.name}")
        spec = load_bond_spec(spec_path)
        bond = build_bond(spec, PricingConfig(num_paths=args.paths, seed=args.seed))
        print(f"      Bond ID: {bond.id}")
        print(f"      Currency: {bond.currency}")
        print(f"      Underlyings: {', '.join(bond.underlyings) or 'none'}")
        if args.verbose:
            print(bond.scheduled_payoffs)

        # 2. Install the market
        print(f"\n[2/3] Calibrating on {args.date}...")
        bond.market = build_market(args)
        if args.model and not bond.switch_model(args.model):
            print(f"      Model {args.model} unavailable, keeping {bond.current_model_name}")
        print(f"      Model: {bond.current_model_name}")
        if bond.mc_paths:
            print(f"      Paths: {bond.mc_paths:,}")

        # 3. Print results
        print(f"\n[3/3] Generating report...")
        report = generate_cashflow_report(bond)
        report.print_cashflow_table()

        return 0

    except FileNotFoundError as e:
        print(f"\nERROR: {e}")
        return 1

    except Exception as e:
        print(f"\nERROR: {type(e).__name__}: {e}")
        if args.verbose:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
