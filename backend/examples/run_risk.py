#!/usr/bin/env python3
"""
Example: FX delta, rho and implied FX call frontiers of a bond.

Usage:
    python examples/run_risk.py [bond.json] [--date D] [--usdjpy X] [--paths N] [--seed S] [--rho] [--no-frontier]
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
from bondpricer.config import FrontierConfig, PricingConfig
from bondpricer.market import FlatRateCurve, Market
from bondpricer.risk import BumpingConfig, compute_fx_delta


def print_frontier_table(bond, triggers) -> None:
    """Print the implied call level of every live period."""
    print("\n" + "=" * 70)
    print("IMPLIED FX FRONTIERS")
    print("=" * 70)
    print(f"{'Period':<26} {'Payment':<12} {'Frontier':>14}")
    print("-" * 54)
    for item, row in zip(bond.live_payoffs, triggers):
        p = item.period
        level = row[0] if row else None
        value = f"{level:>14.4f}" if level is not None else f"{'-':>14}"
        print(f"{p.start_date.isoformat()} {p.end_date.isoformat():<15} {p.payment_date.isoformat():<12} {value}")
    print("=" * 70)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run FX risk analysis on a bond"
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
    parser.add_argument(
        "--paths", "-n",
        type=int,
        default=20_000,
        help="Number of Monte Carlo paths (default: 20,000)"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=42,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--rho",
        action="store_true",
        help="Include rho (rate sensitivity)"
    )
    parser.add_argument(
        "--no-frontier",
        action="store_true",
        help="Skip the frontier search (faster)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print detailed output"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    spec_path = Path(args.bond_spec)

    print("=" * 70)
    print("BOND RISK ANALYZER")
    print("=" * 70)

    try:
        # 1. Load the bond and its market
        print(f"\n[1/3] Loading bond specification: {spec_path.name}")
        bond = build_bond(
            load_bond_spec(spec_path),
            PricingConfig(num_paths=args.paths, seed=args.seed),
            FrontierConfig(paths=args.paths // 4),
        )
        bond.market = Market(
            valuation_date=date.fromisoformat(args.date),
            fx_rates={"USD": args.usdjpy, "JPY": 1.0},
            rate_curves={"JPY": FlatRateCurve(0.001), "USD": FlatRateCurve(0.045)},
            fx_volatilities={"USDJPY": args.vol},
        )
        print(f"      Bond ID: {bond.id}")
        print(f"      Model: {bond.current_model_name}")

        # 2. Sensitivities
        print(f"\n[2/3] Computing sensitivities...")
        result = compute_fx_delta(bond, BumpingConfig(compute_rho=args.rho))
        result.print_summary()

        # 3. Frontiers
        if not args.no_frontier:
            print(f"\n[3/3] Solving call frontiers...")
            print_frontier_table(bond, bond.fx_frontiers())
        else:
            print(f"\n[3/3] Skipping frontiers")

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
