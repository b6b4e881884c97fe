"""
main.py
--------
Entry point for the Recurring Payment Detection Engine.

Reads a transaction CSV, applies any ignore/restore requests to the
preference store, runs detection, and writes output to the outputs/ folder.

Usage (from the project root):
    python main.py --input transactions.csv

    # With optional arguments:
    python main.py --currency USD --fx-rate 1.25
    python main.py --today 2024-03-20
    python main.py --ignore netfl --restore spoti
"""

import sys
import os
import argparse
import logging
import pandas as pd
from datetime import datetime

# Ensure project root is on path (for runs from any working directory)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from pipeline import RecurringPaymentsPipeline
from core.currency import supported_currencies
from core.preference_store import PreferenceStore
from config.config_loader import get_logging_config, get_preferences_config


# =============================================================================
# LOGGING SETUP
# =============================================================================

_logging_config = get_logging_config()
logging.basicConfig(
    level=getattr(logging, _logging_config["level"]),
    format=_logging_config["format"],
    datefmt=_logging_config["datefmt"],
)
logger = logging.getLogger("main")


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recurring Payment Detection Engine: find subscriptions and annual commitments."
    )
    parser.add_argument(
        "--input", type=str, default=None,
        help="Path to input transactions CSV. Defaults to transactions.csv in project root."
    )
    parser.add_argument(
        "--currency", type=str, default=None,
        choices=list(supported_currencies()),
        help="Display currency. Defaults to config value (GBP)."
    )
    parser.add_argument(
        "--fx-rate", type=float, default=None,
        help="US dollars per 1 pound sterling. Defaults to config value."
    )
    parser.add_argument(
        "--today", type=str, default=None,
        help="Reference date (YYYY-MM-DD). Defaults to the current date."
    )
    parser.add_argument(
        "--preferences", type=str, default=None,
        help="Path to the preferences CSV. Defaults to config value."
    )
    parser.add_argument(
        "--ignore", action="append", default=[], metavar="PATTERN",
        help="Mark a pattern key as not recurring before running. Repeatable."
    )
    parser.add_argument(
        "--restore", action="append", default=[], metavar="PATTERN",
        help="Clear the ignore flag on a pattern key before running. Repeatable."
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Output directory. Defaults to outputs/ in project root."
    )
    return parser.parse_args(argv)


# =============================================================================
# MAIN
# =============================================================================

def main(argv: list[str] | None = None):
    args = parse_args(argv)

    # --- Resolve paths ---
    input_path = args.input or os.path.join(PROJECT_ROOT, "transactions.csv")
    output_dir = args.output_dir or os.path.join(PROJECT_ROOT, "outputs")
    preferences_path = args.preferences or os.path.join(
        PROJECT_ROOT, get_preferences_config()["store_path"]
    )
    os.makedirs(output_dir, exist_ok=True)

    # --- Load transactions ---
    logger.info(f"Loading transactions from: {input_path}")
    if not os.path.exists(input_path):
        logger.error(f"Input file not found: {input_path}")
        sys.exit(1)

    transactions = pd.read_csv(input_path)
    logger.info(f"Loaded {len(transactions):,} transactions.")

    # --- Apply preference changes ---
    store = PreferenceStore(preferences_path)
    for pattern in args.ignore:
        store.set_ignored(pattern, True)
    for pattern in args.restore:
        store.set_ignored(pattern, False)

    # --- Run pipeline ---
    logger.info("Running detection pipeline...")
    pipeline = RecurringPaymentsPipeline(
        currency=args.currency, fx_rate=args.fx_rate, preference_store=store
    )
    try:
        detections = pipeline.run(transactions, today=args.today)
    except ValueError as e:
        logger.error(f"Detection failed: {e}")
        sys.exit(1)

    # --- Output ---
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    detections_path = os.path.join(output_dir, f"recurring_payments_{timestamp}.csv")
    detections.to_csv(detections_path, index=False)
    logger.info(f"Detections saved to: {detections_path}")

    _print_summary(detections)


def _print_summary(df: pd.DataFrame):
    """Prints a clean summary table to the console."""
    if df.empty:
        print("\n  No recurring payments detected.\n")
        return

    currency = df["currency"].iloc[0]

    print("\n" + "=" * 80)
    print("  RECURRING PAYMENTS SUMMARY")
    print("=" * 80)

    for frequency in ["Monthly", "Yearly"]:
        subset = df[df["frequency"] == frequency]
        if subset.empty:
            continue

        print(f"\n  {frequency} ({len(subset)}):")
        print("  " + "-" * 76)
        for _, row in subset.iterrows():
            flag = "  (ignored)" if row["is_ignored"] else ""
            print(
                f"    {row['display_name'][:30]:30s}  {row['average_amount']:>10,.2f} {currency}"
                f"  next {row['next_expected_date']}  [{row['pattern_key']}]{flag}"
            )

    # Run-rate for active entries only
    active = df[~df["is_ignored"].astype(bool)]
    monthly_total = active.loc[active["frequency"] == "Monthly", "average_amount"].sum()
    yearly_total = active.loc[active["frequency"] == "Yearly", "average_amount"].sum()
    print(f"\n  Active monthly total: {monthly_total:,.2f} {currency}")
    print(f"  Active yearly total:  {yearly_total:,.2f} {currency}")
    print("=" * 80 + "\n")


if __name__ == "__main__":
    main()
