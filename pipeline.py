"""
pipeline.py
------------
Main orchestration layer. Wires together:
    1. PreferenceStore            →  reads the user's ignored pattern keys
    2. RecurringPaymentDetector   →  produces ordered DetectedRecurringPayments
    3. Output serialization       →  flat DataFrame for CSV / display

The detector stays pure; all I/O (preference file reads) happens here.

Usage:
    from pipeline import RecurringPaymentsPipeline

    pipeline = RecurringPaymentsPipeline(currency="GBP", fx_rate=1.27)
    results_df = pipeline.run(transactions_df, today="2024-03-20")
"""

import pandas as pd
import logging
from typing import List

from core.models import DetectedRecurringPayment
from core.preference_store import PreferenceStore
from core.recurring_payment_detector import RecurringPaymentDetector, resolve_today
from config.config_loader import get_currency_config

logger = logging.getLogger(__name__)


OUTPUT_COLUMNS = [
    "pattern_key", "display_name", "frequency", "average_amount", "currency",
    "next_expected_date", "last_transaction_date", "transaction_count",
    "is_ignored", "rule",
]


class RecurringPaymentsPipeline:
    """
    End-to-end recurring payments pipeline.

    Orchestrates preference lookup → detection → output without exposing
    internal objects to callers.
    """

    def __init__(
        self,
        currency: str | None = None,
        fx_rate: float | None = None,
        preference_store: PreferenceStore | None = None,
    ):
        """
        Args:
            currency: Display currency. Defaults to config value (GBP).
            fx_rate: US dollars per 1 pound sterling. Defaults to config value.
            preference_store: Source of ignore flags. None = nothing ignored.
        """
        currency_config = get_currency_config()
        self.currency = currency or currency_config["default_display_currency"]
        self.fx_rate = fx_rate if fx_rate is not None else currency_config["default_fx_rate"]
        self.preference_store = preference_store
        self.detector = RecurringPaymentDetector()

        logger.info(
            f"Pipeline initialized. Currency: {self.currency}. "
            f"FX rate (USD per GBP): {self.fx_rate}. "
            f"Preferences: {self.preference_store.path if self.preference_store else 'none'}."
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def run(self, transactions: pd.DataFrame, today=None) -> pd.DataFrame:
        """
        Run the full pipeline.

        Args:
            transactions: DataFrame with required columns (see detector).
            today: Reference date. Defaults to the current date.

        Returns:
            DataFrame, one row per detection, in presentation order.
        """
        detections = self.run_detection_only(transactions, today=today)

        output_df = self._serialize_detections(detections)
        logger.info(f"Pipeline complete. Output rows: {len(output_df):,}.")

        return output_df

    def run_detection_only(self, transactions: pd.DataFrame, today=None) -> List[DetectedRecurringPayment]:
        """
        Runs preferences + detection and returns the domain objects.
        Used by the dashboard, which renders cards rather than rows.
        """
        today = resolve_today(today)
        logger.info(f"Pipeline starting. Input: {len(transactions):,} transactions. As of: {today.date()}.")

        # --- Stage 1: Preferences ---
        ignored = self.preference_store.ignored_patterns() if self.preference_store else set()
        logger.info(f"Stage 1 complete. Ignored patterns: {len(ignored):,}.")

        # --- Stage 2: Detection ---
        detections = self.detector.detect(
            transactions, self.currency, self.fx_rate, today=today, ignored_patterns=ignored
        )
        logger.info(
            f"Stage 2 complete. Detections: {len(detections):,} "
            f"({sum(d.is_ignored for d in detections):,} ignored)."
        )

        return detections

    # -------------------------------------------------------------------------
    # INTERNAL: OUTPUT SERIALIZATION
    # -------------------------------------------------------------------------

    def _serialize_detections(self, detections: List[DetectedRecurringPayment]) -> pd.DataFrame:
        """
        Converts detections to a flat DataFrame. Order is kept as produced
        by the overlay; amounts are rounded to 2 dp and dates are ISO strings.
        """
        if not detections:
            return pd.DataFrame(columns=OUTPUT_COLUMNS)

        rows = []
        for d in detections:
            rows.append({
                "pattern_key": d.pattern_key,
                "display_name": d.display_name,
                "frequency": d.frequency.value,
                "average_amount": round(d.average_amount, 2),
                "currency": d.currency,
                "next_expected_date": d.next_expected_date.isoformat(),
                "last_transaction_date": d.last_transaction_date.isoformat(),
                "transaction_count": d.transaction_count,
                "is_ignored": d.is_ignored,
                "rule": d.rule,
            })

        return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)
