"""
recurring_payment_detector.py
------------------------------
Recurring payment detection engine.

Answers one question for a household's transaction feed:

    "Which of these outflows are subscriptions or annual commitments?"

Stages, in order (no stage mutates another stage's output):
    1. Transaction filter    trailing 12 months, non-spend categories out
    2. Currency normalizer   one outflow magnitude in the display currency
    3. Pattern grouper       5-char counterparty prefix -> candidate series
    4. Interval analyzer     day gaps between consecutive payments
    5. Series classifier     ordered rule chain -> Monthly / Yearly / reject
    6. Projector             next expected date + display name
    7. Preference overlay    ignore flags + presentation order

Design decisions:
    - The engine is a pure function of its arguments. No I/O, no caching,
      no module state apart from the read-only config.
    - Anything that cannot be classified is omitted, never raised. Only
      caller bugs (missing columns, unknown currency, bad FX rate) raise.
    - All thresholds are read from config.yaml.
"""

import logging
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from core.currency import normalize_amounts, validate_currency
from core.models import Accepted, Currency, DetectedRecurringPayment
from core.preference_overlay import apply_preferences
from core.projector import most_common_name, project_next_date
from core.series import build_candidate_series
from core.series_classifier import SeriesClassifier
from core.transaction_filter import filter_transactions, to_frame, to_timestamp
from config.config_loader import get_recurring_detection_config

logger = logging.getLogger(__name__)


class RecurringPaymentDetector:
    """
    Detects recurring payment patterns in transaction data.

    Usage:
        detector = RecurringPaymentDetector()
        detections = detector.detect(transactions_df, "GBP", 1.27, today)
    """

    def __init__(self, config: Dict[str, Any] | None = None):
        self.config = config or get_recurring_detection_config()
        self.lookback_months = self.config["lookback_months"]
        self.excluded_categories = list(self.config["excluded_categories"])
        self.key_length = self.config["pattern_key_length"]
        self.min_transactions = self.config["min_transactions"]
        self.classifier = SeriesClassifier(self.config)

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def detect(
        self,
        transactions,
        currency: Currency,
        fx_rate: float,
        today=None,
        ignored_patterns: Iterable[str] | None = None,
    ) -> List[DetectedRecurringPayment]:
        """
        Run recurring payment detection.

        Args:
            transactions: DataFrame (or iterable of Transaction / dicts) with
                date, category, counterparty, amount_usd, amount_gbp.
            currency: Display currency, "GBP" or "USD".
            fx_rate: US dollars per 1 pound sterling.
            today: Reference date. Defaults to the current date.
            ignored_patterns: Pattern keys the user marked "not recurring".

        Returns:
            Detections grouped Monthly then Yearly; active before ignored
            within a group; each sub-list by next_expected_date.
        """
        validate_currency(currency, fx_rate)
        today = resolve_today(today)

        df = self._prepare(transactions, currency, fx_rate, today)
        if df.empty:
            return []

        results: List[DetectedRecurringPayment] = []

        for key, group in build_candidate_series(df, self.key_length).items():
            # Filter: minimum support gate
            if len(group) < self.min_transactions:
                continue

            detection = self._build_detection(key, group, currency, today)
            if detection is not None:
                results.append(detection)

        return apply_preferences(results, ignored_patterns)

    # -------------------------------------------------------------------------
    # INTERNAL: DATA PREPARATION
    # -------------------------------------------------------------------------

    def _prepare(
        self, transactions, currency: Currency, fx_rate: float, today: pd.Timestamp
    ) -> pd.DataFrame:
        """
        Validates input, applies the window filter and resolves amounts.
        Rows with no usable outflow are dropped entirely.
        """
        df = to_frame(transactions)
        df = filter_transactions(df, today, self.lookback_months, self.excluded_categories)

        if df.empty:
            return df

        df = df.assign(amount=normalize_amounts(df, currency, fx_rate))
        return df[df["amount"].notna() & (df["amount"] > 0)]

    # -------------------------------------------------------------------------
    # INTERNAL: DETECTION CONSTRUCTION
    # -------------------------------------------------------------------------

    def _build_detection(
        self, key: str, group: pd.DataFrame, currency: Currency, today: pd.Timestamp
    ) -> DetectedRecurringPayment | None:
        """
        Classifies one date-sorted series. Returns None if it is rejected.
        """
        outcome = self.classifier.classify(group["date"], group["amount"].values, today)

        if not isinstance(outcome, Accepted):
            logger.debug(f"Series '{key}' rejected: {outcome.reason} ({len(group)} txns).")
            return None

        last_date = group["date"].iloc[-1]

        return DetectedRecurringPayment(
            pattern_key=key,
            display_name=most_common_name(group["counterparty"].tolist()),
            frequency=outcome.frequency,
            rule=outcome.rule,
            average_amount=float(np.mean(group["amount"].values)),
            currency=currency,
            next_expected_date=project_next_date(last_date, outcome.avg_interval),
            last_transaction_date=last_date.date(),
            transaction_count=len(group),
        )


def resolve_today(today=None) -> pd.Timestamp:
    """Midnight timestamp for `today`, defaulting to the current date."""
    if today is None:
        return pd.Timestamp.today().normalize()
    return to_timestamp(today)


def detect(
    transactions,
    currency: Currency,
    fx_rate: float,
    today=None,
    ignored_patterns: Iterable[str] | None = None,
) -> List[DetectedRecurringPayment]:
    """Functional entry point. See RecurringPaymentDetector.detect."""
    return RecurringPaymentDetector().detect(
        transactions, currency, fx_rate, today=today, ignored_patterns=ignored_patterns
    )
