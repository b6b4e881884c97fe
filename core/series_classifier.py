"""
series_classifier.py
---------------------
Ordered rule chain that labels one candidate series Monthly, Yearly, or
rejects it.

Rules run in a fixed order and the first decisive rule wins:

    1. liveness            reject if the last payment is older than 60 days
    2. amount variance     reject if any amount is >10% away from the mean
    3. monthly             >=3 txns, >=2 gaps in 25-37d, >=50% of gaps, dense
    4. yearly              >=2 txns, >=1 gap in 330-400d, >=50% of gaps
    5. two-point monthly   exactly 2 txns, one 25-37d gap, dense
    6. 90-day fallback     recent txns with a monthly-looking mean gap
    7. otherwise           reject

Gates return Rejected or None (pass). Cadence rules return Accepted or
None (no match). Thresholds come from config.yaml.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd

from core.models import Accepted, Classification, Frequency, Rejected
from core.series import compute_gaps
from core.transaction_filter import parse_dates, to_timestamp
from config.config_loader import get_cadence_config, get_recurring_detection_config


@dataclass(frozen=True)
class SeriesStats:
    """Per-series inputs every rule reads. Built once per series."""

    dates: pd.DatetimeIndex          # Date-ascending, midnight-normalised
    amounts: np.ndarray              # Outflow magnitudes, display currency
    gaps: np.ndarray                 # Day gaps between consecutive dates
    today: pd.Timestamp

    @property
    def count(self) -> int:
        return len(self.dates)

    @property
    def last_date(self) -> pd.Timestamp:
        return self.dates.max()


class SeriesClassifier:
    """
    Usage:
        classifier = SeriesClassifier()
        outcome = classifier.classify(dates, amounts, today)
        if isinstance(outcome, Accepted): ...
    """

    def __init__(self, config: Dict[str, Any] | None = None):
        self.config = config or get_recurring_detection_config()
        self.min_transactions = self.config["min_transactions"]
        self.liveness_days = self.config["liveness_days"]
        self.max_amount_deviation = self.config["max_amount_deviation"]
        self.min_pattern_share = self.config["min_pattern_share"]
        self.density_window_months = self.config["density_window_months"]
        self.density_min_transactions = self.config["density_min_transactions"]
        self.fallback_window_days = self.config["fallback_window_days"]
        self.monthly = get_cadence_config("monthly", self.config)
        self.yearly = get_cadence_config("yearly", self.config)

        self.rules: tuple[Callable[[SeriesStats], Optional[Classification]], ...] = (
            self.check_liveness,
            self.check_amount_variance,
            self.match_monthly,
            self.match_yearly,
            self.match_two_point_monthly,
            self.match_recent_fallback,
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def classify(self, dates, amounts, today: pd.Timestamp) -> Classification:
        """
        Args:
            dates: Date-ascending timestamps of the series' usable transactions.
            amounts: Matching outflow magnitudes.
            today: Reference date, midnight-normalised.
        """
        stats = self.build_stats(dates, amounts, today)

        if stats.count < self.min_transactions:
            return Rejected("insufficient_transactions")

        for rule in self.rules:
            outcome = rule(stats)
            if outcome is not None:
                return outcome

        return Rejected("no_cadence")

    @staticmethod
    def build_stats(dates, amounts, today: pd.Timestamp) -> SeriesStats:
        index = pd.DatetimeIndex(parse_dates(dates))
        return SeriesStats(
            dates=index,
            amounts=np.asarray(amounts, dtype=float),
            gaps=compute_gaps(index),
            today=to_timestamp(today),
        )

    # -------------------------------------------------------------------------
    # GATES
    # -------------------------------------------------------------------------

    def check_liveness(self, stats: SeriesStats) -> Optional[Rejected]:
        cutoff = stats.today - pd.Timedelta(days=self.liveness_days)
        if stats.last_date < cutoff:
            return Rejected("lapsed")
        return None

    def check_amount_variance(self, stats: SeriesStats) -> Optional[Rejected]:
        avg = float(np.mean(stats.amounts))
        if avg <= 0:
            return Rejected("zero_average_amount")

        deviation = np.abs(stats.amounts - avg) / avg
        if np.any(deviation > self.max_amount_deviation):
            return Rejected("amount_variance")
        return None

    # -------------------------------------------------------------------------
    # CADENCE RULES
    # -------------------------------------------------------------------------

    def match_monthly(self, stats: SeriesStats) -> Optional[Accepted]:
        matching = self._gaps_within(stats.gaps, self.monthly)
        if (
            stats.count >= self.monthly["min_transactions"]
            and len(matching) >= self.monthly["min_matching_gaps"]
            and len(matching) >= self.min_pattern_share * len(stats.gaps)
            and self.is_dense(stats)
        ):
            return Accepted(Frequency.MONTHLY, float(np.mean(matching)), "monthly")
        return None

    def match_yearly(self, stats: SeriesStats) -> Optional[Accepted]:
        matching = self._gaps_within(stats.gaps, self.yearly)
        if (
            stats.count >= self.yearly["min_transactions"]
            and len(matching) >= self.yearly["min_matching_gaps"]
            and len(matching) >= self.min_pattern_share * len(stats.gaps)
        ):
            return Accepted(Frequency.YEARLY, float(np.mean(matching)), "yearly")
        return None

    def match_two_point_monthly(self, stats: SeriesStats) -> Optional[Accepted]:
        if stats.count != 2 or len(stats.gaps) != 1:
            return None

        matching = self._gaps_within(stats.gaps, self.monthly)
        if len(matching) == 1 and self.is_dense(stats):
            return Accepted(Frequency.MONTHLY, float(matching[0]), "two_point_monthly")
        return None

    def match_recent_fallback(self, stats: SeriesStats) -> Optional[Accepted]:
        """
        Rescues a series too short for the primary monthly rule that still
        shows a fresh monthly cadence inside the fallback window.
        """
        cutoff = stats.today - pd.Timedelta(days=self.fallback_window_days)
        recent = stats.dates[stats.dates >= cutoff]
        if len(recent) < 2:
            return None

        recent_gaps = compute_gaps(recent)
        if len(self._gaps_within(recent_gaps, self.monthly)) == 0:
            return None

        recent_avg = float(np.mean(recent_gaps))
        if self.monthly["min_gap_days"] <= recent_avg <= self.monthly["max_gap_days"]:
            return Accepted(Frequency.MONTHLY, recent_avg, "fallback_recent")
        return None

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def is_dense(self, stats: SeriesStats) -> bool:
        """At least N transactions inside the trailing density window."""
        cutoff = stats.today - pd.DateOffset(months=self.density_window_months)
        return int((stats.dates >= cutoff).sum()) >= self.density_min_transactions

    @staticmethod
    def _gaps_within(gaps: np.ndarray, cadence: Dict[str, Any]) -> np.ndarray:
        return gaps[(gaps >= cadence["min_gap_days"]) & (gaps <= cadence["max_gap_days"])]
