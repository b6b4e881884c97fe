"""
series.py
----------
Pattern grouper and interval analyzer.

Grouping key is the first N characters (5 by default) of the trimmed,
lowercased counterparty. This is deliberately crude: it merges merchants
that share a prefix and splits a merchant whose spellings diverge early.
That trade-off is accepted, so do not swap in fuzzy matching here.
"""

from typing import Dict

import numpy as np
import pandas as pd

from core.transaction_filter import parse_dates


def pattern_key(counterparty: str | None, length: int = 5) -> str:
    """Returns the grouping key for one counterparty, or "" if it is blank."""
    if counterparty is None or not isinstance(counterparty, str):
        return ""
    return counterparty.strip().lower()[:length]


def build_candidate_series(transactions: pd.DataFrame, key_length: int = 5) -> Dict[str, pd.DataFrame]:
    """
    Buckets transactions into candidate series by pattern key.

    Rows with an empty counterparty are dropped. Each series is sorted by
    date with a stable sort, so same-day rows keep their feed order.

    Returns:
        Dict of pattern_key -> date-ascending DataFrame.
    """
    if transactions.empty:
        return {}

    keys = transactions["counterparty"].map(lambda c: pattern_key(c, key_length))
    df = transactions.assign(pattern_key=keys)
    df = df[df["pattern_key"] != ""]

    series: Dict[str, pd.DataFrame] = {}
    for key, group in df.groupby("pattern_key", sort=True):
        series[key] = group.sort_values("date", kind="mergesort").reset_index(drop=True)

    return series


def compute_gaps(dates) -> np.ndarray:
    """
    Day gaps between consecutive dates.

    Args:
        dates: Date-ascending sequence of midnight-normalised timestamps.

    Returns:
        Integer array of length len(dates) - 1.
    """
    values = parse_dates(dates).values
    if len(values) < 2:
        return np.array([], dtype=int)
    return np.diff(values).astype("timedelta64[D]").astype(int)
