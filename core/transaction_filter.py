"""
transaction_filter.py
----------------------
First stage of the engine: input validation and the trailing-window filter.

Drops, at the earliest possible point:
    - rows with an unparseable or missing date
    - rows older than the lookback window (12 months by default)
    - rows in non-spend categories (income, gifts, excluded)

Dates are normalised to naive midnight here (timezone offsets are read as
UTC) so that every later day count is a whole number of calendar days.
"""

from dataclasses import asdict, is_dataclass
from typing import Iterable

import pandas as pd


REQUIRED_COLUMNS = ["date", "category", "counterparty", "amount_usd", "amount_gbp"]


def to_frame(transactions) -> pd.DataFrame:
    """
    Accepts a DataFrame, or an iterable of Transaction records / dicts,
    and returns a DataFrame with the required columns.

    Raises:
        ValueError: If a DataFrame is missing required columns.
    """
    if isinstance(transactions, pd.DataFrame):
        df = transactions
    else:
        rows = [asdict(t) if is_dataclass(t) else dict(t) for t in transactions]
        df = pd.DataFrame(rows, columns=None if rows else REQUIRED_COLUMNS)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    return df


def parse_dates(values) -> pd.Series:
    """
    Parses any ISO 8601 date or datetime into a naive midnight timestamp.

    Offsets and trailing "Z" are converted to UTC before the time is
    dropped, so naive and tz-aware inputs can share one column. Unparseable
    values become NaT.
    """
    parsed = pd.to_datetime(pd.Series(values), errors="coerce", utc=True, format="ISO8601")
    return parsed.dt.tz_localize(None).dt.normalize()


def to_timestamp(value) -> pd.Timestamp:
    """Single-value counterpart of parse_dates, for reference dates."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.normalize()


def filter_transactions(
    transactions: pd.DataFrame,
    today: pd.Timestamp,
    lookback_months: int,
    excluded_categories: Iterable[str],
) -> pd.DataFrame:
    """
    Applies the trailing window and category exclusions.

    Returns:
        A new DataFrame (input untouched), original row order preserved,
        with `date` parsed and normalised to midnight.
    """
    df = transactions.copy()
    df["date"] = parse_dates(df["date"]).values
    df = df[df["date"].notna()]

    cutoff = today - pd.DateOffset(months=lookback_months)
    in_window = df["date"] >= cutoff
    spend = ~df["category"].isin(list(excluded_categories))

    return df[in_window & spend].copy()
