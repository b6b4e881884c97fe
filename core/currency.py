"""
currency.py
------------
Currency normalizer. Resolves each transaction into a single outflow
magnitude in the display currency.

FX convention (used everywhere in this repo):

    fx_rate = US dollars per 1 pound sterling (GBPUSD)

So GBP -> USD multiplies by fx_rate and USD -> GBP divides by it.

Resolution order for one transaction:
    1. The native amount in the display currency, if it is negative.
    2. The other currency's amount, converted, if it is negative.
    3. Otherwise the transaction is unusable (NaN) and gets dropped.
"""

import numpy as np
import pandas as pd

from core.models import Currency
from config.config_loader import get_currency_config


_AMOUNT_COLUMNS = {"USD": "amount_usd", "GBP": "amount_gbp"}


def supported_currencies() -> tuple[str, ...]:
    """
    Display currencies enabled in config.yaml, in config order.

    Only currencies the input carries an amount column for are kept.
    """
    return tuple(c for c in get_currency_config()["supported"] if c in _AMOUNT_COLUMNS)


def validate_currency(currency: str, fx_rate: float) -> None:
    """
    Raises:
        ValueError: If the currency is unsupported or the rate is not positive.
    """
    supported = supported_currencies()
    if currency not in supported:
        raise ValueError(
            f"Unsupported currency '{currency}'. Supported: {list(supported)}"
        )
    if fx_rate is None or not np.isfinite(fx_rate) or fx_rate <= 0:
        raise ValueError(f"fx_rate must be a positive number, got {fx_rate!r}")


def convert(amount: float, from_currency: Currency, to_currency: Currency, fx_rate: float) -> float:
    """Converts a single amount between GBP and USD using the GBPUSD rate."""
    if from_currency == to_currency:
        return amount
    if from_currency == "GBP":
        return amount * fx_rate
    return amount / fx_rate


def normalize_amounts(transactions: pd.DataFrame, currency: Currency, fx_rate: float) -> pd.Series:
    """
    Computes the outflow magnitude of every row in `currency`.

    Args:
        transactions: DataFrame with amount_usd and amount_gbp columns.
        currency: Display currency ("GBP" or "USD").
        fx_rate: US dollars per 1 pound sterling.

    Returns:
        Float Series aligned to the input index. Non-negative where usable,
        NaN where neither amount is an outflow.
    """
    validate_currency(currency, fx_rate)

    other = "GBP" if currency == "USD" else "USD"
    native = pd.to_numeric(transactions[_AMOUNT_COLUMNS[currency]], errors="coerce").astype(float)
    foreign = pd.to_numeric(transactions[_AMOUNT_COLUMNS[other]], errors="coerce").astype(float)

    # NaN comparisons are False, so missing amounts fall through naturally
    converted = convert(foreign, other, currency, fx_rate)
    magnitude = np.where(
        native < 0,
        native.abs(),
        np.where(foreign < 0, np.abs(converted), np.nan),
    )

    return pd.Series(magnitude, index=transactions.index, dtype=float)
