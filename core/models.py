"""
models.py
----------
Core domain models. These are the typed contracts between engine layers.

- Transaction: One row of the household transaction feed. Input only.

- Accepted / Rejected: Tagged result of the series classifier. Every
  accept names the rule that fired and every reject carries a reason, so
  each decision can be explained from a fixed rule.

- DetectedRecurringPayment: Output of the engine. Display-ready: the
  amount is already converted and the next date already projected.

- RecurringPreference: A user's ignore flag for one pattern key.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional, Union


Currency = Literal["GBP", "USD"]


class Frequency(str, Enum):
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


# Presentation order of frequency groups
FREQUENCY_ORDER = {Frequency.MONTHLY: 0, Frequency.YEARLY: 1}


@dataclass(frozen=True)
class Transaction:
    """A single transaction as supplied by the ingestion pipeline."""

    date: date
    category: str
    counterparty: Optional[str]
    amount_usd: Optional[float]      # Signed. Negative = outflow.
    amount_gbp: Optional[float]      # Signed. Negative = outflow.
    transaction_id: Optional[str] = None


@dataclass(frozen=True)
class Accepted:
    frequency: Frequency
    avg_interval: float              # Days, used for projection.
    rule: str                        # e.g. "monthly", "two_point_monthly"


@dataclass(frozen=True)
class Rejected:
    reason: str                      # e.g. "lapsed", "amount_variance"


Classification = Union[Accepted, Rejected]


@dataclass(frozen=True)
class DetectedRecurringPayment:
    """
    One accepted series.

    Produced by RecurringPaymentDetector, possibly re-flagged by the
    preference overlay (which returns copies, never mutating in place).
    """

    # Identity
    pattern_key: str                 # Lowercased 5-char counterparty prefix
    display_name: str                # Most frequent raw counterparty string

    # Classification
    frequency: Frequency
    rule: str                        # Classifier rule that accepted the series

    # Amount
    average_amount: float            # Mean outflow, in `currency`
    currency: Currency

    # Timing
    next_expected_date: date
    last_transaction_date: date
    transaction_count: int

    # Overlay
    is_ignored: bool = False


@dataclass
class RecurringPreference:
    """A persisted ignore flag, keyed by lowercase pattern key."""

    counterparty_pattern: str
    is_ignored: bool = True
    created_at: datetime = field(default_factory=datetime.now)
