"""
projector.py
-------------
Turns an accepted series into display fields: the next expected payment
date and a human-readable name.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Iterable

import pandas as pd


def project_next_date(last_date, avg_interval: float) -> date:
    """last_date + round(avg_interval) days."""
    last = pd.Timestamp(last_date).date()
    return last + timedelta(days=round(avg_interval))


def most_common_name(counterparties: Iterable[str]) -> str:
    """
    Most frequent raw counterparty string.

    Ties go to the name seen first, so pass names in date order.
    """
    counts = Counter(counterparties)
    if not counts:
        return ""
    return counts.most_common(1)[0][0]
