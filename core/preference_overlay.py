"""
preference_overlay.py
----------------------
Last stage: applies the user's ignore flags and fixes presentation order.

Ignored detections are kept (flagged, not dropped) so the caller can show
them de-emphasised with a restore action. This stage never writes to the
preference store; toggling a flag is a caller-side write followed by a
fresh run.

Output order:
    frequency group (Monthly, Yearly)
      -> active before ignored
        -> next_expected_date ascending
          -> pattern_key (stable tie-break)
"""

import dataclasses
from typing import Iterable, List

from core.models import DetectedRecurringPayment, FREQUENCY_ORDER


def normalize_patterns(patterns: Iterable[str] | None) -> set[str]:
    """Lowercases and trims a collection of pattern keys."""
    if not patterns:
        return set()
    return {p.strip().lower() for p in patterns if p and p.strip()}


def sort_detections(payments: Iterable[DetectedRecurringPayment]) -> List[DetectedRecurringPayment]:
    return sorted(
        payments,
        key=lambda p: (
            FREQUENCY_ORDER[p.frequency],
            p.is_ignored,
            p.next_expected_date,
            p.pattern_key,
        ),
    )


def apply_preferences(
    payments: Iterable[DetectedRecurringPayment],
    ignored_patterns: Iterable[str] | None = None,
) -> List[DetectedRecurringPayment]:
    """
    Flags ignored detections and returns them in presentation order.

    Args:
        payments: Accepted detections from the engine.
        ignored_patterns: Pattern keys the user marked "not recurring".
            Compared case-insensitively.

    Returns:
        New list of copies; the input objects are not modified.
    """
    ignored = normalize_patterns(ignored_patterns)

    flagged = [
        dataclasses.replace(p, is_ignored=p.pattern_key.lower() in ignored)
        for p in payments
    ]
    return sort_detections(flagged)


def split_by_frequency(payments: Iterable[DetectedRecurringPayment]) -> dict:
    """Groups an already-ordered list by frequency, keeping order within groups."""
    groups: dict = {frequency: [] for frequency in FREQUENCY_ORDER}
    for p in payments:
        groups[p.frequency].append(p)
    return groups
