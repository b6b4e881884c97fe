"""
preference_store.py
--------------------
File-backed store for the user's "not a recurring payment" flags.

One row per pattern key (unique, lowercase), mirroring the
recurring_preferences table:

    counterparty_pattern, is_ignored, created_at

The detection engine never touches this store. Callers read the ignored
set before a run, and write a toggle then re-run.
"""

import logging
import os
from datetime import datetime
from typing import List

import pandas as pd

from core.models import RecurringPreference
from core.preference_overlay import normalize_patterns
from config.config_loader import get_preferences_config

logger = logging.getLogger(__name__)

COLUMNS = ["counterparty_pattern", "is_ignored", "created_at"]


class PreferenceStore:
    """
    Usage:
        store = PreferenceStore("data/recurring_preferences.csv")
        ignored = store.ignored_patterns()
        store.toggle("netfl")
    """

    def __init__(self, path: str | None = None):
        self.path = path or get_preferences_config()["store_path"]

    # -------------------------------------------------------------------------
    # READS
    # -------------------------------------------------------------------------

    def load(self) -> List[RecurringPreference]:
        """All stored preferences. A missing file is an empty store."""
        df = self._read()
        return [
            RecurringPreference(
                counterparty_pattern=row.counterparty_pattern,
                is_ignored=bool(row.is_ignored),
                created_at=row.created_at.to_pydatetime() if pd.notna(row.created_at) else datetime.now(),
            )
            for row in df.itertuples(index=False)
        ]

    def ignored_patterns(self) -> set[str]:
        """Lowercase pattern keys currently flagged as ignored."""
        return normalize_patterns(p.counterparty_pattern for p in self.load() if p.is_ignored)

    def is_ignored(self, pattern: str) -> bool:
        return pattern.strip().lower() in self.ignored_patterns()

    # -------------------------------------------------------------------------
    # WRITES
    # -------------------------------------------------------------------------

    def set_ignored(self, pattern: str, is_ignored: bool) -> RecurringPreference:
        """
        Upserts the flag for one pattern key (lowercased).

        Raises:
            ValueError: If the pattern is blank.
        """
        key = pattern.strip().lower() if pattern else ""
        if not key:
            raise ValueError("Pattern key must be a non-empty string")

        df = self._read()
        existing = df["counterparty_pattern"] == key

        if existing.any():
            df.loc[existing, "is_ignored"] = is_ignored
            created_at = df.loc[existing, "created_at"].iloc[0]
        else:
            created_at = pd.Timestamp.now()
            row = pd.DataFrame([{
                "counterparty_pattern": key,
                "is_ignored": is_ignored,
                "created_at": created_at,
            }])
            df = row if df.empty else pd.concat([df, row], ignore_index=True)

        self._write(df)
        logger.info(f"Preference for '{key}' set to is_ignored={is_ignored}.")

        return RecurringPreference(
            counterparty_pattern=key,
            is_ignored=is_ignored,
            created_at=pd.Timestamp(created_at).to_pydatetime(),
        )

    def toggle(self, pattern: str) -> bool:
        """Flips the ignore flag for a pattern. Returns the new value."""
        new_value = not self.is_ignored(pattern)
        self.set_ignored(pattern, new_value)
        return new_value

    # -------------------------------------------------------------------------
    # INTERNAL: FILE I/O
    # -------------------------------------------------------------------------

    def _read(self) -> pd.DataFrame:
        """
        Raises:
            ValueError: If the file exists but lacks the expected columns.
        """
        if not os.path.exists(self.path):
            return pd.DataFrame(columns=COLUMNS)

        df = pd.read_csv(self.path, dtype={"counterparty_pattern": str})
        missing = [c for c in COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Preference file {self.path} is missing columns: {missing}")

        df["counterparty_pattern"] = df["counterparty_pattern"].fillna("").str.strip().str.lower()
        df["is_ignored"] = df["is_ignored"].astype(str).str.lower().isin(["true", "1"])
        df["created_at"] = pd.to_datetime(df["created_at"], errors="coerce")
        return df[COLUMNS]

    def _write(self, df: pd.DataFrame) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        df.to_csv(self.path, index=False)
