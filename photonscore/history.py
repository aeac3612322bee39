"""Bounded score history persisted under a single cache key."""

from __future__ import annotations

import logging

import pandas as pd
from pydantic import TypeAdapter, ValidationError

from photonscore.models.schema import HistoryEntry
from photonscore.storage.cache import CacheKey, PersistentCache

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100

_entries = TypeAdapter(list[HistoryEntry])


class HistoryLog:
    """Append-only, keep-last-N log of (fico_score, composite_score, fetched_at)."""

    def __init__(self, cache: PersistentCache, limit: int = HISTORY_LIMIT):
        self.cache = cache
        self.limit = limit

    def _load(self, strict: bool) -> list[HistoryEntry]:
        raw = self.cache.get(CacheKey.SCORE_HISTORY, strict=strict)
        if raw is None:
            return []
        try:
            return _entries.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable score history: {e.error_count()} errors")
            return []

    def read_all(self) -> list[HistoryEntry]:
        """Entries oldest first. Missing or unreadable history reads as empty."""
        return self._load(strict=False)

    def append(self, entry: HistoryEntry) -> list[HistoryEntry]:
        """Read-modify-write: append, truncate to the last `limit`, write back once.

        A storage failure on the read raises StorageError and nothing is
        written, so a transient error cannot replace the stored history.
        """
        history = self._load(strict=True)
        history.append(entry)
        history = history[-self.limit:]
        self.cache.set(CacheKey.SCORE_HISTORY, _entries.dump_json(history).decode())
        return history


def history_frame(entries: list[HistoryEntry]) -> pd.DataFrame:
    """History as a DataFrame with a parsed fetched_at column."""
    if not entries:
        return pd.DataFrame(columns=["fico_score", "composite_score", "fetched_at"])
    df = pd.DataFrame([e.model_dump() for e in entries])
    df["fetched_at"] = pd.to_datetime(df["fetched_at"], utc=True, format="ISO8601")
    return df


def score_change(entries: list[HistoryEntry]) -> int | None:
    """Fico delta between the two most recent entries."""
    if len(entries) < 2:
        return None
    return entries[-1].fico_score - entries[-2].fico_score
