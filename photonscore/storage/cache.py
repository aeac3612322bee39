"""DuckDB-backed key-value cache for on-device state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable

import duckdb

from photonscore.config import get_settings
from photonscore.errors import StorageError

logger = logging.getLogger(__name__)


class CacheKey(str, Enum):
    WALLET_ADDRESS = "@photon_wallet_address"
    CACHED_SCORE = "@photon_cached_score"
    CACHED_PROFILE = "@photon_cached_profile"
    SCORE_HISTORY = "@photon_score_history"


ALL_KEYS: tuple[CacheKey, ...] = tuple(CacheKey)


def get_connection(path: Path | str | None = None) -> duckdb.DuckDBPyConnection:
    """Get a DuckDB connection, creating the kv table if needed. Accepts ":memory:"."""
    if path is None:
        path = get_settings().duckdb_path
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = duckdb.connect(str(path))
    _create_tables(conn)
    return conn


def _create_tables(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS kv_store (
            key VARCHAR PRIMARY KEY,
            value VARCHAR NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    """)


def _key(key: CacheKey | str) -> str:
    return key.value if isinstance(key, CacheKey) else key


class PersistentCache:
    """String-keyed text store. Reads degrade to None, writes raise StorageError."""

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self.conn = conn

    def get(self, key: CacheKey | str, strict: bool = False) -> str | None:
        """Value for key, or None if absent.

        A failed read is logged and reads as None, unless strict is set, in
        which case StorageError is raised so the caller can tell "absent" from
        "unreadable" before writing back.
        """
        try:
            row = self.conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", [_key(key)]
            ).fetchone()
        except duckdb.Error as e:
            if strict:
                raise StorageError(f"Failed to read {_key(key)}: {e}", key=_key(key)) from e
            logger.warning(f"Cache read failed for {_key(key)}: {e}")
            return None
        return row[0] if row else None

    def set(self, key: CacheKey | str, value: str) -> None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO kv_store VALUES (?, ?, ?)",
                [_key(key), value, now],
            )
        except duckdb.Error as e:
            raise StorageError(f"Failed to write {_key(key)}: {e}", key=_key(key)) from e

    def remove(self, key: CacheKey | str) -> None:
        try:
            self.conn.execute("DELETE FROM kv_store WHERE key = ?", [_key(key)])
        except duckdb.Error as e:
            raise StorageError(f"Failed to remove {_key(key)}: {e}", key=_key(key)) from e

    def remove_many(self, keys: Iterable[CacheKey | str]) -> None:
        """Remove several keys in one transaction.

        If the transaction fails it is rolled back and each key is retried once
        on its own. StorageError is raised only if some key still remains.
        """
        names = [_key(k) for k in keys]
        if not names:
            return
        try:
            self.conn.begin()
            for name in names:
                self.conn.execute("DELETE FROM kv_store WHERE key = ?", [name])
            self.conn.commit()
            return
        except duckdb.Error as e:
            logger.warning(f"Batch remove failed, retrying keys individually: {e}")
            try:
                self.conn.rollback()
            except duckdb.Error:
                pass

        remaining = []
        for name in names:
            try:
                self.remove(name)
            except StorageError:
                remaining.append(name)
        if remaining:
            raise StorageError(f"Failed to remove keys: {', '.join(remaining)}")

    def close(self) -> None:
        self.conn.close()
