"""Service facade: remote fetch -> normalize -> cache -> history.

Write sides are serialized through one asyncio.Lock per cache key so that two
overlapping refreshes queue up instead of dropping a history append. Locks are
always taken in CacheKey declaration order.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

from pydantic import ValidationError

from photonscore.api.client import PhotonClient
from photonscore.errors import PhotonError, StorageError
from photonscore.history import HISTORY_LIMIT, HistoryLog
from photonscore.models.schema import (
    CachedState,
    HistoryEntry,
    PortfolioSnapshot,
    ScoreSnapshot,
)
from photonscore.scoring.normalize import normalize_profile, normalize_score
from photonscore.storage.cache import ALL_KEYS, CacheKey, PersistentCache

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhotonService:
    def __init__(
        self,
        client: PhotonClient,
        cache: PersistentCache,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.cache = cache
        self.history = HistoryLog(cache, limit=history_limit)
        self.clock = clock or _utcnow
        self._locks = {key: asyncio.Lock() for key in ALL_KEYS}

    @asynccontextmanager
    async def _holding(self, *keys: CacheKey) -> AsyncIterator[None]:
        acquired: list[CacheKey] = []
        try:
            for key in ALL_KEYS:
                if key in keys:
                    await self._locks[key].acquire()
                    acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()

    # --- Remote fetches ---

    async def fetch_score(self, wallet_address: str) -> ScoreSnapshot:
        """Fetch, normalize, cache and record a score. Nothing is written on failure.

        If the remote fetch succeeds but caching fails, StorageError is raised
        with the fresh snapshot attached as `.snapshot`.
        """
        try:
            raw = await self.client.get_score(wallet_address)
            snapshot = normalize_score(raw, wallet_address, self.clock())
        except PhotonError as e:
            logger.error(f"Error fetching score for {wallet_address}: {e}")
            raise

        entry = HistoryEntry(
            fico_score=snapshot.fico_score,
            composite_score=snapshot.composite_score,
            fetched_at=snapshot.fetched_at,
        )
        async with self._holding(CacheKey.CACHED_SCORE, CacheKey.SCORE_HISTORY):
            try:
                self.cache.set(CacheKey.CACHED_SCORE, snapshot.model_dump_json())
                self.history.append(entry)
            except StorageError as e:
                logger.error(f"Fetched score for {wallet_address} but caching failed: {e}")
                raise StorageError(
                    f"Score fetched but could not be saved: {e.message}",
                    key=e.key,
                    snapshot=snapshot,
                ) from e

        logger.info(f"Score for {wallet_address}: {snapshot.fico_score} ({snapshot.tier})")
        return snapshot

    async def fetch_profile(self, wallet_address: str) -> PortfolioSnapshot:
        """Fetch, normalize and cache a portfolio. No history interaction."""
        try:
            raw = await self.client.get_crypto_profile(wallet_address)
            snapshot = normalize_profile(raw, wallet_address, self.clock())
        except PhotonError as e:
            logger.error(f"Error fetching crypto profile for {wallet_address}: {e}")
            raise

        async with self._holding(CacheKey.CACHED_PROFILE):
            try:
                self.cache.set(
                    CacheKey.CACHED_PROFILE, snapshot.model_dump_json(exclude_none=True)
                )
            except StorageError as e:
                logger.error(f"Fetched profile for {wallet_address} but caching failed: {e}")
                raise StorageError(
                    f"Crypto profile fetched but could not be saved: {e.message}",
                    key=e.key,
                    snapshot=snapshot,
                ) from e

        logger.info(
            f"Profile for {wallet_address}: ${snapshot.total_balance_usd:,.2f} "
            f"across {len(snapshot.chains)} chains"
        )
        return snapshot

    async def refresh_all(self, wallet_address: str) -> tuple[ScoreSnapshot, PortfolioSnapshot]:
        """Fetch score and profile concurrently.

        If either fetch fails the other is cancelled and awaited before the
        error propagates, so nothing is left writing to the cache.
        """
        tasks = [
            asyncio.create_task(self.fetch_score(wallet_address)),
            asyncio.create_task(self.fetch_profile(wallet_address)),
        ]
        try:
            score, profile = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return score, profile

    # --- Wallet address ---

    async def set_wallet_address(self, address: str) -> None:
        address = address.strip()
        if not address:
            raise ValueError("Wallet address must not be empty")
        async with self._holding(CacheKey.WALLET_ADDRESS):
            self.cache.set(CacheKey.WALLET_ADDRESS, address)

    async def get_wallet_address(self) -> str | None:
        return self.cache.get(CacheKey.WALLET_ADDRESS)

    async def clear_wallet_address(self) -> None:
        async with self._holding(CacheKey.WALLET_ADDRESS):
            self.cache.remove(CacheKey.WALLET_ADDRESS)

    # --- Cached reads ---

    async def get_cached_score(self) -> ScoreSnapshot | None:
        raw = self.cache.get(CacheKey.CACHED_SCORE)
        if raw is None:
            return None
        try:
            return ScoreSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cached score: {e.error_count()} errors")
            return None

    async def get_cached_profile(self) -> PortfolioSnapshot | None:
        raw = self.cache.get(CacheKey.CACHED_PROFILE)
        if raw is None:
            return None
        try:
            return PortfolioSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cached profile: {e.error_count()} errors")
            return None

    async def get_history(self) -> list[HistoryEntry]:
        return self.history.read_all()

    async def load_cached_state(self) -> CachedState:
        """Read every persisted key once. Used as the startup snapshot."""
        return CachedState(
            wallet_address=await self.get_wallet_address(),
            score=await self.get_cached_score(),
            profile=await self.get_cached_profile(),
            history=await self.get_history(),
        )

    async def clear_all_data(self) -> None:
        async with self._holding(*ALL_KEYS):
            self.cache.remove_many(ALL_KEYS)
        logger.info("Cleared all cached data")

    async def aclose(self) -> None:
        await self.client.aclose()
        self.cache.close()
