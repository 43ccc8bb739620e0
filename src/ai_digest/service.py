"""Digest orchestration: serve from the store or acquire and persist."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from enum import StrEnum

from ai_digest.acquirer.base import DigestAcquirer
from ai_digest.data import Digest
from ai_digest.dates import resolve_date_key
from ai_digest.errors import NotFoundError
from ai_digest.store.base import DigestStore

logger = logging.getLogger(__name__)


class HistoryPolicy(StrEnum):
    """What to do when a past day has no stored digest.

    ``fail_closed``: respond not found, never fabricate history.
    ``best_effort``: reconstruct from a verifiably dated source query when
    the acquirer supports one, otherwise not found.
    """

    FAIL_CLOSED = "fail_closed"
    BEST_EFFORT = "best_effort"


class DigestService:
    """Resolve a date key to its stories, acquiring at most once per day.

    The store is the only cache. An in-process single-flight lock per date
    key keeps concurrent first requests from running two acquisitions; the
    store's insert-if-absent keeps replicas from writing two records.

    Args:
        store: Durable digest store.
        acquirer: Acquirer run on a cache miss.
        history_policy: Policy for uncached past days.
        today: Returns the server's local calendar day.
    """

    def __init__(
        self,
        store: DigestStore,
        acquirer: DigestAcquirer,
        *,
        history_policy: HistoryPolicy = HistoryPolicy.FAIL_CLOSED,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._acquirer = acquirer
        self._history_policy = history_policy
        self._today = today
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def get_digest(self, date_key: str | None = None) -> tuple[Digest, bool]:
        """Return the digest for a date key.

        Args:
            date_key: ``"today"``/None, or a canonical date string.

        Returns:
            Tuple of (digest, cache_hit).

        Raises:
            InvalidDateError: If the key is malformed or in the future.
            NotFoundError: If a past day is uncached and may not be acquired.
            StoreError: If the store fails.
            DigestError: Any acquisition failure; nothing is persisted.
        """
        today = self._today()
        key, day = resolve_date_key(date_key, today=today)

        cached = await self._store.get(key)
        if cached is not None:
            return (cached, True)

        historical = day < today
        if historical and not self._may_reconstruct():
            raise NotFoundError(f"No digest for {key}")

        async with self._single_flight(key):
            # A concurrent request may have finished while we waited
            cached = await self._store.get(key)
            if cached is not None:
                return (cached, True)

            logger.info("Acquiring digest for %s (historical=%s)", key, historical)
            stories, usage = await self._acquirer.acquire(key, day, historical=historical)
            logger.info(
                "Acquired %d stories for %s (%d input / %d output tokens)",
                len(stories),
                key,
                usage.input_tokens,
                usage.output_tokens,
            )

            digest = Digest(date=key, stories=tuple(stories), created_at=datetime.now(tz=UTC))
            stored = await self._store.insert_if_absent(digest)
            return (stored, False)

    async def list_dates(self) -> list[str]:
        """Stored date keys, newest first."""
        return await self._store.list_dates()

    def _may_reconstruct(self) -> bool:
        return (
            self._history_policy is HistoryPolicy.BEST_EFFORT and self._acquirer.supports_history
        )

    @asynccontextmanager
    async def _single_flight(self, key: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(key, (asyncio.Lock(), 0))
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)
