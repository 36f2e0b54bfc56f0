from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable

from app.config import settings
from app.models.transaction import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    records: list[TransactionRecord]
    complete: bool = False
    failed: bool = False


Loader = Callable[[str, int, int], Awaitable[LoadResult]]


class CacheEntry:
    __slots__ = ("records", "fetched_at", "window", "complete")

    def __init__(self, records: list[TransactionRecord], window: int, complete: bool):
        # sorted() is stable, so equal timestamps keep merge order
        self.records = sorted(records, key=lambda r: r.timestamp, reverse=True)
        self.fetched_at = time.monotonic()
        self.window = window
        self.complete = complete

    def age(self) -> float:
        return time.monotonic() - self.fetched_at

    def covers(self, end: int, window: int) -> bool:
        return len(self.records) >= end or self.complete or self.window >= window

    def page(self, offset: int, limit: int) -> list[TransactionRecord]:
        if offset >= len(self.records):
            return []
        return self.records[offset : offset + limit]


class HistoryCache:
    """
    Merged history per (address, chainId), refreshed wholesale.

    Pages are served by slicing the cached list. A refresh always starts at the
    first explorer page, because per-feed offsets do not line up with merged
    records. Concurrent refreshes for one key share a single in-flight load.
    """

    def __init__(
        self,
        loader: Loader,
        ttl: float | None = None,
        max_entries: int | None = None,
        fetch_multiplier: int | None = None,
        min_fetch_window: int | None = None,
        max_fetch_window: int | None = None,
    ):
        self._loader = loader
        self._ttl = settings.cache_ttl if ttl is None else ttl
        self._max_entries = max_entries or settings.cache_max_entries
        self._multiplier = fetch_multiplier or settings.fetch_multiplier
        self._min_window = min_fetch_window or settings.min_fetch_window
        self._max_window = max_fetch_window or settings.max_fetch_window
        self._store: OrderedDict[tuple[str, int], CacheEntry] = OrderedDict()
        self._inflight: dict[tuple[str, int], asyncio.Task] = {}

    @staticmethod
    def _key(address: str, chain_id: int) -> tuple[str, int]:
        return address.lower(), chain_id

    def fetch_window(self, limit: int, offset: int) -> int:
        # TODO: the multiplier is a guess; measure how many rows collapse per hash on busy Safes
        wanted = max((offset + limit) * self._multiplier, self._min_window)
        return min(wanted, self._max_window)

    def _fresh(self, key: tuple[str, int]) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.age() >= self._ttl:
            return None
        self._store.move_to_end(key)
        return entry

    async def get_page(
        self, address: str, chain_id: int, limit: int, offset: int
    ) -> list[TransactionRecord]:
        key = self._key(address, chain_id)
        end = offset + limit
        window = self.fetch_window(limit, offset)

        entry = self._fresh(key)
        if entry is not None and entry.covers(end, window):
            logger.info("CACHE HIT for %s/%s [%d:%d]", key[0], chain_id, offset, end)
            return entry.page(offset, limit)

        while True:
            task = self._inflight.get(key)
            if task is None:
                break
            logger.info("CACHE WAIT: refresh already running for %s/%s", key[0], chain_id)
            entry = await asyncio.shield(task)
            if entry is None:
                return []
            if entry.covers(end, window):
                return entry.page(offset, limit)

        logger.info("CACHE MISS for %s/%s: refreshing with window %d", key[0], chain_id, window)
        task = asyncio.ensure_future(self._refresh(key, window))
        self._inflight[key] = task
        entry = await asyncio.shield(task)
        if entry is None:
            return []
        return entry.page(offset, limit)

    async def _refresh(self, key: tuple[str, int], window: int) -> CacheEntry | None:
        address, chain_id = key
        try:
            result = await self._loader(address, chain_id, window)
        finally:
            self._inflight.pop(key, None)

        if result.failed:
            stale = self._store.get(key)
            logger.warning(
                "Refresh failed for %s/%s; serving %s",
                address, chain_id, "stale entry" if stale else "empty page",
            )
            return stale

        entry = CacheEntry(result.records, window, result.complete)
        self._store[key] = entry
        self._store.move_to_end(key)
        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)
        logger.info("CACHED %d records for %s/%s", len(entry.records), address, chain_id)
        return entry

    def invalidate(self, address: str, chain_id: int) -> None:
        self._store.pop(self._key(address, chain_id), None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
