"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ..types import CacheMetadata, CacheStats
from .base import CacheEntry, ResponseCacheBackend

logger = logging.getLogger("figma_client.cache")


class InMemoryResponseCache(ResponseCacheBackend):
    """
    Process-local TTL cache owned by one client.

    Expired rows are dropped lazily on `get` and by a periodic sweep task
    whose lifetime is bound to `start()` / `close()`.
    """

    backend_id: str = "inmemory"

    def __init__(
        self,
        *,
        sweep_interval_s: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rows: dict[str, CacheEntry[Any]] = {}
        self._sweep_interval_s = sweep_interval_s
        self._clock = clock
        self._sweep_task: asyncio.Task[None] | None = None
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def get_entry(self, key: str) -> CacheEntry[Any] | None:
        row = self._rows.get(key)
        if row is None:
            self._misses += 1
            return None
        if row.is_expired(self._clock()):
            self._rows.pop(key, None)
            self._misses += 1
            return None
        self._hits += 1
        return replace(row, metadata=replace(row.metadata, cache_hit=True))

    def get(self, key: str) -> Any | None:
        row = self.get_entry(key)
        return None if row is None else row.value

    def keys(self) -> list[str]:
        return list(self._rows)

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl_s: float,
        metadata: CacheMetadata | None = None,
    ) -> None:
        now = self._clock()
        self._rows[key] = CacheEntry(
            value=value,
            fetched_at=now,
            expires_at=now + ttl_s,
            metadata=metadata or CacheMetadata(fetched_at=now),
        )

    def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    def clear(self) -> None:
        self._rows.clear()
        self._hits = 0
        self._misses = 0

    def sweep(self) -> int:
        """Drop every expired row; returns the number removed."""
        now = self._clock()
        expired = [key for key, row in self._rows.items() if row.is_expired(now)]
        for key in expired:
            self._rows.pop(key, None)
        if expired:
            logger.debug("cache sweep removed %d expired entr(y/ies)", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        now = self._clock()
        live = sum(1 for row in self._rows.values() if not row.is_expired(now))
        lookups = self._hits + self._misses
        return CacheStats(
            size=len(self._rows),
            hit_rate=self._hits / lookups if lookups else 0.0,
            entries=live,
            hits=self._hits,
            misses=self._misses,
        )

    def start(self) -> None:
        """Start the sweep task on the running loop; idempotent."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        task = self._sweep_task
        self._sweep_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_s)
            self.sweep()
