"""In-memory TTL cache for remotely fetched documents.

Entries live for the process lifetime. A stale entry is never evicted, only
overwritten by the next successful refresh. A failed refresh propagates the
fetch error and leaves the previous entry untouched.

With ``single_flight`` enabled, concurrent misses on the same key share one
upstream call: the first caller starts the fetch, later callers await the same
task and receive its result (or its error).
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from coursecontext.models.cache import CachedEntry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = structlog.get_logger()

T = TypeVar("T")


class RemoteDocumentCache:
    """Key → fetched payload cache with refresh-on-expiry semantics."""

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        single_flight: bool = True,
    ) -> None:
        self._clock = clock
        self._single_flight = single_flight
        self._entries: dict[str, CachedEntry[Any]] = {}
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    def peek(self, key: str) -> CachedEntry[Any] | None:
        """Return the stored entry for ``key`` regardless of age."""
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(
        self,
        key: str,
        ttl_seconds: float,
        fetcher: Callable[[str], Awaitable[T]],
    ) -> T:
        """Return the cached value for ``key`` if younger than ``ttl_seconds``.

        Otherwise call ``fetcher(key)``, store the result stamped with the
        current clock reading, and return it.
        """
        entry = self._entries.get(key)
        if entry is not None:
            age = entry.age(self._clock())
            if age < ttl_seconds:
                log.debug("cache_hit", key=key, age_seconds=round(age, 3))
                return entry.value
            log.debug("cache_stale", key=key, age_seconds=round(age, 3))
        else:
            log.debug("cache_miss", key=key)

        if not self._single_flight:
            return await self._refresh(key, fetcher)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, fetcher))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            log.debug("cache_join_in_flight", key=key)

        # Shielded so one cancelled awaiter does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _refresh(self, key: str, fetcher: Callable[[str], Awaitable[T]]) -> T:
        value = await fetcher(key)
        self._entries[key] = CachedEntry(value=value, fetched_at=self._clock())
        log.info("cache_refresh", key=key)
        return value

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the error retrieved when every awaiter was cancelled
        if not task.cancelled():
            task.exception()
