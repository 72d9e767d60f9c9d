"""In-memory cache with TTL expiry, stale fallback and in-flight deduplication.

Each upstream source owns one ``TTLCache``. Entries are fresh for
``ttl_seconds``; after that they may still be served by :meth:`get_stale` for
another ``stale_ttl_seconds`` when a refresh fails. ``get_or_fetch`` makes sure
concurrent callers asking for the same key share a single upstream request.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """Thread-safe key/value cache with a pluggable clock."""

    def __init__(
        self,
        ttl_seconds: float,
        stale_ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.stale_ttl_seconds = stale_ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry[T]] = {}
        self._inflight: dict[Hashable, Future[T]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _age(self, entry: _Entry[T]) -> float:
        return self._clock() - entry.stored_at

    def get(self, key: Hashable) -> T | None:
        """Return the value if it is still fresh, else None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._age(entry) > self.ttl_seconds:
                return None
        logger.debug("Cache hit for %s", key)
        return entry.value

    def get_stale(self, key: Hashable) -> T | None:
        """Return the value if it is within the TTL plus the stale window."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._age(entry) > self.ttl_seconds + self.stale_ttl_seconds:
                return None
        return entry.value

    def put(self, key: Hashable, value: T) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one key, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Remove entries past the stale window. Returns the number removed."""
        limit = self.ttl_seconds + self.stale_ttl_seconds
        with self._lock:
            expired = [k for k, e in self._entries.items() if self._age(e) > limit]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], T]) -> T:
        """Return a fresh value for ``key``, calling ``fetch`` at most once per miss.

        Callers arriving while a fetch is running wait on the same result. If
        the fetch raises, a stale value is returned when one is still inside
        the stale window; otherwise the exception propagates to every waiter.
        """
        value = self.get(key)
        if value is not None:
            return value

        with self._lock:
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            return self._wait(key, future)

        try:
            value = fetch()
        except Exception as exc:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            stale = self.get_stale(key)
            if stale is not None:
                logger.warning("Fetch for %s failed, serving stale value", key, exc_info=True)
                return stale
            raise

        self.put(key, value)
        with self._lock:
            self._inflight.pop(key, None)
        future.set_result(value)
        return value

    def _wait(self, key: Hashable, future: Future[Any]) -> T:
        try:
            return future.result()
        except Exception:
            stale = self.get_stale(key)
            if stale is not None:
                return stale
            raise
