"""In-memory cache provider using cachetools.TLRUCache.

Simple, fast cache suitable for single-process deployments.  Every entry
carries its own time-to-live; there is no capacity bound and no LRU
eviction, so entries are reclaimed purely by time.  Can be swapped for a
shared backend via the ICacheProvider interface.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import CacheStats, ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory per-entry TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    ttl:
        Default time-to-live in seconds, applied when ``set`` is called
        without a TTL (or with ``0``).
    timer:
        Monotonic clock used for expiry.  Tests inject a fake clock.
    """

    def __init__(self, ttl: float = 3600, timer: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("default ttl must be positive")
        self._default_ttl = float(ttl)
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=math.inf, ttu=_time_to_use, timer=timer
        )
        # cachetools caches are not thread-safe; uvicorn may call sync code
        # from worker threads, so every access goes through this lock.
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        with self._lock:
            # Drops every expired entry, including this key if it has lapsed.
            self._cache.expire()
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1

        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store *value* under *key*, resetting its expiry."""
        if ttl is not None and ttl < 0:
            logger.warning("cache_set_rejected", key=key, ttl=ttl)
            return False
        effective_ttl = self._default_ttl if not ttl else float(ttl)

        with self._lock:
            # Remove first so an overwrite always restarts the clock.
            self._cache.pop(key, None)
            self._cache[key] = _Entry(value=value, ttl=effective_ttl)

        logger.debug("cache_set", key=key, ttl=effective_ttl)
        return True

    async def delete(self, key: str) -> int:
        """Remove *key* from the cache; return how many entries were removed."""
        with self._lock:
            self._cache.expire()
            removed = 1 if self._cache.pop(key, None) is not None else 0
        logger.debug("cache_delete", key=key, removed=removed)
        return removed

    async def clear(self) -> None:
        """Drop every entry and reset counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
        logger.debug("cache_clear")

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        with self._lock:
            self._cache.expire()
            return key in self._cache

    def stats(self) -> CacheStats:
        with self._lock:
            self._cache.expire()
            return CacheStats(keys=len(self._cache), hits=self._hits, misses=self._misses)
