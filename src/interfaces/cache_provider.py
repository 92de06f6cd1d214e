"""Abstract base class for cache service providers.

Defines the contract for key-value caching of resolution results.  The
resolver only ever stores reference strings and small immutable models, so
any backend that can hold Python objects with a per-entry expiry works: an
in-memory dict today, Redis or similar for multi-worker deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# Pass as ``ttl`` to keep an entry until it is deleted or overwritten.
NO_EXPIRY: float = float("inf")


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counters for a cache instance.

    Attributes
    ----------
    keys:
        Number of live (non-expired) entries.
    hits:
        Successful ``get`` calls since construction or the last ``clear``.
    misses:
        ``get`` calls that found nothing or an expired entry.
    """

    keys: int
    hits: int
    misses: int


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async to allow for network-backed stores without
    blocking the event loop.  Implementations must be safe under concurrent
    calls: a ``set`` racing a ``get`` on the same key is observed as if one
    of the two happened first.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        An expired entry behaves exactly like a missing one and is removed.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store *value* under *key*, replacing any existing entry.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.
        ttl:
            Time-to-live in seconds.  ``None`` or ``0`` means the provider's
            configured default TTL; :data:`NO_EXPIRY` means never expire.

        Returns
        -------
        bool
            ``True`` when the entry was stored.
        """

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Remove the entry stored under *key*.

        Returns
        -------
        int
            Number of entries removed (0 when the key was absent).
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry and reset the hit/miss counters."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired."""

    @abstractmethod
    def stats(self) -> CacheStats:
        """Return current cache counters."""
