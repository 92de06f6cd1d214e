"""Cache providers.

In-memory per-entry TTL cache used to avoid re-resolving the same
identifier within the resolution window (30 minutes by default).

MemoryCacheProvider is a dict-based cache: fast but not shared across
processes. For multi-worker deployments, swap in a Redis adapter implementing
ICacheProvider without changing any business logic.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
