"""Public interface definitions for external collaborators.

Every external service the resolver depends on is accessed through the
abstract base classes defined in this package.  Concrete adapters implement
these interfaces and are injected at startup in ``src/main.py``, so unit
tests can pass fakes without touching the network.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ICandidateProvider         →  EpisodePageProvider
    ICacheProvider             →  MemoryCacheProvider

Re-exports
----------
ICandidateProvider
    Upstream page → ordered candidate sources.
ICacheProvider, CacheStats, NO_EXPIRY
    Per-entry TTL key-value cache contract.
"""

from src.interfaces.cache_provider import NO_EXPIRY, CacheStats, ICacheProvider
from src.interfaces.candidate_provider import ICandidateProvider

__all__ = [
    "NO_EXPIRY",
    "CacheStats",
    "ICacheProvider",
    "ICandidateProvider",
]
