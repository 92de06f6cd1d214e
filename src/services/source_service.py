"""Resolution cache facade: the entry point for every caller.

Wraps the :class:`ResolutionOrchestrator` with an :class:`ICacheProvider` so
repeated requests for the same identifier inside the TTL window skip all
network work.

Architecture role: **Facade**
-----------------------------
The JSON listing route, the HTML embed route and the CLI all go through
``SourceService``.  It owns three decisions that nothing else makes:

1. **Cache keys**: namespaced by purpose (``sources`` for exhaustive,
   ``embed`` for race) because the two modes produce differently shaped
   results and must never read each other's entries.
2. **What is cached**: successful results (at least one playable source)
   and identifier validation rejections.  Aggregate failures and upstream
   errors are *not* cached, so a transient outage heals on the next request
   instead of being pinned for the whole TTL.
3. **Who writes**: only this class writes to the cache.  Abandoned race
   attempts inside the orchestrator never see the cache at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.candidate_provider import ICandidateProvider
from src.models.sources import BestSource, CandidateSource, ResolutionResult
from src.services.resolution_orchestrator import ResolutionOrchestrator
from src.utils.errors import InvalidIdentifierError, NotFoundError
from src.utils.logging import get_logger

# Episode slugs: letters, digits, dot, underscore, dash; no path separators.
_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,199}$")

_PURPOSE_SOURCES = "sources"
_PURPOSE_EMBED = "embed"


@dataclass(frozen=True)
class _RejectedIdentifier:
    """Cached marker for an identifier that failed validation."""

    reason: str


def cache_key(purpose: str, identifier: str, **params: object) -> str:
    """Build a namespaced cache key.

    >>> cache_key("sources", "show-1x1")
    'sources:show-1x1'
    >>> cache_key("embed", "show-1x1", lang="en")
    'embed:show-1x1:lang=en'
    """
    parts = [purpose, identifier]
    parts.extend(f"{name}={params[name]}" for name in sorted(params))
    return ":".join(parts)


class SourceService:
    """Cached exhaustive and race resolution for media identifiers.

    Parameters
    ----------
    candidate_provider:
        Lists candidate sources for an identifier.
    orchestrator:
        Runs the exhaustive and race policies.
    cache:
        Shared TTL cache, constructed once at startup.
    ttl:
        Seconds a successful result stays cached.
    """

    def __init__(
        self,
        candidate_provider: ICandidateProvider,
        orchestrator: ResolutionOrchestrator,
        cache: ICacheProvider,
        ttl: float = 1800,
    ) -> None:
        self._candidates = candidate_provider
        self._orchestrator = orchestrator
        self._cache = cache
        self._ttl = ttl
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve_all(self, identifier: str) -> ResolutionResult:
        """Resolve every candidate for *identifier* (exhaustive mode).

        Raises
        ------
        InvalidIdentifierError
            *identifier* is malformed (cached).
        NotFoundError
            The upstream lists no candidates (not cached).
        UpstreamUnavailableError
            The episode page could not be fetched (not cached).
        """
        key = cache_key(_PURPOSE_SOURCES, identifier)
        cached = await self._cache.get(key)
        if cached is not None:
            self._logger.info("resolution_cache_hit", identifier=identifier, mode="all")
            return self._unwrap(cached, ResolutionResult)

        await self._validate(identifier, key)
        candidates = await self._load_candidates(identifier)

        resolved = await self._orchestrator.resolve_exhaustive(identifier, candidates)
        result = ResolutionResult(identifier=identifier, resolved=tuple(resolved))

        if result.has_playable:
            await self._cache.set(key, result, self._ttl)
        else:
            self._logger.warning(
                "resolution_not_cached",
                identifier=identifier,
                mode="all",
                reason="no playable source",
                total=result.total_count,
            )
        return result

    async def resolve_best(self, identifier: str) -> BestSource:
        """Return the first working address for *identifier* (race mode).

        Raises
        ------
        InvalidIdentifierError
            *identifier* is malformed (cached).
        NotFoundError
            The upstream lists no candidates (not cached).
        UpstreamUnavailableError
            The episode page could not be fetched (not cached).
        NoWorkingSourceError
            Every attempted candidate failed (not cached).
        """
        key = cache_key(_PURPOSE_EMBED, identifier)
        cached = await self._cache.get(key)
        if cached is not None:
            self._logger.info("resolution_cache_hit", identifier=identifier, mode="best")
            return self._unwrap(cached, BestSource)

        await self._validate(identifier, key)
        candidates = await self._load_candidates(identifier)

        winner = await self._orchestrator.resolve_race(identifier, candidates)
        best = BestSource(
            identifier=identifier,
            label=winner.label,
            address=winner.address or "",
            kind=winner.kind,
        )
        await self._cache.set(key, best, self._ttl)
        return best

    async def invalidate(self, identifier: str) -> int:
        """Drop every cached result for *identifier*; return entries removed."""
        removed = 0
        for purpose in (_PURPOSE_SOURCES, _PURPOSE_EMBED):
            removed += await self._cache.delete(cache_key(purpose, identifier))
        self._logger.info("resolution_cache_invalidated", identifier=identifier, removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _validate(self, identifier: str, key: str) -> None:
        if _IDENTIFIER_RE.match(identifier):
            return
        reason = f"Invalid identifier: {identifier!r}"
        await self._cache.set(key, _RejectedIdentifier(reason=reason), self._ttl)
        raise InvalidIdentifierError(message=reason)

    async def _load_candidates(self, identifier: str) -> list[CandidateSource]:
        candidates = await self._candidates.extract_candidates(identifier)
        if not candidates:
            raise NotFoundError(
                message=f"No sources found for {identifier}",
                provider_name=self._candidates.get_provider_name(),
            )
        self._logger.info(
            "candidates_loaded",
            identifier=identifier,
            count=len(candidates),
        )
        return candidates

    @staticmethod
    def _unwrap(cached: object, expected: type):
        if isinstance(cached, _RejectedIdentifier):
            raise InvalidIdentifierError(message=cached.reason)
        if not isinstance(cached, expected):
            # Namespaced keys make this unreachable unless another component
            # writes into our namespace.
            raise TypeError(f"unexpected cached value {type(cached).__name__}")
        return cached
