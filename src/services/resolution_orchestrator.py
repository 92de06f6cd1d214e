"""Resolution orchestrator: drive many single-candidate resolutions at once.

Two policies share one :class:`EmbedResolver`:

**Exhaustive** (``resolve_exhaustive``)
    Resolve every candidate concurrently and wait for all of them.  The
    returned list has exactly one entry per attempted candidate, in page
    order, whatever order they finished in.  Used by the JSON listing, which
    reports active/failed/disabled counts.

**Race** (``resolve_race``)
    Resolve a bounded prefix of the candidates concurrently and return the
    first one to *complete* as active.  The remaining attempts are cancelled
    and detached, so a hung gateway never delays the player page once a
    winner exists.  If nothing in the prefix comes back active, raise
    :class:`NoWorkingSourceError` with every per-candidate cause.

Failure isolation: a failure in one attempt never aborts siblings.  Even an
unexpected exception is folded into an ``error`` entry rather than raised.
"""

from __future__ import annotations

import structlog

from src.models.sources import (
    CandidateSource,
    FailureKind,
    ResolvedSource,
    SourceKind,
    SourceStatus,
)
from src.services.embed_resolver import EmbedResolver
from src.utils.concurrency import race_first, throttled_gather
from src.utils.errors import NoWorkingSourceError
from src.utils.logging import get_logger

_NETWORK_FAILURES = frozenset({FailureKind.TIMEOUT, FailureKind.CONNECTION})


class ResolutionOrchestrator:
    """Run the exhaustive and race policies over an :class:`EmbedResolver`."""

    def __init__(self, resolver: EmbedResolver) -> None:
        self._resolver = resolver
        self._config = resolver.config
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Exhaustive mode
    # ------------------------------------------------------------------

    async def resolve_exhaustive(
        self,
        identifier: str,
        candidates: list[CandidateSource],
    ) -> list[ResolvedSource]:
        """Resolve every candidate and return the outcomes in page order."""
        limit = self._config.max_candidates
        if len(candidates) > limit:
            self._logger.warning(
                "candidate_list_truncated",
                identifier=identifier,
                received=len(candidates),
                limit=limit,
            )
            candidates = candidates[:limit]

        timeout = self._config.exhaustive_fetch_timeout
        raw_results = await throttled_gather(
            [self._resolver.resolve(c, identifier, timeout) for c in candidates],
            return_exceptions=True,
        )

        resolved: list[ResolvedSource] = []
        for candidate, raw in zip(candidates, raw_results):
            if isinstance(raw, BaseException):
                if not isinstance(raw, Exception):
                    # KeyboardInterrupt, CancelledError and friends are not ours to fold.
                    raise raw
                resolved.append(self._internal_failure(identifier, candidate, raw))
            else:
                resolved.append(raw)

        self._logger.info(
            "exhaustive_resolution_complete",
            identifier=identifier,
            total=len(resolved),
            active=sum(1 for r in resolved if r.is_playable),
        )
        return resolved

    # ------------------------------------------------------------------
    # Race mode
    # ------------------------------------------------------------------

    def race_scope(self, candidates: list[CandidateSource]) -> list[CandidateSource]:
        """Return the prefix of *candidates* that race mode will attempt."""
        start = self._config.race_skip_leading
        return candidates[start : start + self._config.race_concurrency]

    async def resolve_race(
        self,
        identifier: str,
        candidates: list[CandidateSource],
    ) -> ResolvedSource:
        """Return the first candidate to resolve as active.

        Raises
        ------
        NoWorkingSourceError
            Every attempted candidate finished without an active result, or
            there was nothing to attempt.
        """
        scope = self.race_scope(candidates)
        if not scope:
            raise NoWorkingSourceError(
                message="No candidate sources to try",
                causes=[f"{len(candidates)} candidate(s) outside the race window"],
            )

        timeout = self._config.race_fetch_timeout
        winner, settled = await race_first(
            [self._resolver.resolve(c, identifier, timeout) for c in scope],
            accept=lambda result: result.is_playable,
        )

        if winner is not None:
            self._logger.info(
                "race_winner",
                identifier=identifier,
                label=winner.label,
                kind=winner.kind.value,
                attempted=len(scope),
                settled=len(settled),
            )
            return winner

        causes: list[str] = []
        unreachable = True
        for idx, candidate in enumerate(scope):
            outcome = settled.get(idx)
            if isinstance(outcome, ResolvedSource):
                causes.append(outcome.describe())
                unreachable = unreachable and outcome.failure in _NETWORK_FAILURES
            elif isinstance(outcome, BaseException):
                causes.append(f"{candidate.label}: error ({type(outcome).__name__}: {outcome})")
                unreachable = False
            else:
                causes.append(f"{candidate.label}: did not complete")
                unreachable = False

        self._logger.error(
            "race_exhausted",
            identifier=identifier,
            attempted=len(scope),
            causes=causes,
        )
        raise NoWorkingSourceError(causes=causes, unreachable=unreachable)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _internal_failure(
        self,
        identifier: str,
        candidate: CandidateSource,
        exc: Exception,
    ) -> ResolvedSource:
        self._logger.error(
            "resolution_task_failed",
            identifier=identifier,
            label=candidate.label,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return ResolvedSource(
            label=candidate.label,
            address=None,
            kind=(
                SourceKind.EXTRACTED
                if self._resolver.requires_extraction(candidate.reference)
                else SourceKind.DIRECT
            ),
            status=SourceStatus.ERROR,
            detail=f"{type(exc).__name__}: {exc}",
            failure=FailureKind.INTERNAL,
            ordinal=candidate.ordinal,
        )
