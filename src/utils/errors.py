"""Custom exception hierarchy for the source resolver.

All application exceptions inherit from :class:`SourceResolverError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream (e.g. "episode_page", "embed_gateway") caused the failure.

The hierarchy follows the resolution flow:

    SourceResolverError  (base -- catch-all for any resolver error)
    +-- InvalidIdentifierError   (identifier rejected before any network work)
    +-- NotFoundError            (identifier has no candidates upstream)
    +-- UpstreamUnavailableError (the episode page itself could not be fetched)
    +-- FetchTimeoutError        (a secondary fetch exceeded its deadline)
    +-- ConnectionFailureError   (DNS / connection / HTTP status failure)
    +-- ExtractionFailureError   (fetch succeeded, no embedded address matched)
    +-- SourceDisabledError      (address matched the deny-list)
    +-- NoWorkingSourceError     (every candidate in scope failed)
    +-- ConfigurationError       (startup / invalid config)

Per-candidate failures never escape the orchestrator as exceptions; they are
folded into ``ResolvedSource`` values.  Only the aggregate
``NoWorkingSourceError`` and the page-level errors reach API callers.
"""

from __future__ import annotations


class SourceResolverError(Exception):
    """Base exception for all resolver errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which upstream triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for log
    output, e.g. ``[episode_page] HTTP 503 for https://...``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class InvalidIdentifierError(SourceResolverError):
    """Raised when a media identifier fails format validation."""

    def __init__(
        self,
        message: str = "Invalid media identifier",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Candidate extraction (episode page)
# ---------------------------------------------------------------------------

class NotFoundError(SourceResolverError):
    """Raised when the identifier has no known candidates upstream."""

    def __init__(
        self,
        message: str = "No sources found for this identifier",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamUnavailableError(SourceResolverError):
    """Raised when the originating page could not be fetched.

    Transport errors and 5xx responses after all retries end up here.
    """

    def __init__(
        self,
        message: str = "Upstream site is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Secondary fetch (embed gateway)
# ---------------------------------------------------------------------------

class FetchTimeoutError(SourceResolverError):
    """Raised when a secondary fetch exceeds its deadline."""

    def __init__(
        self,
        message: str = "Secondary fetch timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConnectionFailureError(SourceResolverError):
    """Raised on DNS, connection-level or non-success HTTP status failures.

    ``status_code`` is set when the server answered with a non-2xx status.
    """

    def __init__(
        self,
        message: str = "Secondary fetch failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class ExtractionFailureError(SourceResolverError):
    """Raised when a fetched page contains no embeddable address."""

    def __init__(
        self,
        message: str = "no embedded address found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SourceDisabledError(SourceResolverError):
    """Raised when an extracted address matches the deny-list."""

    def __init__(
        self,
        message: str = "Source is disabled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Aggregate / orchestration errors
# ---------------------------------------------------------------------------

class NoWorkingSourceError(SourceResolverError):
    """Raised when every candidate in scope failed to resolve.

    ``causes`` holds one human-readable line per attempted candidate so the
    caller can log or display why nothing was playable.  ``unreachable`` is
    set when every attempt failed at the network level (timeouts or
    connection errors), which the player page words as maintenance.
    """

    def __init__(
        self,
        message: str = "No working video source found (all attempts failed)",
        provider_name: str | None = None,
        causes: list[str] | None = None,
        unreachable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._causes = list(causes or [])
        self._unreachable = unreachable

    @property
    def causes(self) -> list[str]:
        return list(self._causes)

    @property
    def unreachable(self) -> bool:
        return self._unreachable


class ConfigurationError(SourceResolverError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
