"""Single-candidate resolver: turn one candidate into a playable address.

A candidate reference is either already playable (``direct``) or points at
an embed *gateway* page that wraps the real player in an ``<iframe>``.  For
gateway references the resolver fetches the page once, scans it with an
ordered list of extraction rules (first match wins), normalises the address
and checks it against the deny-list.

Every outcome is returned as a :class:`ResolvedSource` value; per-candidate
failures never raise out of :meth:`EmbedResolver.resolve`.  The resolver
holds no mutable state, so one instance serves any number of concurrent
resolutions.
"""

from __future__ import annotations

import asyncio
import html
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from src.config.settings import Settings
from src.models.sources import (
    CandidateSource,
    FailureKind,
    ResolvedSource,
    SourceKind,
    SourceStatus,
)
from src.utils.errors import (
    ConfigurationError,
    ConnectionFailureError,
    ExtractionFailureError,
    FetchTimeoutError,
    SourceDisabledError,
    SourceResolverError,
)
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_PROVIDER_NAME = "embed_gateway"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def _string_rules(name: str, value: Any) -> tuple[str, ...]:
    """Validate a YAML rule list; a bare string is rejected, not split."""
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(message=f"{name} must be a list of strings, got {value!r}")
    if not value:
        raise ConfigurationError(message=f"{name} needs at least one entry")
    if not all(isinstance(entry, str) and entry.strip() for entry in value):
        raise ConfigurationError(message=f"{name} entries must be non-empty strings")
    return tuple(value)


@dataclass(frozen=True)
class ResolverConfig:
    """Rules and limits shared by the resolver and the orchestrator.

    Built once at startup from ``Settings`` plus the ``resolver`` section of
    config/config.yaml (see :meth:`from_sources`).
    """

    upstream_base_url: str = "https://toonstream.one"
    episode_path: str = "/episode/{identifier}/"
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    gateway_signatures: tuple[str, ...] = ("trembed", "toonstream.one/home")
    deny_list: tuple[str, ...] = ("vidstreaming.xyz",)
    exhaustive_fetch_timeout: float = 5.0
    race_fetch_timeout: float = 4.0
    race_concurrency: int = 5
    race_skip_leading: int = 0
    max_candidates: int = 50
    upstream_origin: str = field(init=False)

    def __post_init__(self) -> None:
        parts = urlsplit(self.upstream_base_url)
        if not parts.scheme or not parts.netloc:
            raise ConfigurationError(
                message=f"upstream_base_url is not absolute: {self.upstream_base_url!r}"
            )
        for name in ("gateway_signatures", "deny_list"):
            # Frozen dataclass: bypass __setattr__ to store the normalised tuple.
            object.__setattr__(self, name, _string_rules(name, getattr(self, name)))
        if self.race_concurrency < 1:
            raise ConfigurationError(message="race_concurrency must be at least 1")
        if self.race_skip_leading < 0:
            raise ConfigurationError(message="race_skip_leading cannot be negative")
        if self.max_candidates < 1:
            raise ConfigurationError(message="max_candidates must be at least 1")
        if self.exhaustive_fetch_timeout <= 0 or self.race_fetch_timeout <= 0:
            raise ConfigurationError(message="fetch timeouts must be positive")
        object.__setattr__(self, "upstream_origin", f"https://{parts.netloc}")

    @classmethod
    def from_sources(cls, settings: Settings, config: dict[str, Any]) -> ResolverConfig:
        """Combine environment settings with the YAML rule set."""
        rules = config.get("resolver", {})
        return cls(
            upstream_base_url=settings.upstream_base_url,
            episode_path=settings.upstream_episode_path,
            user_agent=settings.user_agent,
            gateway_signatures=rules.get("gateway_signatures", cls.gateway_signatures),
            deny_list=rules.get("deny_list", cls.deny_list),
            exhaustive_fetch_timeout=float(
                rules.get("exhaustive_fetch_timeout", settings.exhaustive_fetch_timeout)
            ),
            race_fetch_timeout=float(rules.get("race_fetch_timeout", settings.race_fetch_timeout)),
            race_concurrency=int(rules.get("race_concurrency", cls.race_concurrency)),
            race_skip_leading=int(rules.get("race_skip_leading", cls.race_skip_leading)),
            max_candidates=int(rules.get("max_candidates", cls.max_candidates)),
        )

    def referer_for(self, identifier: str) -> str:
        path = self.episode_path.format(identifier=identifier)
        return f"{self.upstream_base_url.rstrip('/')}{path}"


# ---------------------------------------------------------------------------
# Extraction rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractionRule:
    """One way of finding an embedded player address in a gateway page."""

    name: str
    pattern: re.Pattern[str]

    def extract(self, body: str) -> str | None:
        match = self.pattern.search(body)
        if match is None:
            return None
        value = match.group(1).strip()
        return value or None


# Lazy-loaded frames first: gateway pages often carry a placeholder ``src``
# (about:blank) next to the real ``data-src``.
DEFAULT_EXTRACTION_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(
        name="iframe_data_src",
        pattern=re.compile(r"<iframe\b[^>]*?\bdata-src\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
    ),
    ExtractionRule(
        name="iframe_src",
        pattern=re.compile(
            r"<iframe\b[^>]*?(?<![\w-])src\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE
        ),
    ),
)


def normalize_address(raw: str, upstream_origin: str) -> str:
    """Decode entities and force an absolute ``https`` address.

    >>> normalize_address("//cdn.example/e/1?a=1&amp;b=2", "https://up.example")
    'https://cdn.example/e/1?a=1&b=2'
    >>> normalize_address("/player/9", "https://up.example")
    'https://up.example/player/9'
    """
    address = html.unescape(raw).strip()
    if address.startswith("//"):
        return f"https:{address}"
    if address.startswith("/"):
        return f"{upstream_origin.rstrip('/')}{address}"
    if address.lower().startswith("http://"):
        return f"https://{address[len('http://'):]}"
    return address


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class EmbedResolver:
    """Resolve one :class:`CandidateSource` into one :class:`ResolvedSource`.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``; injected for testability.
    config:
        Gateway signatures, deny-list and upstream origin.
    rules:
        Extraction rules applied in order until one matches.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ResolverConfig,
        rules: tuple[ExtractionRule, ...] = DEFAULT_EXTRACTION_RULES,
    ) -> None:
        if not rules:
            raise ConfigurationError(message="at least one extraction rule is required")
        self._http = http_client
        self._config = config
        self._rules = rules

    @property
    def config(self) -> ResolverConfig:
        return self._config

    # -- Classification -------------------------------------------------------

    def requires_extraction(self, reference: str) -> bool:
        """Return ``True`` when *reference* points at an embed gateway page."""
        return any(sig in reference for sig in self._config.gateway_signatures)

    def denied_by(self, address: str) -> str | None:
        """Return the deny-list entry *address* matches, if any."""
        for entry in self._config.deny_list:
            if entry in address:
                return entry
        return None

    def ensure_allowed(self, address: str) -> None:
        """Raise :class:`SourceDisabledError` when *address* is deny-listed."""
        blocked = self.denied_by(address)
        if blocked is not None:
            raise SourceDisabledError(
                message=f"{blocked} is disabled", provider_name=_PROVIDER_NAME
            )

    # -- Network + extraction steps ---------------------------------------

    async def fetch_embed_page(self, url: str, identifier: str, timeout: float) -> str:
        """Fetch a gateway page and return its body.

        Raises
        ------
        FetchTimeoutError
            The request did not complete within *timeout* seconds.
        ConnectionFailureError
            DNS/connection failure or a non-success status code.
        """
        headers = {
            "User-Agent": self._config.user_agent,
            "Referer": self._config.referer_for(identifier),
        }
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole call.
            response = await asyncio.wait_for(
                self._http.get(url, headers=headers, timeout=timeout),
                timeout=timeout,
            )
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise FetchTimeoutError(
                message=f"Timeout fetching {url} after {timeout:g}s",
                provider_name=_PROVIDER_NAME,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ConnectionFailureError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=_PROVIDER_NAME,
                status_code=exc.response.status_code,
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ConnectionFailureError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc
        return response.text

    def extract_address(self, body: str) -> str:
        """Apply the extraction rules in order and normalise the first hit.

        Raises
        ------
        ExtractionFailureError
            No rule matched.
        """
        for rule in self._rules:
            raw = rule.extract(body)
            if raw is not None:
                _logger.debug("extraction_rule_matched", rule=rule.name)
                return normalize_address(raw, self._config.upstream_origin)
        raise ExtractionFailureError(provider_name=_PROVIDER_NAME)

    # -- Public API -----------------------------------------------------------

    async def resolve(
        self,
        candidate: CandidateSource,
        identifier: str,
        timeout: float,
    ) -> ResolvedSource:
        """Resolve *candidate*; never raises for candidate-level failures."""
        if not self.requires_extraction(candidate.reference):
            return ResolvedSource(
                label=candidate.label,
                address=candidate.reference,
                kind=SourceKind.DIRECT,
                status=SourceStatus.ACTIVE,
                ordinal=candidate.ordinal,
            )

        try:
            body = await self.fetch_embed_page(candidate.reference, identifier, timeout)
        except FetchTimeoutError as exc:
            return self._unresolved(candidate, SourceStatus.ERROR, FailureKind.TIMEOUT, exc)
        except ConnectionFailureError as exc:
            failure = FailureKind.HTTP_STATUS if exc.status_code else FailureKind.CONNECTION
            return self._unresolved(candidate, SourceStatus.ERROR, failure, exc)

        try:
            address = self.extract_address(body)
        except ExtractionFailureError as exc:
            return self._unresolved(candidate, SourceStatus.FAILED, FailureKind.EXTRACTION, exc)

        try:
            self.ensure_allowed(address)
        except SourceDisabledError as exc:
            _logger.info("embed_disabled", label=candidate.label, reason=exc.message)
            return ResolvedSource(
                label=candidate.label,
                address=None,
                kind=SourceKind.EXTRACTED,
                status=SourceStatus.DISABLED,
                detail=exc.message,
                failure=FailureKind.DISABLED,
                ordinal=candidate.ordinal,
            )

        _logger.info("embed_extracted", label=candidate.label, address=address)
        return ResolvedSource(
            label=candidate.label,
            address=address,
            kind=SourceKind.EXTRACTED,
            status=SourceStatus.ACTIVE,
            ordinal=candidate.ordinal,
        )

    @staticmethod
    def _unresolved(
        candidate: CandidateSource,
        status: SourceStatus,
        failure: FailureKind,
        exc: SourceResolverError,
    ) -> ResolvedSource:
        _logger.warning(
            "embed_resolution_failed",
            label=candidate.label,
            reference=candidate.reference,
            failure=failure.value,
            error=exc.message,
        )
        return ResolvedSource(
            label=candidate.label,
            address=None,
            kind=SourceKind.EXTRACTED,
            status=status,
            detail=exc.message,
            failure=failure,
            ordinal=candidate.ordinal,
        )
