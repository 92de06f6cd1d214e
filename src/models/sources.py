"""Source resolution models.

Defines Pydantic v2 models for the three stages a playback source goes
through.  All models use frozen config to enforce immutability; a
re-resolution produces new instances rather than mutating cached ones.

    CandidateSource   -- raw reference scraped from the episode page
    ResolvedSource    -- outcome of resolving one candidate
    ResolutionResult  -- exhaustive outcome for one identifier (JSON path)
    BestSource        -- race outcome for one identifier (player path)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SourceKind(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """How the playable address was obtained."""

    DIRECT = "direct"        # The candidate reference is already playable
    EXTRACTED = "extracted"  # Obtained by fetching an embed gateway page


class SourceStatus(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Outcome of resolving a single candidate."""

    ACTIVE = "active"        # Usable address available
    FAILED = "failed"        # Gateway page fetched, nothing embeddable in it
    DISABLED = "disabled"    # Address matched the deny-list
    ERROR = "error"          # Network-level failure on the gateway fetch


class FailureKind(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Machine-readable cause for a non-active :class:`ResolvedSource`."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    EXTRACTION = "extraction"
    DISABLED = "disabled"
    INTERNAL = "internal"


# ---------------------------------------------------------------------------
# CandidateSource
# ---------------------------------------------------------------------------
class CandidateSource(BaseModel):
    """A raw, unresolved reference to a possible playback location.

    ``ordinal`` is the 0-based position on the upstream page; order is
    significant because race mode only looks at a prefix of the list.
    """

    model_config = ConfigDict(frozen=True)

    reference: str = Field(min_length=1)
    label: str
    ordinal: int = Field(ge=0)


# ---------------------------------------------------------------------------
# ResolvedSource
# ---------------------------------------------------------------------------
class ResolvedSource(BaseModel):
    """The outcome of attempting to turn one candidate into a usable address.

    ``address`` is only ever set when ``status`` is ACTIVE.  ``detail`` is a
    human-readable cause for every other status; ``failure`` carries the
    same cause as an enum for callers that need to branch on it.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    address: str | None = None
    kind: SourceKind
    status: SourceStatus
    detail: str | None = None
    failure: FailureKind | None = None
    ordinal: int = Field(default=0, ge=0)

    @property
    def is_playable(self) -> bool:
        return self.status == SourceStatus.ACTIVE and bool(self.address)

    def describe(self) -> str:
        """One-line summary used in aggregate failure messages."""
        cause = self.detail or self.status.value
        return f"{self.label}: {self.status.value} ({cause})"


# ---------------------------------------------------------------------------
# ResolutionResult: exhaustive mode
# ---------------------------------------------------------------------------
class ResolutionResult(BaseModel):
    """Every resolved source for one identifier, in upstream order.

    Owned by the cache facade once written and replaced wholesale on the next
    resolution.  The same instance is handed to every caller, so ``resolved``
    is a tuple and nothing can edit it in place.  Counts are derived from
    ``resolved`` so they can never drift from the entries they describe.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    resolved: tuple[ResolvedSource, ...] = ()
    produced_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_count(self) -> int:
        return len(self.resolved)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def active_count(self) -> int:
        return sum(1 for r in self.resolved if r.is_playable)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_count(self) -> int:
        # Everything without a usable address, disabled and error included.
        return self.total_count - self.active_count

    @computed_field  # type: ignore[prop-decorator]
    @property
    def disabled_count(self) -> int:
        return sum(1 for r in self.resolved if r.status == SourceStatus.DISABLED)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def error_count(self) -> int:
        return sum(1 for r in self.resolved if r.status == SourceStatus.ERROR)

    @property
    def active_sources(self) -> list[ResolvedSource]:
        return [r for r in self.resolved if r.is_playable]

    @property
    def has_playable(self) -> bool:
        return self.active_count > 0


# ---------------------------------------------------------------------------
# BestSource: race mode
# ---------------------------------------------------------------------------
class BestSource(BaseModel):
    """The single address chosen by race mode for the player page."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    label: str
    address: str
    kind: SourceKind
    produced_at: datetime = Field(default_factory=_utcnow)
