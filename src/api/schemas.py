"""Pydantic request/response schemas for the source resolver API.

Defines the public contract for the JSON endpoints: source listing, cache
invalidation and health.  The embed route returns HTML and has no schema.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI uses these models for:
#
#   1. **Serialization**: route return values are converted to JSON
#      matching the schema (via response_model=...).
#   2. **Documentation**: the OpenAPI docs at /docs are generated from them.
#
# Convention: response schemas end with "Response".  Internal domain models
# (src/models/sources.py) are mapped onto these in the route handlers, so the
# wire format can stay stable while the domain models evolve.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.sources import ResolutionResult, ResolvedSource


class ServerEntry(BaseModel):
    """One resolved server in the listing."""

    server: str
    url: str | None = None
    type: str
    status: str
    error: str | None = None

    @classmethod
    def from_resolved(cls, source: ResolvedSource) -> ServerEntry:
        return cls(
            server=source.label,
            url=source.address,
            type=source.kind.value,
            status=source.status.value,
            error=source.detail,
        )


class ActiveServerUrl(BaseModel):
    """Label + address pair for a playable server."""

    server: str
    url: str


class SourcesResponse(BaseModel):
    """Full per-server inventory for one identifier (exhaustive mode)."""

    success: bool = True
    episode_id: str
    total_servers: int
    active_servers: int
    failed_servers: int
    disabled_servers: int
    servers: list[ServerEntry] = Field(default_factory=list)
    active_server_urls: list[ActiveServerUrl] = Field(default_factory=list)
    produced_at: datetime

    @classmethod
    def from_result(cls, result: ResolutionResult) -> SourcesResponse:
        return cls(
            episode_id=result.identifier,
            total_servers=result.total_count,
            active_servers=result.active_count,
            failed_servers=result.failed_count,
            disabled_servers=result.disabled_count,
            servers=[ServerEntry.from_resolved(s) for s in result.resolved],
            active_server_urls=[
                ActiveServerUrl(server=s.label, url=s.address or "")
                for s in result.active_sources
            ],
            produced_at=result.produced_at,
        )


class CacheInvalidationResponse(BaseModel):
    """Result of dropping cached resolutions for an identifier."""

    identifier: str
    removed: int


class CacheStatsResponse(BaseModel):
    keys: int
    hits: int
    misses: int


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    cache: CacheStatsResponse


class ErrorResponse(BaseModel):
    """Standard error response body."""

    success: bool = False
    error: str
    detail: str | None = None
    causes: list[str] = Field(default_factory=list)
