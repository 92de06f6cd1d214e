"""FastAPI routes for the source resolver.

Provides the JSON listing of every resolved server for an episode, the HTML
embed page that frames the fastest working server, cache invalidation and a
health check.  Service dependencies are resolved from ``app.state`` via
FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/sources/{identifier}          GET     Exhaustive per-server listing
# /api/v1/sources/{identifier}/cache    DELETE  Drop cached resolutions
# /api/v1/health                        GET     Health check + cache stats
# /embed/{identifier}                   GET     HTML player (race winner)
#
# DEPENDENCY INJECTION PATTERN:
# Each route function declares its dependencies as type-annotated params.
# FastAPI resolves these via Depends() which calls helper functions that
# read from app.state (populated at startup in main.py's build_services).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from src.api.middleware import status_for
from src.api.schemas import (
    CacheInvalidationResponse,
    CacheStatsResponse,
    ErrorResponse,
    HealthResponse,
    SourcesResponse,
)
from src.interfaces.cache_provider import ICacheProvider
from src.services.player_page import classify_failure, render_error, render_player
from src.services.source_service import SourceService
from src.utils.errors import SourceResolverError
from src.utils.logging import get_logger

APP_VERSION = "0.1.0"

_logger: structlog.BoundLogger = get_logger(__name__)

# JSON routes live under /api/v1; the embed page is served from the root so
# it can be dropped straight into an <iframe src="...">.
router = APIRouter(prefix="/api/v1")
embed_router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_source_service(request: Request) -> SourceService:
    """Return the source service from application state."""
    return request.app.state.source_service


def _get_cache(request: Request) -> ICacheProvider:
    """Return the shared resolution cache from application state."""
    return request.app.state.cache


SourceServiceDep = Annotated[SourceService, Depends(_get_source_service)]
CacheDep = Annotated[ICacheProvider, Depends(_get_cache)]


# ---------------------------------------------------------------------------
# Source endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/sources/{identifier}",
    response_model=SourcesResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Resolve every server for an episode",
)
async def list_sources(identifier: str, service: SourceServiceDep) -> SourcesResponse:
    """Resolve all candidate servers and report each one's outcome.

    Resolver errors propagate to ``ErrorHandlingMiddleware``, which picks the
    status code.
    """
    result = await service.resolve_all(identifier)
    return SourcesResponse.from_result(result)


@router.delete(
    "/sources/{identifier}/cache",
    response_model=CacheInvalidationResponse,
    summary="Drop cached resolutions for an episode",
)
async def invalidate_sources(
    identifier: str,
    service: SourceServiceDep,
) -> CacheInvalidationResponse:
    removed = await service.invalidate(identifier)
    return CacheInvalidationResponse(identifier=identifier, removed=removed)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(cache: CacheDep) -> HealthResponse:
    """Return application health, version, and cache statistics."""
    stats = cache.stats()
    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        cache=CacheStatsResponse(keys=stats.keys, hits=stats.hits, misses=stats.misses),
    )


# ---------------------------------------------------------------------------
# Embed page
# ---------------------------------------------------------------------------


@embed_router.get(
    "/embed/{identifier}",
    response_class=HTMLResponse,
    summary="Player page for the first working server",
)
async def embed_player(identifier: str, service: SourceServiceDep) -> HTMLResponse:
    """Frame the race winner, or render an explanatory error page.

    Errors are rendered as HTML here rather than left to the JSON error
    middleware because this page is displayed inside a viewer's iframe.
    """
    try:
        best = await service.resolve_best(identifier)
    except SourceResolverError as exc:
        category = classify_failure(exc)
        _logger.warning(
            "embed_page_failed",
            identifier=identifier,
            error_type=type(exc).__name__,
            category=category.value,
        )
        return HTMLResponse(content=render_error(category), status_code=status_for(exc))

    return HTMLResponse(content=render_player(best.address, title=best.label))
