"""Source resolver FastAPI application entry point.

Wires together the cache, the candidate provider, the resolver and the
services via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

Also exposes ``build_services`` for the CLI, which needs the same object
graph without the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import APP_VERSION, embed_router
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.candidates.episode_page_provider import EpisodePageProvider
from src.services.embed_resolver import EmbedResolver, ResolverConfig
from src.services.resolution_orchestrator import ResolutionOrchestrator
from src.services.source_service import SourceService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# DI assembly
# ---------------------------------------------------------------------------


def build_services(
    app_settings: Settings,
    app_config: dict[str, Any],
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components.  The caller owns
    ``http_client`` and must close it.
    """
    # -- Shared resources --
    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=app_settings.upstream_timeout,
            follow_redirects=True,
        )
    cache = MemoryCacheProvider(ttl=app_settings.cache_default_ttl)

    # -- Resolution --
    resolver_config = ResolverConfig.from_sources(app_settings, app_config)
    resolver = EmbedResolver(http_client=http_client, config=resolver_config)
    orchestrator = ResolutionOrchestrator(resolver=resolver)

    # -- Candidates --
    candidate_provider = EpisodePageProvider(http_client=http_client, settings=app_settings)

    source_service = SourceService(
        candidate_provider=candidate_provider,
        orchestrator=orchestrator,
        cache=cache,
        ttl=app_settings.resolution_cache_ttl,
    )

    return {
        "http_client": http_client,
        "cache": cache,
        "resolver_config": resolver_config,
        "source_service": source_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_services(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    resolver_config: ResolverConfig = components["resolver_config"]
    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        upstream=resolver_config.upstream_base_url,
        race_concurrency=resolver_config.race_concurrency,
        deny_list=list(resolver_config.deny_list),
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Source Resolver API",
        version=APP_VERSION,
        description=(
            "Resolve an episode identifier into playable video addresses: list "
            "every mirror with its status, or serve a player page framing the "
            "first mirror that answers."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- Routes --
    application.include_router(api_router)
    application.include_router(embed_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
