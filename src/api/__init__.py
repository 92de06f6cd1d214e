"""Source resolver API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import embed_router, router
from src.api.schemas import (
    CacheInvalidationResponse,
    ErrorResponse,
    HealthResponse,
    ServerEntry,
    SourcesResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "embed_router",
    "CacheInvalidationResponse",
    "ErrorResponse",
    "HealthResponse",
    "ServerEntry",
    "SourcesResponse",
]
