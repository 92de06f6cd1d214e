"""Utility modules for the source resolver.

Available utility modules (re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  SourceResolverError; page-level and aggregate failures each raise their own
  subclass so callers can map them to HTTP status codes or error pages.
- **concurrency** -- ``throttled_gather`` for wait-for-all fan-out and
  ``race_first`` for first-success-wins fan-out with detached losers.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    ConnectionFailureError,
    ExtractionFailureError,
    FetchTimeoutError,
    InvalidIdentifierError,
    NotFoundError,
    NoWorkingSourceError,
    SourceDisabledError,
    SourceResolverError,
    UpstreamUnavailableError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import race_first, throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ConnectionFailureError",
    "ExtractionFailureError",
    "FetchTimeoutError",
    "InvalidIdentifierError",
    "NoWorkingSourceError",
    "NotFoundError",
    "SourceDisabledError",
    "SourceResolverError",
    "UpstreamUnavailableError",
    "configure_logging",
    "get_logger",
    "race_first",
    "throttled_gather",
]
