"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import embed_router
from src.api.routes import router as api_router
from src.models.sources import (
    BestSource,
    FailureKind,
    ResolutionResult,
    ResolvedSource,
    SourceKind,
    SourceStatus,
)
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.services.source_service import SourceService
from src.utils.errors import (
    InvalidIdentifierError,
    NotFoundError,
    NoWorkingSourceError,
    UpstreamUnavailableError,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mixed_result() -> ResolutionResult:
    return ResolutionResult(
        identifier="show-1x1",
        resolved=[
            ResolvedSource(
                label="A",
                address="https://cdn.example/a.mp4",
                kind=SourceKind.DIRECT,
                status=SourceStatus.ACTIVE,
            ),
            ResolvedSource(
                label="B",
                kind=SourceKind.EXTRACTED,
                status=SourceStatus.DISABLED,
                detail="vidstreaming.xyz is disabled",
                failure=FailureKind.DISABLED,
                ordinal=1,
            ),
            ResolvedSource(
                label="C",
                kind=SourceKind.EXTRACTED,
                status=SourceStatus.ERROR,
                detail="Timeout fetching https://toonstream.one/home/?trembed=2 after 4s",
                failure=FailureKind.TIMEOUT,
                ordinal=2,
            ),
        ],
    )


def _create_test_app() -> tuple[FastAPI, MagicMock, MemoryCacheProvider]:
    """Create a FastAPI app with a mocked source service."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)
    app.include_router(embed_router)

    service = MagicMock(spec=SourceService)
    service.resolve_all = AsyncMock(return_value=_mixed_result())
    service.resolve_best = AsyncMock(
        return_value=BestSource(
            identifier="show-1x1",
            label="A",
            address="https://cdn.example/a.mp4",
            kind=SourceKind.DIRECT,
        )
    )
    service.invalidate = AsyncMock(return_value=2)
    cache = MemoryCacheProvider()

    app.state.source_service = service
    app.state.cache = cache
    return app, service, cache


@pytest.fixture
def test_app():
    """Return (TestClient, mocked SourceService, cache)."""
    app, service, cache = _create_test_app()
    return TestClient(app), service, cache


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSourcesEndpoint:
    """Tests for GET /api/v1/sources/{identifier}."""

    def test_listing(self, test_app) -> None:
        client, service, _ = test_app

        response = client.get("/api/v1/sources/show-1x1")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["episode_id"] == "show-1x1"
        assert data["total_servers"] == 3
        assert data["active_servers"] == 1
        assert data["failed_servers"] == 2
        assert data["disabled_servers"] == 1
        assert [s["status"] for s in data["servers"]] == ["active", "disabled", "error"]
        assert data["servers"][1]["url"] is None
        assert data["servers"][1]["error"] == "vidstreaming.xyz is disabled"
        assert data["active_server_urls"] == [
            {"server": "A", "url": "https://cdn.example/a.mp4"}
        ]
        service.resolve_all.assert_awaited_once_with("show-1x1")

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (InvalidIdentifierError("Invalid identifier: 'a b'"), 400),
            (NotFoundError("No sources found for nope"), 404),
            (UpstreamUnavailableError("HTTP 503", provider_name="episode_page"), 502),
            (NoWorkingSourceError(causes=["A: error (timeout)"]), 503),
        ],
    )
    def test_errors_mapped_to_status(self, test_app, exc: Exception, status: int) -> None:
        client, service, _ = test_app
        service.resolve_all.side_effect = exc

        response = client.get("/api/v1/sources/nope")

        assert response.status_code == status
        data = response.json()
        assert data["success"] is False
        assert data["error"] == type(exc).__name__

    def test_no_working_source_lists_causes(self, test_app) -> None:
        client, service, _ = test_app
        service.resolve_all.side_effect = NoWorkingSourceError(
            causes=["A: error (timeout)", "B: failed (no embedded address found)"]
        )

        data = client.get("/api/v1/sources/show-1x1").json()
        assert data["causes"] == ["A: error (timeout)", "B: failed (no embedded address found)"]


class TestCacheEndpoint:
    """Tests for DELETE /api/v1/sources/{identifier}/cache."""

    def test_invalidate(self, test_app) -> None:
        client, service, _ = test_app

        response = client.delete("/api/v1/sources/show-1x1/cache")

        assert response.status_code == 200
        assert response.json() == {"identifier": "show-1x1", "removed": 2}
        service.invalidate.assert_awaited_once_with("show-1x1")


class TestEmbedEndpoint:
    """Tests for GET /embed/{identifier}."""

    def test_player_page(self, test_app) -> None:
        client, service, _ = test_app

        response = client.get("/embed/show-1x1")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert '<iframe src="https://cdn.example/a.mp4"' in response.text
        service.resolve_best.assert_awaited_once_with("show-1x1")

    @pytest.mark.parametrize(
        ("exc", "status", "category"),
        [
            (NotFoundError(), 404, "not_found"),
            (UpstreamUnavailableError(), 502, "maintenance"),
            (NoWorkingSourceError(unreachable=True), 503, "maintenance"),
            (NoWorkingSourceError(), 503, "unavailable"),
        ],
    )
    def test_error_page(self, test_app, exc: Exception, status: int, category: str) -> None:
        client, service, _ = test_app
        service.resolve_best.side_effect = exc

        response = client.get("/embed/show-1x1")

        assert response.status_code == status
        assert response.headers["content-type"].startswith("text/html")
        assert f'data-category="{category}"' in response.text
        assert "<iframe" not in response.text


class TestHealthEndpoint:
    """Tests for GET /api/v1/health."""

    def test_health(self, test_app) -> None:
        client, _, _ = test_app

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["cache"] == {"keys": 0, "hits": 0, "misses": 0}

    def test_health_reports_cache_counters(self, test_app) -> None:
        client, _, cache = test_app
        asyncio.run(cache.set("sources:show-1x1", "cached"))
        asyncio.run(cache.get("sources:show-1x1"))

        data = client.get("/api/v1/health").json()
        assert data["cache"] == {"keys": 1, "hits": 1, "misses": 0}
