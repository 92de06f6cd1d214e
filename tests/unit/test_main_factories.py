"""Unit tests for the factory functions in src/main.py.

Covers build_services assembly and the create_app factory, with the shared
httpx client swapped for a MockTransport so no real network is touched.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi import FastAPI

from src.config.loader import load_config
from src.config.settings import Settings
from src.main import build_services, create_app
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.services.embed_resolver import ResolverConfig
from src.services.source_service import SourceService

EPISODE_HTML = """
<div class="video-player">
  <div id="options-0"><iframe src="https://cdn.example/direct.mp4"></iframe></div>
  <div id="options-1"><iframe data-src="https://toonstream.one/home/?trembed=1"></iframe></div>
</div>
"""


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.startswith("/episode/"):
        return httpx.Response(200, text=EPISODE_HTML)
    return httpx.Response(200, text='<iframe src="//player.example/e/1"></iframe>')


class TestBuildServices:
    @pytest.fixture()
    def settings(self) -> Settings:
        return Settings(_env_file=None, resolution_cache_ttl=120, cache_default_ttl=600)

    def test_components(self, settings: Settings, tmp_path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=settings)
        client = MagicMock(spec=httpx.AsyncClient)

        services = build_services(settings, config, http_client=client)

        assert services["http_client"] is client
        assert isinstance(services["cache"], MemoryCacheProvider)
        assert services["cache"].default_ttl == 600
        assert isinstance(services["resolver_config"], ResolverConfig)
        assert isinstance(services["source_service"], SourceService)

    @pytest.mark.asyncio
    async def test_end_to_end_resolution(self, settings: Settings, tmp_path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=settings)
        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
            services = build_services(settings, config, http_client=client)
            result = await services["source_service"].resolve_all("show-1x1")

        assert [s.address for s in result.resolved] == [
            "https://cdn.example/direct.mp4",
            "https://player.example/e/1",
        ]
        assert result.active_count == 2
        assert services["cache"].stats().keys == 1


class TestCreateApp:
    def test_returns_configured_app(self) -> None:
        application = create_app()
        assert isinstance(application, FastAPI)

        paths = application.openapi()["paths"]
        assert "get" in paths["/api/v1/sources/{identifier}"]
        assert "delete" in paths["/api/v1/sources/{identifier}/cache"]
        assert "get" in paths["/api/v1/health"]
        assert "get" in paths["/embed/{identifier}"]
