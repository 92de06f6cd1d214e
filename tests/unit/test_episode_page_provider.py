"""Unit tests for EpisodePageProvider: page parsing and upstream fetch policy."""

from __future__ import annotations

import httpx
import pytest

from src.config.settings import Settings
from src.providers.candidates.episode_page_provider import EpisodePageProvider
from src.utils.errors import NotFoundError, UpstreamUnavailableError

EPISODE_HTML = """
<html><body>
<ul class="aa-tbs aa-tbs-video">
  <li><a href="#options-0" class="on">Server Hindi</a></li>
  <li><a href="#options-1">Server English</a></li>
  <li><a href="#options-2">Server Backup</a></li>
</ul>
<div class="video-player">
  <div id="options-0" class="video on">
    <iframe src="about:blank" data-src="https://toonstream.one/home/?trembed=0&amp;trid=7"></iframe>
  </div>
  <div id="options-1" class="video">
    <iframe src="https://cdn.example/direct.mp4"></iframe>
  </div>
  <div id="options-2" class="video">
    <iframe src="https://cdn.example/direct.mp4"></iframe>
  </div>
  <div id="options-3" class="video">
    <iframe data-src="https://toonstream.one/home/?trembed=3&amp;trid=7"></iframe>
  </div>
</div>
<iframe src="https://ads.example/banner"></iframe>
</body></html>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseCandidates:
    def test_frames_in_page_order_with_labels(self) -> None:
        candidates = EpisodePageProvider.parse_candidates(EPISODE_HTML)

        assert [c.reference for c in candidates] == [
            "https://toonstream.one/home/?trembed=0&trid=7",
            "https://cdn.example/direct.mp4",
            "https://toonstream.one/home/?trembed=3&trid=7",
        ]
        assert [c.label for c in candidates] == ["Server Hindi", "Server English", "Server 3"]
        assert [c.ordinal for c in candidates] == [0, 1, 2]

    def test_frames_outside_player_ignored(self) -> None:
        candidates = EpisodePageProvider.parse_candidates(EPISODE_HTML)
        assert all("ads.example" not in c.reference for c in candidates)

    def test_no_player_returns_empty(self) -> None:
        assert EpisodePageProvider.parse_candidates("<html><body><p>404</p></body></html>") == []

    def test_repeated_reference_keeps_first_position(self) -> None:
        html = (
            '<div class="video-player">'
            '<div id="options-0"><iframe src="https://a.example/1"></iframe></div>'
            '<div id="options-1"><iframe src="https://a.example/1"></iframe></div>'
            '<div id="options-2"><iframe src="https://b.example/2"></iframe></div>'
            "</div>"
        )
        candidates = EpisodePageProvider.parse_candidates(html)
        assert [c.reference for c in candidates] == ["https://a.example/1", "https://b.example/2"]
        assert [c.label for c in candidates] == ["Server 1", "Server 2"]


class TestExtractCandidates:
    @pytest.fixture()
    def settings(self) -> Settings:
        return Settings(_env_file=None, upstream_retries=3)

    @pytest.mark.asyncio
    async def test_fetches_episode_url(self, settings: Settings) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text=EPISODE_HTML)

        async with _client(handler) as client:
            provider = EpisodePageProvider(client, settings, retry_delay=0)
            candidates = await provider.extract_candidates("show-1x1")

        assert seen == ["https://toonstream.one/episode/show-1x1/"]
        assert len(candidates) == 3
        assert provider.get_provider_name() == "episode_page"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, settings: Settings) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(404, text="missing")

        async with _client(handler) as client:
            provider = EpisodePageProvider(client, settings, retry_delay=0)
            with pytest.raises(NotFoundError):
                await provider.extract_candidates("nope")
        assert calls == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self, settings: Settings) -> None:
        statuses = iter([503, 502, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            return httpx.Response(status, text=EPISODE_HTML if status == 200 else "busy")

        async with _client(handler) as client:
            provider = EpisodePageProvider(client, settings, retry_delay=0)
            candidates = await provider.extract_candidates("show-1x1")
        assert len(candidates) == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, settings: Settings) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            provider = EpisodePageProvider(client, settings, retry_delay=0)
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await provider.extract_candidates("show-1x1")
        assert calls == 3
        assert exc_info.value.provider_name == "episode_page"

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, settings: Settings) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(403, text="forbidden")

        async with _client(handler) as client:
            provider = EpisodePageProvider(client, settings, retry_delay=0)
            with pytest.raises(UpstreamUnavailableError):
                await provider.extract_candidates("show-1x1")
        assert calls == 1
