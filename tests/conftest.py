"""Shared pytest fixtures for the source resolver test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from src.config.settings import Settings
from src.models.sources import CandidateSource
from src.services.embed_resolver import EmbedResolver, ResolverConfig

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]

GATEWAY = "https://toonstream.one/home/?trembed="


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def gateway(n: int) -> str:
    """Return a gateway reference recognised by the default signatures."""
    return f"{GATEWAY}{n}"


def candidate(reference: str, label: str, ordinal: int) -> CandidateSource:
    return CandidateSource(reference=reference, label=label, ordinal=ordinal)


def iframe_page(address: str, attr: str = "src") -> str:
    return f'<html><body><iframe {attr}="{address}" allowfullscreen></iframe></body></html>'


class GatewayServer:
    """Scripted embed gateway served through ``httpx.MockTransport``.

    Each gateway URL maps to ``(delay, status, body)``.  Requests are counted
    and attempts cancelled mid-flight are recorded, so tests can assert both
    call counts and that race losers were abandoned.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[float, int, str]] = {}
        self.requests: list[str] = []
        self.cancelled: list[str] = []

    def serve(self, url: str, body: str, *, delay: float = 0.0, status: int = 200) -> None:
        self.routes[url] = (delay, status, body)

    def hang(self, url: str, delay: float = 30.0) -> None:
        self.routes[url] = (delay, 200, "")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        delay, status, body = self.routes.get(url, (0.0, 404, "not found"))
        try:
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(url)
            raise
        return httpx.Response(status, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def resolver_config() -> ResolverConfig:
    """Default rules with short deadlines so timeout tests stay fast."""
    return ResolverConfig(
        exhaustive_fetch_timeout=0.3,
        race_fetch_timeout=0.3,
        race_concurrency=5,
    )


@pytest.fixture
def gateway_server() -> GatewayServer:
    return GatewayServer()


@pytest_asyncio.fixture
async def resolver(gateway_server: GatewayServer, resolver_config: ResolverConfig):
    """EmbedResolver wired to the scripted gateway."""
    client = gateway_server.client()
    yield EmbedResolver(http_client=client, config=resolver_config)
    await client.aclose()
