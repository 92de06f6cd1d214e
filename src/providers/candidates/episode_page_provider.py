"""Episode-page candidate provider using httpx and BeautifulSoup.

Fetches the upstream episode page for an identifier and lists the player
iframes it embeds, in page order, as :class:`CandidateSource` values.  The
player tabs above the frames give each candidate its label.

Transport errors and 5xx/429 answers are retried with a linear backoff; a
404 means the identifier does not exist upstream.
"""

from __future__ import annotations

import asyncio

import httpx
from bs4 import BeautifulSoup, Tag

from src.config.settings import Settings
from src.interfaces.candidate_provider import ICandidateProvider
from src.models.sources import CandidateSource
from src.utils.errors import NotFoundError, UpstreamUnavailableError
from src.utils.logging import get_logger

_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
_PLAYER_FRAME_SELECTORS = (
    ".video-player iframe",
    "[id^=options-] iframe",
)
_PLAYER_TAB_SELECTOR = ".aa-tbs-video a"


class EpisodePageProvider(ICandidateProvider):
    """Candidate provider that scrapes the upstream episode page.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``; injected for testability.
    settings:
        Supplies the upstream URL template, timeout, retry count and
        User-Agent.
    retry_delay:
        Base delay in seconds; attempt *n* waits ``retry_delay * n``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        retry_delay: float = 1.0,
    ) -> None:
        self._http = http_client
        self._settings = settings
        self._retry_delay = retry_delay
        self._logger = get_logger(__name__)

    # -- ICandidateProvider implementation -------------------------------------

    async def extract_candidates(self, identifier: str) -> list[CandidateSource]:
        url = self._settings.episode_url(identifier)
        html = await self._fetch_page(url)
        candidates = self.parse_candidates(html)
        self._logger.info(
            "episode_candidates_extracted",
            identifier=identifier,
            url=url,
            count=len(candidates),
        )
        return candidates

    def get_provider_name(self) -> str:
        return "episode_page"

    # -- Fetching --------------------------------------------------------------

    async def _fetch_page(self, url: str) -> str:
        headers = {
            "User-Agent": self._settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Referer": f"{self._settings.upstream_base_url.rstrip('/')}/",
        }
        attempts = self._settings.upstream_retries
        last_error = "no attempt made"

        for attempt in range(1, attempts + 1):
            try:
                response = await self._http.get(
                    url, headers=headers, timeout=self._settings.upstream_timeout
                )
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                self._logger.warning(
                    "episode_page_request_failed", url=url, attempt=attempt, error=last_error
                )
            else:
                if response.status_code == 404:
                    raise NotFoundError(
                        message=f"Episode page not found: {url}",
                        provider_name=self.get_provider_name(),
                    )
                if response.status_code not in _RETRY_STATUSES:
                    try:
                        response.raise_for_status()
                    except httpx.HTTPStatusError as exc:
                        raise UpstreamUnavailableError(
                            message=f"HTTP {response.status_code} for {url}",
                            provider_name=self.get_provider_name(),
                        ) from exc
                    return response.text
                last_error = f"HTTP {response.status_code}"
                self._logger.warning(
                    "episode_page_http_error", url=url, attempt=attempt, status=response.status_code
                )

            if attempt < attempts:
                await asyncio.sleep(self._retry_delay * attempt)

        raise UpstreamUnavailableError(
            message=f"Could not fetch {url} after {attempts} attempt(s): {last_error}",
            provider_name=self.get_provider_name(),
        )

    # -- Parsing ---------------------------------------------------------------

    @staticmethod
    def parse_candidates(html: str) -> list[CandidateSource]:
        """Return the player frames of an episode page as candidates.

        Frames are taken in document order; a reference seen twice keeps its
        first position.  Labels come from the player tab at the same index,
        falling back to ``Server <n>``.
        """
        soup = BeautifulSoup(html, "html.parser")

        frames: list[Tag] = []
        collected: set[int] = set()
        for selector in _PLAYER_FRAME_SELECTORS:
            for frame in soup.select(selector):
                # Tag equality is structural; dedupe on identity instead.
                if id(frame) not in collected:
                    collected.add(id(frame))
                    frames.append(frame)
        # select() returns per-selector order; restore document order.
        position = {id(el): idx for idx, el in enumerate(soup.find_all("iframe"))}
        frames.sort(key=lambda el: position.get(id(el), 0))

        tab_labels = [tab.get_text(" ", strip=True) for tab in soup.select(_PLAYER_TAB_SELECTOR)]

        candidates: list[CandidateSource] = []
        seen: set[str] = set()
        for frame_idx, frame in enumerate(frames):
            reference = (frame.get("data-src") or frame.get("src") or "").strip()
            if not reference or reference == "about:blank" or reference in seen:
                continue
            seen.add(reference)

            label = ""
            if frame_idx < len(tab_labels):
                label = tab_labels[frame_idx]
            ordinal = len(candidates)
            candidates.append(
                CandidateSource(
                    reference=reference,
                    label=label or f"Server {ordinal + 1}",
                    ordinal=ordinal,
                )
            )
        return candidates
