"""Abstract base class for candidate-source providers.

A candidate provider turns a media identifier into the ordered list of raw
playback references shown on an upstream page.  It is the boundary between
the resolution engine and page scraping: the engine never looks at markup,
it only consumes :class:`~src.models.sources.CandidateSource` values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.sources import CandidateSource


class ICandidateProvider(ABC):
    """Contract for services that list candidate sources for an identifier.

    Implementations must preserve upstream presentation order and number
    candidates from 0 in the ``ordinal`` field.
    """

    @abstractmethod
    async def extract_candidates(self, identifier: str) -> list[CandidateSource]:
        """Return the candidate sources for *identifier*.

        Parameters
        ----------
        identifier:
            The media identifier (episode slug).

        Returns
        -------
        list[CandidateSource]
            Zero or more candidates in page order.

        Raises
        ------
        src.utils.errors.NotFoundError
            If the upstream has no page for *identifier*.
        src.utils.errors.UpstreamUnavailableError
            If the upstream page could not be fetched.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider (used in logs and errors)."""
