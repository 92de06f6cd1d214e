"""Candidate providers.

EpisodePageProvider scrapes the upstream episode page and lists its player
frames.  Any other source of candidates (an upstream JSON API, a static
fixture) can implement ICandidateProvider instead.
"""

from src.providers.candidates.episode_page_provider import EpisodePageProvider

__all__ = ["EpisodePageProvider"]
