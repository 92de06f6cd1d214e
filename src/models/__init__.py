"""Domain models: re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import ResolvedSource``) instead of the submodule.

    - sources.py: candidate, resolved and aggregated playback sources
"""

from __future__ import annotations

from src.models.sources import (
    BestSource,
    CandidateSource,
    FailureKind,
    ResolutionResult,
    ResolvedSource,
    SourceKind,
    SourceStatus,
)

__all__ = [
    "BestSource",
    "CandidateSource",
    "FailureKind",
    "ResolutionResult",
    "ResolvedSource",
    "SourceKind",
    "SourceStatus",
]
