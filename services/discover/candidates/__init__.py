"""
Candidate store — enriched property snapshots behind a TTL cache.

Usage:
    from services.discover.candidates import CandidateStore, build_candidate_store
"""

from __future__ import annotations

from services.discover.candidates.cache import (
    DEFAULT_TTL_SECONDS,
    CandidateCache,
    InMemoryCandidateCache,
    RedisCandidateCache,
    build_candidate_cache,
)
from services.discover.candidates.source import (
    CandidateSource,
    PostgresCandidateSource,
    row_to_candidate,
)
from services.discover.candidates.store import CandidateStore, build_candidate_store

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CandidateCache",
    "CandidateSource",
    "CandidateStore",
    "InMemoryCandidateCache",
    "PostgresCandidateSource",
    "RedisCandidateCache",
    "build_candidate_cache",
    "build_candidate_store",
    "row_to_candidate",
]
