"""
CandidateStore — the pool of matchable properties behind a TTL cache.

The enrichment pipeline owner must call invalidate() whenever it has
written new PlaceIntelligence data; otherwise readers see the previous
snapshot for up to the cache TTL.
"""

from __future__ import annotations

import logging
from typing import Any

from services.discover.candidates.cache import CandidateCache, build_candidate_cache
from services.discover.candidates.source import CandidateSource, PostgresCandidateSource
from services.discover.taste.types import CandidateProperty

logger = logging.getLogger(__name__)


class CandidateStore:
    """
    Usage:
        store = CandidateStore(PostgresCandidateSource(pool), InMemoryCandidateCache())
        candidates = await store.fetch_candidates()

        # After an enrichment run completes:
        await store.invalidate()
    """

    def __init__(self, source: CandidateSource, cache: CandidateCache) -> None:
        self._source = source
        self._cache = cache

    async def fetch_candidates(self) -> list[CandidateProperty]:
        """Enriched candidates with at least one signal. Source errors propagate."""
        return await self._cache.get_or_fetch(self._source.fetch_candidates)

    async def invalidate(self) -> None:
        await self._cache.invalidate()


def build_candidate_store(settings: Any, pool: Any, redis: Any = None) -> CandidateStore:
    """Wire a Postgres-backed store with the cache backend named in settings."""
    return CandidateStore(
        source=PostgresCandidateSource(pool),
        cache=build_candidate_cache(settings, redis),
    )
