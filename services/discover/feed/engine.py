"""
Discover feed engine — one user's grounded feed, end to end.

Flow:
  1. Fetch the candidate pool (cached; fetch errors propagate)
  2. Score every candidate against the user's taste profile
  3. Blend in vector similarity when the user has a stored taste vector
  4. Gate: fewer than MIN_CANDIDATES_FOR_FEED scored -> no grounded feed
  5. Allocate the ranked list into the eight feed slots

The result carries generation_method so the caller can switch to its
non-grounded path when the pool is too small, and vector_enabled so the
scoring path shows up in telemetry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from services.discover.allocation import AllocatedFeed, allocate_slots, has_enough_candidates
from services.discover.allocation.allocator import MIN_CANDIDATES_FOR_FEED
from services.discover.candidates import CandidateStore, build_candidate_store
from services.discover.feed.context import build_context_label
from services.discover.scoring import score_all_candidates
from services.discover.taste.types import UserTasteProfile
from services.discover.vectors.blender import DEFAULT_TOP_K, apply_vector_blend
from services.discover.vectors.index import QdrantVectorIndex, VectorIndex
from services.discover.vectors.user_vectors import UserVectorStore

logger = logging.getLogger(__name__)

METHOD_GROUNDED = "grounded"
METHOD_INSUFFICIENT = "insufficient_candidates"


@dataclass
class FeedGenerationResult:
    feed: Optional[AllocatedFeed]
    generation_method: str           # "grounded" | "insufficient_candidates"
    vector_enabled: bool
    candidates_scored: int
    vector_matches: int
    latency_ms: int


class DiscoverFeedEngine:
    """
    Orchestrates candidate store -> matcher -> blender -> gate -> allocator.

    Injected dependencies keep it testable without Postgres or Qdrant.
    """

    def __init__(
        self,
        candidate_store: CandidateStore,
        vector_index: Optional[VectorIndex] = None,
        user_vector_store: Optional[UserVectorStore] = None,
        top_k: int = DEFAULT_TOP_K,
        min_candidates: int = MIN_CANDIDATES_FOR_FEED,
    ) -> None:
        self._candidates = candidate_store
        self._index = vector_index
        self._user_vectors = user_vector_store
        self._top_k = top_k
        self._min_candidates = min_candidates

    async def _load_user_vector(self, user_id: str) -> Optional[list[float]]:
        if self._user_vectors is None:
            return None
        try:
            return await self._user_vectors.get_user_vector(user_id)
        except Exception:
            logger.warning("User vector load failed for user=%s; scoring without vectors", user_id, exc_info=True)
            return None

    async def generate(
        self,
        user_id: str,
        profile: UserTasteProfile,
        today: Optional[date] = None,
    ) -> FeedGenerationResult:
        started = time.monotonic()

        candidates = await self._candidates.fetch_candidates()

        scored = score_all_candidates(
            candidates,
            profile.taste_profile,
            profile.micro_signals,
            profile.contradictions,
        )

        user_vector = await self._load_user_vector(user_id)
        blend = await apply_vector_blend(scored, user_vector, self._index, top_k=self._top_k)
        ranked = blend.candidates

        if not has_enough_candidates(len(ranked), self._min_candidates):
            latency_ms = int((time.monotonic() - started) * 1000)
            logger.info(
                "Discover feed: user=%s only %d candidates (need %d), switching to non-grounded path",
                user_id,
                len(ranked),
                self._min_candidates,
            )
            return FeedGenerationResult(
                feed=None,
                generation_method=METHOD_INSUFFICIENT,
                vector_enabled=blend.vector_enabled,
                candidates_scored=len(ranked),
                vector_matches=blend.matched_count,
                latency_ms=latency_ms,
            )

        feed = allocate_slots(
            ranked,
            profile.micro_signals,
            profile.contradictions,
            context_label=build_context_label(profile.life_context, today),
        )

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Discover feed: user=%s scored=%d vector_enabled=%s vector_matches=%d deep_match=%s latency_ms=%d",
            user_id,
            len(ranked),
            blend.vector_enabled,
            blend.matched_count,
            feed.deep_match.candidate.id,
            latency_ms,
        )

        return FeedGenerationResult(
            feed=feed,
            generation_method=METHOD_GROUNDED,
            vector_enabled=blend.vector_enabled,
            candidates_scored=len(ranked),
            vector_matches=blend.matched_count,
            latency_ms=latency_ms,
        )


def build_feed_engine(settings: Any, pool: Any, redis: Any = None) -> DiscoverFeedEngine:
    """Wire the production engine: Postgres + cache + Qdrant + pgvector user vectors."""
    return DiscoverFeedEngine(
        candidate_store=build_candidate_store(settings, pool, redis),
        vector_index=QdrantVectorIndex.from_settings(settings),
        user_vector_store=UserVectorStore(pool),
        top_k=settings.vector_top_k,
        min_candidates=settings.min_candidates_for_feed,
    )
