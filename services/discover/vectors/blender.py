"""
Vector blender — refine signal scores with learned-vector similarity.

When the user has a stored taste vector, the top-k nearest properties get

    blended = round(0.6 * vector_score + 0.4 * signal_score)

and the blended value REPLACES overall_score for all downstream ranking
and allocation. A high vector match can therefore lift a weak signal match
all the way to Deep Match. Candidates without a vector match keep their
signal score (blended_score == signal_score).

No vector, no index, or a failed index query -> vector_enabled=False and
the signal-only ranking passes through untouched.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from services.discover.taste.match import round_half_up
from services.discover.taste.types import ScoredCandidate
from services.discover.vectors.index import VectorIndex

logger = logging.getLogger(__name__)

VECTOR_WEIGHT = 0.6
DEFAULT_TOP_K = 100


@dataclass
class VectorBlendResult:
    candidates: list[ScoredCandidate]
    vector_enabled: bool
    matched_count: int = 0


def blend_scores(
    scored: Sequence[ScoredCandidate],
    vector_scores: Mapping[str, int],
    vector_weight: float = VECTOR_WEIGHT,
) -> list[ScoredCandidate]:
    """
    Apply vector scores to a scored list and re-rank.

    Returns new ScoredCandidate objects, sorted (stable) by overall_score
    descending. The input list is not mutated.
    """
    blended: list[ScoredCandidate] = []
    for c in scored:
        vector_score = vector_scores.get(c.id)
        if vector_score is None:
            blended.append(dataclasses.replace(c, blended_score=c.signal_score))
            continue
        value = round_half_up(vector_weight * vector_score + (1 - vector_weight) * c.signal_score)
        blended.append(dataclasses.replace(
            c,
            vector_score=vector_score,
            blended_score=value,
            overall_score=value,
        ))

    blended.sort(key=lambda s: s.overall_score, reverse=True)
    return blended


async def apply_vector_blend(
    scored: Sequence[ScoredCandidate],
    user_vector: Sequence[float] | None,
    index: VectorIndex | None,
    top_k: int = DEFAULT_TOP_K,
) -> VectorBlendResult:
    """Blend vector similarity into ``scored`` when a user vector exists."""
    if user_vector is None or index is None:
        logger.debug("Vector blend skipped: user_vector=%s index=%s", user_vector is not None, index is not None)
        return VectorBlendResult(candidates=list(scored), vector_enabled=False)

    try:
        matches = await index.find_similar(user_vector, top_k)
    except Exception:
        logger.exception("Vector search failed; using signal-only scores")
        return VectorBlendResult(candidates=list(scored), vector_enabled=False)

    vector_scores = {m.id: m.score for m in matches}
    candidates = blend_scores(scored, vector_scores)
    matched = sum(1 for c in candidates if c.vector_score is not None)

    logger.info(
        "Vector blend applied: %d/%d candidates matched (top_k=%d)",
        matched,
        len(candidates),
        top_k,
    )
    return VectorBlendResult(candidates=candidates, vector_enabled=True, matched_count=matched)
