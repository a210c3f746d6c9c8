"""
Tests for vectors/blender.py.

Covers:
  - Blend formula and the overall_score override
  - Unmatched candidates keep their signal score
  - Re-ranking after the blend
  - No vector / no index / index failure -> vector_enabled False
"""

from __future__ import annotations

import pytest
from unittest.mock import AsyncMock

from services.discover.vectors.blender import apply_vector_blend, blend_scores
from services.discover.vectors.index import VectorMatch
from services.discover.tests.conftest import make_scored


def _index(matches):
    index = AsyncMock()
    index.find_similar = AsyncMock(return_value=matches)
    return index


# ---------------------------------------------------------------------------
# blend_scores
# ---------------------------------------------------------------------------

class TestBlendScores:
    def test_matched_candidate_blends(self):
        [result] = blend_scores([make_scored("a", score=52)], {"a": 85})
        # 0.6 * 85 + 0.4 * 52 = 71.8
        assert result.blended_score == 72
        assert result.overall_score == 72
        assert result.vector_score == 85
        assert result.signal_score == 52

    def test_unmatched_candidate_keeps_signal_score(self):
        [result] = blend_scores([make_scored("a", score=64)], {"other": 99})
        assert result.blended_score == 64
        assert result.overall_score == 64
        assert result.vector_score is None

    def test_reranks_after_blend(self):
        scored = [make_scored("a", score=80), make_scored("b", score=70)]
        result = blend_scores(scored, {"b": 100})
        # b: 0.6 * 100 + 0.4 * 70 = 88
        assert [c.id for c in result] == ["b", "a"]

    def test_vector_override_can_lift_weak_signal_match(self):
        scored = [make_scored("strong", score=75), make_scored("weak", score=10)]
        result = blend_scores(scored, {"weak": 100, "strong": 40})
        # weak: 60 + 4 = 64; strong: 24 + 30 = 54
        assert result[0].id == "weak"

    def test_input_not_mutated(self):
        scored = [make_scored("a", score=50)]
        blend_scores(scored, {"a": 100})
        assert scored[0].overall_score == 50
        assert scored[0].blended_score is None

    def test_blend_within_rounding_of_formula(self):
        scored = [make_scored(f"c{i}", score=s) for i, s in enumerate([0, 17, 33, 58, 91, 100])]
        vectors = {f"c{i}": v for i, v in enumerate([100, 3, 47, 62, 8, 100])}
        for c in blend_scores(scored, vectors):
            expected = 0.6 * c.vector_score + 0.4 * c.signal_score
            assert abs(c.blended_score - expected) <= 1
            assert 0 <= c.overall_score <= 100


# ---------------------------------------------------------------------------
# apply_vector_blend
# ---------------------------------------------------------------------------

class TestApplyVectorBlend:
    @pytest.mark.asyncio
    async def test_scenario_d_no_user_vector(self):
        scored = [make_scored(f"c{i}", score=90 - i) for i in range(5)]
        index = _index([VectorMatch("c4", 0.99, 99)])

        result = await apply_vector_blend(scored, None, index)

        assert result.vector_enabled is False
        assert result.matched_count == 0
        assert all(c.overall_score == c.signal_score for c in result.candidates)
        assert [c.id for c in result.candidates] == [c.id for c in scored]
        index.find_similar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_index(self):
        result = await apply_vector_blend([make_scored("a")], [0.1] * 32, None)
        assert result.vector_enabled is False

    @pytest.mark.asyncio
    async def test_index_failure_degrades(self):
        index = AsyncMock()
        index.find_similar = AsyncMock(side_effect=ConnectionError("qdrant down"))
        scored = [make_scored("a", score=70)]

        result = await apply_vector_blend(scored, [0.1] * 32, index)

        assert result.vector_enabled is False
        assert result.candidates[0].overall_score == 70

    @pytest.mark.asyncio
    async def test_blend_applied_with_top_k(self):
        scored = [make_scored("a", score=80), make_scored("b", score=70), make_scored("c", score=60)]
        index = _index([VectorMatch("c", 0.95, 95), VectorMatch("zzz", 0.9, 90)])

        result = await apply_vector_blend(scored, [0.1] * 32, index, top_k=100)

        index.find_similar.assert_awaited_once_with([0.1] * 32, 100)
        assert result.vector_enabled is True
        assert result.matched_count == 1
        # c: 0.6 * 95 + 0.4 * 60 = 81
        assert [c.id for c in result.candidates] == ["c", "a", "b"]
        assert result.candidates[1].blended_score == 80
