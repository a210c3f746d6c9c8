"""
Scoring package — signal-based candidate scoring.

Usage:
    from services.discover.scoring import score_all_candidates
"""

from __future__ import annotations

from services.discover.scoring.signal_matcher import (
    TOP_SIGNAL_LIMIT,
    find_contradiction_relevance,
    find_top_matching_signals,
    score_all_candidates,
    score_candidate,
    tokenize,
)

__all__ = [
    "TOP_SIGNAL_LIMIT",
    "find_contradiction_relevance",
    "find_top_matching_signals",
    "score_all_candidates",
    "score_candidate",
    "tokenize",
]
