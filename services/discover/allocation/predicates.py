"""
Slot selection predicates.

Small composable filters over ScoredCandidate, one rule each, so every
slot's eligibility rule can be tested on its own.
"""

from __future__ import annotations

from typing import Optional

from services.discover.allocation.context import Predicate
from services.discover.taste.types import ScoredCandidate

# Stretch pick thresholds
STRETCH_MAX_OVERALL = 60
STRETCH_STRONG_DOMAIN = 75
STRETCH_WEAK_DOMAIN = 40


def has_top_dimension(domain: str) -> Predicate:
    def _pred(c: ScoredCandidate) -> bool:
        return c.top_dimension == domain
    return _pred


def covers_both_sides(c: ScoredCandidate) -> bool:
    """True when the candidate speaks to both sides of a user contradiction."""
    return c.contradiction_relevance is not None and c.contradiction_relevance.covers_both_sides


def is_stretch(c: ScoredCandidate) -> bool:
    """
    A moderate overall match that is very strong in one domain and weak in
    another: overall <= 60, some domain >= 75, some domain <= 40.
    """
    if c.overall_score > STRETCH_MAX_OVERALL:
        return False
    values = c.domain_breakdown.values()
    return (
        any(v >= STRETCH_STRONG_DOMAIN for v in values)
        and any(v <= STRETCH_WEAK_DOMAIN for v in values)
    )


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    """Conjunction of predicates; ``None`` entries are ignored."""
    active = [p for p in predicates if p is not None]

    def _pred(c: ScoredCandidate) -> bool:
        return all(p(c) for p in active)
    return _pred
