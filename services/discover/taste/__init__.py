"""
services.discover.taste — taste types and the domain relevance model.

Usage:
    from services.discover.taste import CandidateProperty, compute_match_from_signals
"""

from __future__ import annotations

from services.discover.taste.match import MatchResult, compute_match_from_signals, round_half_up
from services.discover.taste.types import (
    ALL_DOMAINS,
    DIMENSION_TO_DOMAIN,
    RADAR_AXIS_TO_DOMAIN,
    AntiSignal,
    CandidateProperty,
    Contradiction,
    ContradictionRelevance,
    LifeContext,
    ScoredCandidate,
    Signal,
    UserTasteProfile,
    domain_for,
    domain_for_axis,
)

__all__ = [
    "ALL_DOMAINS",
    "DIMENSION_TO_DOMAIN",
    "RADAR_AXIS_TO_DOMAIN",
    "AntiSignal",
    "CandidateProperty",
    "Contradiction",
    "ContradictionRelevance",
    "LifeContext",
    "MatchResult",
    "ScoredCandidate",
    "Signal",
    "UserTasteProfile",
    "compute_match_from_signals",
    "domain_for",
    "domain_for_axis",
    "round_half_up",
]
