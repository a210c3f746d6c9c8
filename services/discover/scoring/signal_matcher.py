"""
Signal matcher — score enriched candidates against one user's taste.

For each candidate this produces:
  - the domain match (overall score, per-domain breakdown, top dimension)
  - the top 5 property signals that overlap the user's micro-signals,
    used downstream as the "because you ..." reasons and thread labels
  - the user contradiction this property speaks to, if any

Keyword matching
----------------
Micro-signal phrases are lowercased and split on whitespace; only words
longer than 3 characters count. A property signal's relevance is

    relevance = (#signal words in the user keyword set) * confidence

Contradiction relevance uses substring containment against the joined
signal text rather than word equality, so "minimalist" matches
"minimalist-leaning".

Design notes
------------
- Pure functions: identical inputs always produce equal outputs.
- Sorting is stable; ties keep the candidate's original signal order.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from services.discover.taste.match import compute_match_from_signals
from services.discover.taste.types import (
    CandidateProperty,
    Contradiction,
    ContradictionRelevance,
    ScoredCandidate,
    Signal,
)

logger = logging.getLogger(__name__)

TOP_SIGNAL_LIMIT = 5
MIN_KEYWORD_LENGTH = 4  # words of length > 3
BOTH_SIDES_BONUS = 5


# ---------------------------------------------------------------------------
# Tokenisation
# ---------------------------------------------------------------------------


def tokenize(text: str) -> list[str]:
    """Lowercase whitespace tokens longer than 3 characters, duplicates kept."""
    return [w for w in text.lower().split() if len(w) >= MIN_KEYWORD_LENGTH]


def user_keywords(micro_signals: Mapping[str, Sequence[str]]) -> frozenset[str]:
    """Flatten every micro-signal phrase into one keyword set."""
    keywords: set[str] = set()
    for phrases in micro_signals.values():
        for phrase in phrases:
            keywords.update(tokenize(phrase))
    return frozenset(keywords)


# ---------------------------------------------------------------------------
# Signal relevance
# ---------------------------------------------------------------------------


def find_top_matching_signals(
    property_signals: Sequence[Signal],
    micro_signals: Mapping[str, Sequence[str]],
    limit: int = TOP_SIGNAL_LIMIT,
) -> tuple[Signal, ...]:
    """Return the ``limit`` property signals that best overlap the user's micro-signals."""
    keywords = user_keywords(micro_signals)

    scored: list[tuple[float, Signal]] = []
    for sig in property_signals:
        overlap = sum(1 for w in tokenize(sig.text) if w in keywords)
        scored.append((overlap * sig.confidence, sig))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return tuple(sig for _, sig in scored[:limit])


def find_contradiction_relevance(
    property_signals: Sequence[Signal],
    contradictions: Iterable[Contradiction],
) -> ContradictionRelevance | None:
    """
    Find the user contradiction this property speaks to most.

    A property covers both sides when its signals mention something from
    the stated preference AND something from the revealed one. Covering
    both sides outweighs any one-sided overlap.
    """
    contradictions = list(contradictions)
    if not contradictions or not property_signals:
        return None

    signal_text = " ".join(s.text.lower() for s in property_signals)

    best: ContradictionRelevance | None = None
    best_score = 0
    for contradiction in contradictions:
        stated_overlap = sum(1 for w in tokenize(contradiction.stated) if w in signal_text)
        revealed_overlap = sum(1 for w in tokenize(contradiction.revealed) if w in signal_text)

        covers_both_sides = stated_overlap > 0 and revealed_overlap > 0
        score = stated_overlap + revealed_overlap + (BOTH_SIDES_BONUS if covers_both_sides else 0)

        if score > best_score:
            best_score = score
            best = ContradictionRelevance(
                contradiction=contradiction,
                covers_both_sides=covers_both_sides,
            )

    return best if best_score > 0 else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_candidate(
    candidate: CandidateProperty,
    user_profile: Mapping[str, float],
    user_micro_signals: Mapping[str, Sequence[str]],
    user_contradictions: Sequence[Contradiction],
) -> ScoredCandidate:
    """Score a single candidate against a user's full taste profile."""
    match = compute_match_from_signals(candidate.signals, candidate.anti_signals, user_profile)

    return ScoredCandidate(
        candidate=candidate,
        overall_score=match.overall_score,
        signal_score=match.overall_score,
        domain_breakdown=dict(match.breakdown),
        top_dimension=match.top_dimension,
        top_matching_signals=find_top_matching_signals(candidate.signals, user_micro_signals),
        contradiction_relevance=find_contradiction_relevance(candidate.signals, user_contradictions),
    )


def score_all_candidates(
    candidates: Iterable[CandidateProperty],
    user_profile: Mapping[str, float],
    user_micro_signals: Mapping[str, Sequence[str]],
    user_contradictions: Sequence[Contradiction],
) -> list[ScoredCandidate]:
    """Score every candidate; returns them sorted by overall_score descending."""
    scored = [
        score_candidate(c, user_profile, user_micro_signals, user_contradictions)
        for c in candidates
    ]
    scored.sort(key=lambda s: s.overall_score, reverse=True)

    logger.debug(
        "Scored %d candidates (top=%s)",
        len(scored),
        scored[0].overall_score if scored else None,
    )
    return scored
