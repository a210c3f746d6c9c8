"""
Taste match — how well a property's signals fit a user's taste profile.

Maps pipeline dimensions to the six app domains and produces a per-domain
breakdown plus an overall score weighted by the user's domain affinities.

Scoring
-------
Per domain (no signals -> neutral 50):

    avg_conf  = mean(min(confidence + 0.05 if corroborated, 1.0))
    density   = min(n_signals / 20, 1.0)
    strength  = avg_conf * 0.6 + density * 0.4
    breakdown = round(strength * 100)

Each anti-signal then subtracts round(confidence * 5) from its domain (floor 0).

    overall = round(sum(w_d * breakdown_d) / sum(w_d))

where w_d is the user's affinity for the domain (missing or zero -> 50).
All rounding is half-up so scores match the values stored upstream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from services.discover.taste.types import ALL_DOMAINS, AntiSignal, Signal, domain_for

NEUTRAL_DOMAIN_SCORE = 50
DEFAULT_AFFINITY = 50.0

_CORROBORATION_BOOST = 0.05
_FULL_DENSITY_SIGNALS = 20
_CONFIDENCE_WEIGHT = 0.6
_DENSITY_WEIGHT = 0.4
_ANTI_SIGNAL_PENALTY = 5


@dataclass(frozen=True)
class MatchResult:
    overall_score: int
    breakdown: dict[str, int]
    top_dimension: str


def round_half_up(value: float) -> int:
    """Round to the nearest int, .5 away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def compute_match_from_signals(
    signals: Iterable[Signal],
    anti_signals: Iterable[AntiSignal],
    user_profile: Mapping[str, float],
) -> MatchResult:
    """Score a property's signals against a 6-domain taste profile."""
    by_domain: dict[str, list[Signal]] = {d: [] for d in ALL_DOMAINS}
    for sig in signals:
        domain = domain_for(sig.dimension)
        if domain:
            by_domain[domain].append(sig)

    breakdown: dict[str, int] = {}
    for domain in ALL_DOMAINS:
        domain_signals = by_domain[domain]
        if not domain_signals:
            breakdown[domain] = NEUTRAL_DOMAIN_SCORE
            continue

        total_conf = sum(
            min(s.confidence + (_CORROBORATION_BOOST if s.corroborated else 0.0), 1.0)
            for s in domain_signals
        )
        avg_confidence = total_conf / len(domain_signals)
        density = min(len(domain_signals) / _FULL_DENSITY_SIGNALS, 1.0)
        strength = avg_confidence * _CONFIDENCE_WEIGHT + density * _DENSITY_WEIGHT
        breakdown[domain] = round_half_up(strength * 100)

    for anti in anti_signals:
        domain = domain_for(anti.dimension)
        if domain:
            penalty = round_half_up(anti.confidence * _ANTI_SIGNAL_PENALTY)
            breakdown[domain] = max(0, breakdown[domain] - penalty)

    weighted_sum = 0.0
    total_weight = 0.0
    for domain in ALL_DOMAINS:
        weight = max(0.0, float(user_profile.get(domain) or DEFAULT_AFFINITY))
        weighted_sum += weight * breakdown[domain]
        total_weight += weight
    overall = round_half_up(weighted_sum / total_weight) if total_weight > 0 else NEUTRAL_DOMAIN_SCORE

    top_dimension = ALL_DOMAINS[0]
    for domain in ALL_DOMAINS[1:]:
        if breakdown[domain] > breakdown[top_dimension]:
            top_dimension = domain

    return MatchResult(
        overall_score=max(0, min(100, overall)),
        breakdown=breakdown,
        top_dimension=top_dimension,
    )
