"""
Canonical taste and candidate types.

These are the types every layer of the discover feed passes around:
the candidate store produces CandidateProperty, the signal matcher turns
them into ScoredCandidate, and the allocator places ScoredCandidates into
feed slots. CandidateProperty is owned by the enrichment pipeline and is
never mutated here; scoring builds new objects instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Canonical domain order. Mood boards and top-dimension tie-breaks follow it.
ALL_DOMAINS: tuple[str, ...] = ("Design", "Character", "Service", "Food", "Location", "Wellness")

# Pipeline dimension names -> app domains.
DIMENSION_TO_DOMAIN: dict[str, str] = {
    "Design Language": "Design",
    "Character & Identity": "Character",
    "Service Philosophy": "Service",
    "Food & Drink Identity": "Food",
    "Location & Context": "Location",
    "Wellness & Body": "Wellness",
    # Legacy dimension names (older pipeline runs)
    "Design & Aesthetic": "Design",
    "Scale & Intimacy": "Character",
    "Culture & Character": "Character",
    "Food & Drink": "Food",
    "Location & Setting": "Location",
    "Rhythm & Pace": "Character",
    # Domains map to themselves
    **{d: d for d in ALL_DOMAINS},
}


# Radar axis labels seen in stored profiles (lowercased) -> domains
RADAR_AXIS_TO_DOMAIN: dict[str, str] = {
    "design": "Design", "design language": "Design",
    "character": "Character", "character & identity": "Character", "scale & intimacy": "Character",
    "service": "Service", "service philosophy": "Service",
    "food": "Food", "food & drink": "Food", "food & drink identity": "Food",
    "location": "Location", "location & context": "Location", "location & setting": "Location",
    "wellness": "Wellness", "wellness & body": "Wellness",
}


def domain_for(dimension: str | None) -> str | None:
    """Map a pipeline dimension (or a bare domain name) to its domain, or None."""
    if not dimension:
        return None
    return DIMENSION_TO_DOMAIN.get(dimension)


def domain_for_axis(axis: Any) -> str | None:
    return RADAR_AXIS_TO_DOMAIN.get(str(axis or "").strip().lower())


def _clamp_confidence(value: Any) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(1.0, conf))


@dataclass(frozen=True)
class Signal:
    """An extracted, confidence-scored trait of a property."""

    dimension: str
    confidence: float
    text: str
    source_type: str | None = None
    corroborated: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Signal:
        """Build from pipeline JSON (``signal`` / ``review_corroborated`` keys) or attribute names."""
        return cls(
            dimension=str(raw.get("dimension") or ""),
            confidence=_clamp_confidence(raw.get("confidence")),
            text=str(raw.get("signal", raw.get("text")) or ""),
            source_type=raw.get("source_type", raw.get("sourceType")),
            corroborated=bool(raw.get("review_corroborated", raw.get("corroborated", False))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimension": self.dimension,
            "confidence": self.confidence,
            "signal": self.text,
            "source_type": self.source_type,
            "review_corroborated": self.corroborated,
        }


@dataclass(frozen=True)
class AntiSignal:
    """A rejected trait. Same shape as Signal minus provenance."""

    dimension: str
    confidence: float
    text: str

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AntiSignal:
        return cls(
            dimension=str(raw.get("dimension") or ""),
            confidence=_clamp_confidence(raw.get("confidence")),
            text=str(raw.get("signal", raw.get("text")) or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"dimension": self.dimension, "confidence": self.confidence, "signal": self.text}


@dataclass(frozen=True)
class Contradiction:
    """A tension between what the user says and what they do."""

    stated: str
    revealed: str
    resolution: str = ""
    match_rule: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Contradiction:
        return cls(
            stated=str(raw.get("stated") or ""),
            revealed=str(raw.get("revealed") or ""),
            resolution=str(raw.get("resolution") or ""),
            match_rule=str(raw.get("matchRule", raw.get("match_rule")) or ""),
        )


@dataclass(frozen=True)
class CandidateProperty:
    """An enriched, matchable property snapshot."""

    id: str
    name: str
    signals: tuple[Signal, ...] = ()
    anti_signals: tuple[AntiSignal, ...] = ()
    facts: dict[str, Any] | None = None
    signal_count: int = 0
    reliability_score: float | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CandidateProperty:
        signals = tuple(Signal.from_dict(s) for s in (raw.get("signals") or []) if isinstance(s, dict))
        anti = tuple(
            AntiSignal.from_dict(s) for s in (raw.get("antiSignals", raw.get("anti_signals")) or [])
            if isinstance(s, dict)
        )
        place_id = raw.get("googlePlaceId", raw.get("id"))
        if place_id is None or place_id == "":
            raise ValueError("candidate row has no googlePlaceId")
        reliability = raw.get("reliabilityScore", raw.get("reliability_score"))
        return cls(
            id=str(place_id),
            name=str(raw.get("propertyName", raw.get("name")) or ""),
            signals=signals,
            anti_signals=anti,
            facts=raw.get("facts"),
            signal_count=int(raw.get("signalCount", raw.get("signal_count")) or len(signals)),
            reliability_score=float(reliability) if reliability is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "googlePlaceId": self.id,
            "propertyName": self.name,
            "signals": [s.to_dict() for s in self.signals],
            "antiSignals": [a.to_dict() for a in self.anti_signals],
            "facts": self.facts,
            "signalCount": self.signal_count,
            "reliabilityScore": self.reliability_score,
        }


@dataclass(frozen=True)
class ContradictionRelevance:
    contradiction: Contradiction
    covers_both_sides: bool


@dataclass(frozen=True)
class ScoredCandidate:
    """
    A CandidateProperty scored against one user.

    ``overall_score`` is what ranking and allocation read. After vector
    blending it holds the blended value; ``signal_score`` always keeps the
    signal-only score.
    """

    candidate: CandidateProperty
    overall_score: int
    signal_score: int
    domain_breakdown: dict[str, int]
    top_dimension: str
    top_matching_signals: tuple[Signal, ...] = ()
    contradiction_relevance: ContradictionRelevance | None = None
    vector_score: int | None = None
    blended_score: int | None = None

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def signals(self) -> tuple[Signal, ...]:
        return self.candidate.signals


@dataclass
class LifeContext:
    """Opaque life-context data used only to label the context recs slot."""

    primary_companions: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> LifeContext | None:
        if not raw:
            return None
        companions = raw.get("primaryCompanions", raw.get("primary_companions")) or []
        return cls(primary_companions=[str(c) for c in companions])


@dataclass
class UserTasteProfile:
    """Everything the matcher needs to know about one user."""

    taste_profile: dict[str, float]
    """domain -> 0..100 affinity."""

    micro_signals: dict[str, list[str]] = field(default_factory=dict)
    """domain (or pipeline dimension) -> short preference phrases, in order."""

    contradictions: list[Contradiction] = field(default_factory=list)

    life_context: LifeContext | None = None
