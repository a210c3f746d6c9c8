"""
AllocatedFeed — the eight feed slots handed to the narrative layer.

Every slot references ScoredCandidates. A candidate id appears in at most
one slot per feed (see AllocatedFeed.candidate_ids).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from services.discover.taste.types import Contradiction, ScoredCandidate


@dataclass
class AllocatedDeepMatch:
    candidate: ScoredCandidate


@dataclass
class AllocatedBecauseYou:
    candidate: ScoredCandidate
    signal: str           # the matching signal shown as the "because you..." reason
    signal_domain: str


@dataclass
class AllocatedSignalThread:
    signal: str
    domain: str
    candidates: list[ScoredCandidate] = field(default_factory=list)


@dataclass
class AllocatedTasteTension:
    contradiction: Contradiction
    candidate: ScoredCandidate


@dataclass
class AllocatedWeeklyCollection:
    dominant_domain: str
    candidates: list[ScoredCandidate] = field(default_factory=list)


@dataclass
class AllocatedMoodBoard:
    domain: str
    candidates: list[ScoredCandidate] = field(default_factory=list)


@dataclass
class AllocatedStretchPick:
    candidate: ScoredCandidate
    strong_domain: str
    weak_domain: str


@dataclass
class AllocatedContextRec:
    candidate: ScoredCandidate


@dataclass
class AllocatedFeed:
    deep_match: AllocatedDeepMatch
    because_you_cards: list[AllocatedBecauseYou]
    signal_thread: AllocatedSignalThread
    taste_tension: Optional[AllocatedTasteTension]
    weekly_collection: AllocatedWeeklyCollection
    mood_boards: list[AllocatedMoodBoard]
    stretch_pick: Optional[AllocatedStretchPick]
    context_recs: list[AllocatedContextRec]
    context_label: str

    def candidate_ids(self) -> list[str]:
        """Every placed candidate id, in slot order."""
        ids = [self.deep_match.candidate.id]
        ids.extend(card.candidate.id for card in self.because_you_cards)
        if self.taste_tension is not None:
            ids.append(self.taste_tension.candidate.id)
        ids.extend(c.id for c in self.signal_thread.candidates)
        if self.stretch_pick is not None:
            ids.append(self.stretch_pick.candidate.id)
        ids.extend(c.id for c in self.weekly_collection.candidates)
        for board in self.mood_boards:
            ids.extend(c.id for c in board.candidates)
        ids.extend(rec.candidate.id for rec in self.context_recs)
        return ids

    def slot_counts(self) -> dict[str, int]:
        """Number of candidates placed per slot, for logging."""
        return {
            "deep_match": 1,
            "because_you": len(self.because_you_cards),
            "taste_tension": 1 if self.taste_tension else 0,
            "signal_thread": len(self.signal_thread.candidates),
            "stretch_pick": 1 if self.stretch_pick else 0,
            "weekly_collection": len(self.weekly_collection.candidates),
            "mood_boards": sum(len(b.candidates) for b in self.mood_boards),
            "context_recs": len(self.context_recs),
        }
