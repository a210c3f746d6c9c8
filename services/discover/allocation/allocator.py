"""
Slot allocator — places ranked candidates into the eight feed slots.

Steps run strictly in this order, each seeing only what earlier steps
left unused:

    1. Deep Match          the single best candidate
    2. Because-You (3)     domain-diversified pass, then unconstrained fill
    3. Taste Tension       first candidate covering both sides of a contradiction
    4. Signal Thread       a signal shared by >= 2 candidates, up to 3 of them
    5. Stretch Pick        moderate overall, one strong and one weak domain
    6. Weekly Collection   up to 5 from the dominant unused domain
    7. Mood Boards (<=2)   up to 3 per remaining domain, kept with >= 2
    8. Context Recs (<=4)  next 4 unused in rank order

Pure and deterministic. Callers gate with has_enough_candidates() first;
below the threshold they use their non-grounded path instead.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from services.discover.allocation.context import AllocationContext
from services.discover.allocation.feed import (
    AllocatedBecauseYou,
    AllocatedContextRec,
    AllocatedDeepMatch,
    AllocatedFeed,
    AllocatedMoodBoard,
    AllocatedSignalThread,
    AllocatedStretchPick,
    AllocatedTasteTension,
    AllocatedWeeklyCollection,
)
from services.discover.allocation.predicates import covers_both_sides, has_top_dimension, is_stretch
from services.discover.taste.types import ALL_DOMAINS, Contradiction, ScoredCandidate, domain_for

logger = logging.getLogger(__name__)

MIN_CANDIDATES_FOR_FEED = 15

BECAUSE_YOU_COUNT = 3
SIGNAL_THREAD_SIGNALS = 3       # top matching signals per candidate that count
SIGNAL_THREAD_KEY_LENGTH = 50
SIGNAL_THREAD_MIN_SUPPORT = 2   # distinct candidates
SIGNAL_THREAD_MAX = 3
WEEKLY_COLLECTION_MAX = 5
WEEKLY_COLLECTION_MIN = 3
MOOD_BOARD_COUNT = 2
MOOD_BOARD_MAX = 3
MOOD_BOARD_MIN = 2
CONTEXT_RECS_MAX = 4

DEFAULT_DOMAIN = "Design"
FALLBACK_THREAD_SIGNAL = "distinctive character"


def has_enough_candidates(scored_count: int, minimum: int = MIN_CANDIDATES_FOR_FEED) -> bool:
    """True when there are enough scored candidates for a grounded feed."""
    return scored_count >= minimum


# ---------------------------------------------------------------------------
# Slot steps
# ---------------------------------------------------------------------------


def allocate_deep_match(ctx: AllocationContext) -> AllocatedDeepMatch:
    candidate = ctx.take_first()
    if candidate is None:
        raise ValueError("deep match needs at least one unused candidate")
    return AllocatedDeepMatch(candidate=candidate)


def _because_you_card(c: ScoredCandidate) -> AllocatedBecauseYou:
    top = c.top_matching_signals[0] if c.top_matching_signals else None
    if top is None:
        return AllocatedBecauseYou(
            candidate=c,
            signal=f"Strong {c.top_dimension} alignment",
            signal_domain=c.top_dimension,
        )
    return AllocatedBecauseYou(
        candidate=c,
        signal=top.text or f"Strong {c.top_dimension} alignment",
        signal_domain=domain_for(top.dimension) or c.top_dimension,
    )


def allocate_because_you(ctx: AllocationContext, count: int = BECAUSE_YOU_COUNT) -> list[AllocatedBecauseYou]:
    """
    One pass preferring a new top dimension per card, then a second pass
    filling any remaining cards in plain rank order.
    """
    cards: list[AllocatedBecauseYou] = []
    seen_domains: set[str] = set()

    for c in ctx.unused():
        if len(cards) >= count:
            break
        if c.top_dimension in seen_domains:
            continue
        ctx.take(c)
        seen_domains.add(c.top_dimension)
        cards.append(_because_you_card(c))

    if len(cards) < count:
        for c in ctx.take_n(count - len(cards)):
            cards.append(_because_you_card(c))

    return cards


def allocate_taste_tension(
    ctx: AllocationContext,
    contradictions: Sequence[Contradiction],
) -> Optional[AllocatedTasteTension]:
    if not contradictions:
        return None
    candidate = ctx.take_first(covers_both_sides)
    if candidate is None or candidate.contradiction_relevance is None:
        return None
    return AllocatedTasteTension(
        contradiction=candidate.contradiction_relevance.contradiction,
        candidate=candidate,
    )


def allocate_signal_thread(
    ctx: AllocationContext,
    micro_signals: Mapping[str, Sequence[str]],
) -> AllocatedSignalThread:
    """
    Find the matching-signal text shared by the most unused candidates.

    Support counts every occurrence among each candidate's top 3 matching
    signals; a key qualifies only with >= 2 distinct candidates. The first
    key to reach the best support wins ties. Signals with empty text never
    form a key, so a thread always has a readable label.
    """
    table: dict[str, dict] = {}
    for c in ctx.unused():
        for sig in c.top_matching_signals[:SIGNAL_THREAD_SIGNALS]:
            if not sig.text:
                continue
            key = sig.text.lower()[:SIGNAL_THREAD_KEY_LENGTH]
            entry = table.setdefault(key, {
                "domain": domain_for(sig.dimension) or c.top_dimension,
                "support": 0,
                "candidates": [],
            })
            entry["support"] += 1
            if not any(existing is c for existing in entry["candidates"]):
                entry["candidates"].append(c)

    best_key: Optional[str] = None
    best_support = 0
    for key, entry in table.items():
        if entry["support"] > best_support and len(entry["candidates"]) >= SIGNAL_THREAD_MIN_SUPPORT:
            best_key = key
            best_support = entry["support"]

    if best_key is None:
        first_key = next(iter(micro_signals), None)
        phrases = micro_signals.get(first_key) if first_key is not None else None
        return AllocatedSignalThread(
            signal=phrases[0] if phrases else FALLBACK_THREAD_SIGNAL,
            domain=domain_for(first_key) or DEFAULT_DOMAIN,
            candidates=[],
        )

    best = table[best_key]
    return AllocatedSignalThread(
        signal=best_key,
        domain=best["domain"],
        candidates=ctx.take_all(best["candidates"][:SIGNAL_THREAD_MAX]),
    )


def allocate_stretch_pick(ctx: AllocationContext) -> Optional[AllocatedStretchPick]:
    candidate = ctx.take_first(is_stretch)
    if candidate is None:
        return None
    items = list(candidate.domain_breakdown.items())
    strong = max(items, key=lambda kv: kv[1])[0]
    weak = min(items, key=lambda kv: kv[1])[0]
    return AllocatedStretchPick(candidate=candidate, strong_domain=strong, weak_domain=weak)


def dominant_unused_domain(ctx: AllocationContext) -> str:
    """Most frequent top dimension among unused candidates; first seen wins ties."""
    counts: dict[str, int] = {}
    for c in ctx.unused():
        counts[c.top_dimension] = counts.get(c.top_dimension, 0) + 1
    if not counts:
        return DEFAULT_DOMAIN
    return max(counts, key=lambda d: counts[d])


def allocate_weekly_collection(ctx: AllocationContext) -> AllocatedWeeklyCollection:
    domain = dominant_unused_domain(ctx)
    candidates = ctx.take_n(WEEKLY_COLLECTION_MAX, has_top_dimension(domain))
    if len(candidates) < WEEKLY_COLLECTION_MIN:
        candidates.extend(ctx.take_n(WEEKLY_COLLECTION_MAX - len(candidates)))
    return AllocatedWeeklyCollection(dominant_domain=domain, candidates=candidates)


def allocate_mood_boards(ctx: AllocationContext, exclude_domain: str) -> list[AllocatedMoodBoard]:
    """
    Up to two boards from distinct domains in canonical order. Each domain
    claims up to 3 unused candidates; a board is kept only with >= 2, and
    the claimed candidates stay used either way.
    """
    boards: list[AllocatedMoodBoard] = []
    for domain in ALL_DOMAINS:
        if len(boards) >= MOOD_BOARD_COUNT:
            break
        if domain == exclude_domain:
            continue
        picks = ctx.take_n(MOOD_BOARD_MAX, has_top_dimension(domain))
        if len(picks) >= MOOD_BOARD_MIN:
            boards.append(AllocatedMoodBoard(domain=domain, candidates=picks))
    return boards


def allocate_context_recs(ctx: AllocationContext) -> list[AllocatedContextRec]:
    return [AllocatedContextRec(candidate=c) for c in ctx.take_n(CONTEXT_RECS_MAX)]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def allocate_slots(
    scored: Sequence[ScoredCandidate],
    micro_signals: Mapping[str, Sequence[str]],
    contradictions: Sequence[Contradiction],
    context_label: str = "",
) -> AllocatedFeed:
    """
    Allocate ranked candidates into feed slots.

    Args:
        scored:         Ranked (best first) scored candidates. Must be non-empty.
        micro_signals:  The user's micro-signals, for the signal thread fallback.
        contradictions: The user's contradictions; no tension slot without them.
        context_label:  Display label for the context recs slot.

    Raises:
        ValueError: if ``scored`` is empty.
    """
    if not scored:
        raise ValueError("allocate_slots requires a non-empty ranked candidate list")

    ctx = AllocationContext(scored)

    deep_match = allocate_deep_match(ctx)
    because_you = allocate_because_you(ctx)
    taste_tension = allocate_taste_tension(ctx, contradictions)
    signal_thread = allocate_signal_thread(ctx, micro_signals)
    stretch_pick = allocate_stretch_pick(ctx)
    weekly = allocate_weekly_collection(ctx)
    mood_boards = allocate_mood_boards(ctx, exclude_domain=weekly.dominant_domain)
    context_recs = allocate_context_recs(ctx)

    feed = AllocatedFeed(
        deep_match=deep_match,
        because_you_cards=because_you,
        signal_thread=signal_thread,
        taste_tension=taste_tension,
        weekly_collection=weekly,
        mood_boards=mood_boards,
        stretch_pick=stretch_pick,
        context_recs=context_recs,
        context_label=context_label,
    )

    logger.debug(
        "Allocated %d/%d candidates: %s",
        len(ctx.used_ids),
        len(scored),
        feed.slot_counts(),
    )
    return feed
