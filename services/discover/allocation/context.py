"""
AllocationContext — the ranked pool plus the set of ids already placed.

Every slot step reads and claims candidates through one context, so a
candidate can only ever be claimed once per feed. Steps never touch the
used-id set directly.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from services.discover.taste.types import ScoredCandidate

Predicate = Callable[[ScoredCandidate], bool]


class AllocationContext:
    """
    Usage:
        ctx = AllocationContext(ranked)
        first = ctx.take_first()
        food = ctx.take_n(3, has_top_dimension("Food"))
    """

    def __init__(self, ranked: Sequence[ScoredCandidate]) -> None:
        self._ranked: tuple[ScoredCandidate, ...] = tuple(ranked)
        self._used: set[str] = set()

    @property
    def ranked(self) -> tuple[ScoredCandidate, ...]:
        return self._ranked

    @property
    def used_ids(self) -> frozenset[str]:
        return frozenset(self._used)

    def is_used(self, candidate: ScoredCandidate) -> bool:
        return candidate.id in self._used

    def unused(self, predicate: Optional[Predicate] = None) -> list[ScoredCandidate]:
        """Unused candidates in rank order, optionally filtered."""
        return [
            c for c in self._ranked
            if c.id not in self._used and (predicate is None or predicate(c))
        ]

    def take(self, candidate: ScoredCandidate) -> bool:
        """Claim ``candidate``. False if it was already claimed."""
        if candidate.id in self._used:
            return False
        self._used.add(candidate.id)
        return True

    def take_all(self, candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
        """Claim each candidate in order, returning the ones actually claimed."""
        return [c for c in candidates if self.take(c)]

    def peek_n(self, n: int, predicate: Optional[Predicate] = None) -> list[ScoredCandidate]:
        """Up to ``n`` unused matches in rank order, without claiming them."""
        found: list[ScoredCandidate] = []
        if n <= 0:
            return found
        for c in self._ranked:
            if c.id in self._used:
                continue
            if predicate is not None and not predicate(c):
                continue
            found.append(c)
            if len(found) >= n:
                break
        return found

    def take_first(self, predicate: Optional[Predicate] = None) -> Optional[ScoredCandidate]:
        found = self.peek_n(1, predicate)
        if not found:
            return None
        self.take(found[0])
        return found[0]

    def take_n(self, n: int, predicate: Optional[Predicate] = None) -> list[ScoredCandidate]:
        return self.take_all(self.peek_n(n, predicate))
