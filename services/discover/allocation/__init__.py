"""
Slot allocation — ranked candidates into the eight discover feed slots.

Usage:
    from services.discover.allocation import allocate_slots, has_enough_candidates
"""

from __future__ import annotations

from services.discover.allocation.allocator import (
    MIN_CANDIDATES_FOR_FEED,
    allocate_slots,
    has_enough_candidates,
)
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

__all__ = [
    "MIN_CANDIDATES_FOR_FEED",
    "AllocatedBecauseYou",
    "AllocatedContextRec",
    "AllocatedDeepMatch",
    "AllocatedFeed",
    "AllocatedMoodBoard",
    "AllocatedSignalThread",
    "AllocatedStretchPick",
    "AllocatedTasteTension",
    "AllocatedWeeklyCollection",
    "AllocationContext",
    "allocate_slots",
    "has_enough_candidates",
]
