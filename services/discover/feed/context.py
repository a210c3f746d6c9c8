"""Display label for the context recs slot."""

from __future__ import annotations

from datetime import date
from typing import Optional

from services.discover.taste.types import LifeContext

SOLO = "solo"

# May..October
_SUMMER_MONTHS = range(5, 11)


def season_for(day: date) -> str:
    return "Summer" if day.month in _SUMMER_MONTHS else "Winter"


def build_context_label(life_context: Optional[LifeContext], today: Optional[date] = None) -> str:
    """
    "With {companion}" for the user's first primary companion, unless they
    travel solo (or said nothing), in which case the current season.
    """
    companion = SOLO
    if life_context and life_context.primary_companions:
        companion = life_context.primary_companions[0] or SOLO
    if companion != SOLO:
        return f"With {companion}"
    return season_for(today or date.today())
