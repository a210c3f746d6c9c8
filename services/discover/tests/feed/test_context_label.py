"""Tests for feed/context.py."""

from __future__ import annotations

from datetime import date

import pytest

from services.discover.feed.context import build_context_label, season_for
from services.discover.taste.types import LifeContext


@pytest.mark.parametrize("month,expected", [
    (1, "Winter"), (4, "Winter"), (5, "Summer"), (8, "Summer"), (10, "Summer"), (11, "Winter"), (12, "Winter"),
])
def test_season_for(month, expected):
    assert season_for(date(2026, month, 15)) == expected


def test_first_companion_wins():
    label = build_context_label(LifeContext(primary_companions=["partner", "kids"]), date(2026, 1, 1))
    assert label == "With partner"


def test_solo_falls_back_to_season():
    assert build_context_label(LifeContext(primary_companions=["solo"]), date(2026, 7, 1)) == "Summer"


def test_no_life_context_falls_back_to_season():
    assert build_context_label(None, date(2026, 12, 1)) == "Winter"
    assert build_context_label(LifeContext(), date(2026, 6, 1)) == "Summer"


def test_blank_companion_treated_as_solo():
    assert build_context_label(LifeContext(primary_companions=[""]), date(2026, 2, 1)) == "Winter"
