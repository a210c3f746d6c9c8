"""
Tests for profile/loader.py.

Covers:
  - Radar axes -> 0..100 domain affinities (aliases, percentages, clamping)
  - Micro-signals and contradictions parsed from the stored blob
  - ProfileStore.load: missing user, empty profile, JSON string columns
"""

from __future__ import annotations

import json

import pytest

from services.discover.profile import ProfileStore, parse_taste_profile


# ---------------------------------------------------------------------------
# parse_taste_profile
# ---------------------------------------------------------------------------

class TestParseTasteProfile:
    def test_radar_to_affinity(self):
        profile = parse_taste_profile({
            "radarData": [
                {"axis": "Design", "value": 0.82},
                {"axis": "Food & Drink", "value": 0.46},
                {"axis": "Wellness", "value": 0.0},
            ],
        })
        assert profile.taste_profile == {"Design": 82, "Food": 46, "Wellness": 0}

    def test_aliases_keep_highest_value(self):
        profile = parse_taste_profile({
            "radarData": [
                {"axis": "Scale & Intimacy", "value": 0.3},
                {"axis": "Character", "value": 0.6},
            ],
        })
        assert profile.taste_profile == {"Character": 60}

    def test_percentages_and_out_of_range(self):
        profile = parse_taste_profile({
            "radarData": [
                {"axis": "Design", "value": 74},
                {"axis": "Service", "value": -0.2},
                {"axis": "Location", "value": "not a number"},
            ],
        })
        assert profile.taste_profile == {"Design": 74, "Service": 0, "Location": 0}

    def test_unknown_axes_and_junk_entries_ignored(self):
        profile = parse_taste_profile({
            "radarData": [{"axis": "Vibes", "value": 0.9}, "junk", None],
        })
        assert profile.taste_profile == {}

    def test_micro_signals(self):
        profile = parse_taste_profile({
            "microTasteSignals": {
                "Design": ["raw concrete", "", "terrazzo"],
                "Food": "not a list",
            },
        })
        assert profile.micro_signals == {"Design": ["raw concrete", "terrazzo"]}

    def test_contradictions_need_both_sides(self):
        profile = parse_taste_profile({
            "contradictions": [
                {"stated": "minimalist", "revealed": "maximalist bars", "resolution": "context"},
                {"stated": "quiet", "revealed": ""},
                {"revealed": "loud"},
            ],
        })
        assert len(profile.contradictions) == 1
        assert profile.contradictions[0].stated == "minimalist"
        assert profile.contradictions[0].resolution == "context"

    def test_life_context(self):
        profile = parse_taste_profile({}, {"primaryCompanions": ["partner", "friends"]})
        assert profile.life_context.primary_companions == ["partner", "friends"]

    def test_empty_blob(self):
        profile = parse_taste_profile({})
        assert profile.taste_profile == {}
        assert profile.micro_signals == {}
        assert profile.contradictions == []
        assert profile.life_context is None


# ---------------------------------------------------------------------------
# ProfileStore
# ---------------------------------------------------------------------------

class TestProfileStore:
    @pytest.mark.asyncio
    async def test_missing_user(self, fake_pool):
        assert await ProfileStore(fake_pool).load("ghost") is None
        query, args = fake_pool.conn.calls_to("fetchrow")[0]
        assert '"tasteProfile"' in query
        assert args == ("ghost",)

    @pytest.mark.asyncio
    async def test_user_without_profile(self, fake_pool):
        fake_pool.conn.fetchrow_results.append({"tasteProfile": None, "lifeContext": None})
        assert await ProfileStore(fake_pool).load("u1") is None

    @pytest.mark.asyncio
    async def test_json_string_columns(self, fake_pool):
        fake_pool.conn.fetchrow_results.append({
            "tasteProfile": json.dumps({
                "radarData": [{"axis": "Design", "value": 0.9}],
                "microTasteSignals": {"Design": ["brutalist"]},
            }),
            "lifeContext": json.dumps({"primaryCompanions": ["solo"]}),
        })

        profile = await ProfileStore(fake_pool).load("u1")

        assert profile.taste_profile == {"Design": 90}
        assert profile.micro_signals == {"Design": ["brutalist"]}
        assert profile.life_context.primary_companions == ["solo"]

    @pytest.mark.asyncio
    async def test_decoded_dict_columns(self, fake_pool):
        fake_pool.conn.fetchrow_results.append({
            "tasteProfile": {"radarData": [{"axis": "Wellness", "value": 0.5}]},
            "lifeContext": None,
        })
        profile = await ProfileStore(fake_pool).load("u1")
        assert profile.taste_profile == {"Wellness": 50}
        assert profile.life_context is None

    @pytest.mark.asyncio
    async def test_database_errors_propagate(self, fake_pool):
        fake_pool.conn.error = ConnectionError("pg down")
        with pytest.raises(ConnectionError):
            await ProfileStore(fake_pool).load("u1")
