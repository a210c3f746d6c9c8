"""
User taste profile loading.

The conversational onboarding flow stores a generated profile JSON blob on
``User."tasteProfile"``:

    {
      "radarData": [{"axis": "Design", "value": 0.82}, ...],   # 0..1
      "microTasteSignals": {"Design": ["raw concrete", ...], ...},
      "contradictions": [{"stated": ..., "revealed": ..., ...}],
      ...
    }

parse_taste_profile() turns that into a UserTasteProfile with 0..100
domain affinities. Domains missing from the radar are left out, so the
matcher applies its neutral default.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from services.discover.candidates.source import decode_json
from services.discover.taste.match import round_half_up
from services.discover.taste.types import Contradiction, LifeContext, UserTasteProfile, domain_for_axis

logger = logging.getLogger(__name__)


def _radar_to_affinity(value: Any) -> int:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0
    # Radar values are 0..1; some older profiles stored percentages
    if v > 1.0:
        v = v / 100.0
    return round_half_up(max(0.0, min(1.0, v)) * 100)


def parse_taste_profile(
    raw: Mapping[str, Any],
    life_context: Optional[Mapping[str, Any]] = None,
) -> UserTasteProfile:
    taste_profile: dict[str, float] = {}
    for entry in raw.get("radarData") or []:
        if not isinstance(entry, Mapping):
            continue
        domain = domain_for_axis(entry.get("axis"))
        if domain is None:
            logger.debug("Ignoring unknown radar axis %r", entry.get("axis"))
            continue
        taste_profile[domain] = max(taste_profile.get(domain, 0), _radar_to_affinity(entry.get("value")))

    micro_signals: dict[str, list[str]] = {}
    for key, phrases in (raw.get("microTasteSignals") or {}).items():
        if isinstance(phrases, (list, tuple)):
            micro_signals[str(key)] = [str(p) for p in phrases if p]

    contradictions = [
        Contradiction.from_dict(c)
        for c in raw.get("contradictions") or []
        if isinstance(c, Mapping) and c.get("stated") and c.get("revealed")
    ]

    return UserTasteProfile(
        taste_profile=taste_profile,
        micro_signals=micro_signals,
        contradictions=contradictions,
        life_context=LifeContext.from_dict(dict(life_context) if life_context else None),
    )


class ProfileStore:
    """
    Reads stored taste profiles from Postgres.

    Usage:
        store = ProfileStore(pool)
        profile = await store.load(user_id)   # None if no user / no profile
    """

    def __init__(self, pool: Any) -> None:
        self._pool = pool

    async def load(self, user_id: str) -> Optional[UserTasteProfile]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                'SELECT "tasteProfile", "lifeContext" FROM "User" WHERE id = $1',
                user_id,
            )

        if row is None:
            logger.info("Profile load: user %s not found", user_id)
            return None

        raw = decode_json(row["tasteProfile"])
        if not raw:
            logger.info("Profile load: user %s has no taste profile yet", user_id)
            return None

        return parse_taste_profile(raw, decode_json(row["lifeContext"]))
