"""
Postgres candidate source — reads enriched PlaceIntelligence rows.

Only rows the enrichment pipeline has finished (status='complete') and that
carry at least one signal are matchable. The rows are read-only here; the
pipeline owns them.

asyncpg returns json/jsonb columns as text unless a codec is registered,
so JSON fields are decoded defensively.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from services.discover.taste.types import CandidateProperty

logger = logging.getLogger(__name__)

_CANDIDATE_QUERY = """
    SELECT
        "googlePlaceId",
        "propertyName",
        signals,
        "antiSignals",
        facts,
        "signalCount",
        "reliabilityScore"
    FROM "PlaceIntelligence"
    WHERE status = 'complete'
      AND "signalCount" > 0
    ORDER BY "googlePlaceId" ASC
"""


class CandidateSource(Protocol):
    """Anything that can produce the current pool of matchable properties."""

    async def fetch_candidates(self) -> list[CandidateProperty]: ...


def decode_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def row_to_candidate(row: Any) -> CandidateProperty:
    """Convert a PlaceIntelligence row (asyncpg Record or dict) to a CandidateProperty."""
    return CandidateProperty.from_dict({
        "googlePlaceId": row["googlePlaceId"],
        "propertyName": row["propertyName"],
        "signals": decode_json(row["signals"]) or [],
        "antiSignals": decode_json(row["antiSignals"]) or [],
        "facts": decode_json(row["facts"]),
        "signalCount": row["signalCount"],
        "reliabilityScore": row["reliabilityScore"],
    })


class PostgresCandidateSource:
    """
    CandidateSource backed by an asyncpg pool.

    Usage:
        source = PostgresCandidateSource(pool)
        candidates = await source.fetch_candidates()

    Errors are not caught: there is no feed without candidate data.
    """

    def __init__(self, pool: Any) -> None:
        self._pool = pool

    async def fetch_candidates(self) -> list[CandidateProperty]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(_CANDIDATE_QUERY)

        candidates: list[CandidateProperty] = []
        for row in rows:
            candidate = row_to_candidate(row)
            if not candidate.signals:
                logger.debug(
                    "Skipping %s: signalCount=%s but no parseable signals",
                    candidate.id,
                    candidate.signal_count,
                )
                continue
            candidates.append(candidate)

        logger.info("Fetched %d enriched candidates from Postgres", len(candidates))
        return candidates
