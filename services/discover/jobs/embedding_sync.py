"""
Embedding sync — keeps taste vectors in step with the enrichment pipeline.

Two modes:
  - properties: embed every complete PlaceIntelligence row and upsert it
    into the vector index (Qdrant ``place_embeddings``) in batches of 100.
  - users: recompute ``User."tasteVector"`` for every user with a stored
    taste profile that has radar data.

Runs after an enrichment pass (properties) and after onboarding
synthesis (users). Failures are counted per batch / per user and the run
continues; the summary lists the first few errors.

    python -m services.discover.jobs.embedding_sync [--properties] [--users]
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import asyncpg

from services.discover.candidates.source import PostgresCandidateSource, decode_json
from services.discover.config import settings
from services.discover.taste.types import CandidateProperty
from services.discover.vectors.embedding import compute_property_embedding, compute_user_vector_from_profile
from services.discover.vectors.index import QdrantVectorIndex, VectorIndex, VectorItem
from services.discover.vectors.user_vectors import UserVectorStore

logger = logging.getLogger(__name__)

BATCH_SIZE = 100  # properties per index upsert

_USERS_WITH_PROFILE_QUERY = """
    SELECT id, "tasteProfile", "allSignals"
    FROM "User"
    WHERE "tasteProfile" IS NOT NULL
    ORDER BY id ASC
"""


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

@dataclass
class SyncStats:
    """Summary of one sync run."""
    mode: str = "properties"  # "properties" or "users"
    fetched: int = 0
    embedded: int = 0
    written: int = 0
    skipped: int = 0
    errors: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error_details: list[str] = field(default_factory=list)

    @property
    def duration_s(self) -> float:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0


def _log_summary(stats: SyncStats) -> None:
    logger.info(
        "Embedding sync complete [%s]: fetched=%d embedded=%d written=%d skipped=%d errors=%d total=%.1fs",
        stats.mode,
        stats.fetched,
        stats.embedded,
        stats.written,
        stats.skipped,
        stats.errors,
        stats.duration_s,
    )
    for err in stats.error_details[:10]:
        logger.error("  sync error: %s", err)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

def build_property_item(candidate: CandidateProperty) -> VectorItem:
    return VectorItem(
        id=candidate.id,
        vector=compute_property_embedding(candidate.signals, candidate.anti_signals),
        payload={
            "name": candidate.name,
            "signal_count": candidate.signal_count,
        },
    )


async def _upsert_batch(index: VectorIndex, batch: list[CandidateProperty], stats: SyncStats) -> None:
    items = [build_property_item(c) for c in batch]
    stats.embedded += len(items)
    try:
        stats.written += await index.upsert(items)
    except Exception as exc:
        stats.errors += len(items)
        stats.error_details.append(f"Index upsert failed: {exc}")
        logger.exception("Index upsert failed (%d points)", len(items))


async def run_property_embedding_sync(
    pool: Any,
    index: VectorIndex,
    batch_size: int = BATCH_SIZE,
) -> SyncStats:
    """
    Embed every matchable property and upsert it into ``index``.

    The candidate fetch is not caught: without rows there is nothing to sync.
    """
    stats = SyncStats(mode="properties", started_at=datetime.now(timezone.utc))

    candidates = await PostgresCandidateSource(pool).fetch_candidates()
    stats.fetched = len(candidates)
    logger.info("Property sync: %d candidates to embed", len(candidates))

    for offset in range(0, len(candidates), batch_size):
        await _upsert_batch(index, candidates[offset : offset + batch_size], stats)
        logger.info("Property sync progress: %d/%d written", stats.written, stats.fetched)

    stats.finished_at = datetime.now(timezone.utc)
    _log_summary(stats)
    return stats


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

async def run_user_vector_backfill(pool: Any) -> SyncStats:
    """Recompute and store the taste vector of every user with a profile."""
    stats = SyncStats(mode="users", started_at=datetime.now(timezone.utc))
    store = UserVectorStore(pool)

    async with pool.acquire() as conn:
        rows = await conn.fetch(_USERS_WITH_PROFILE_QUERY)
    stats.fetched = len(rows)
    logger.info("User backfill: %d users with a taste profile", len(rows))

    for row in rows:
        user_id = row["id"]
        try:
            profile = decode_json(row["tasteProfile"]) or {}
            if not profile.get("radarData"):
                stats.skipped += 1
                continue
            all_signals = decode_json(row["allSignals"]) or None
            vector = compute_user_vector_from_profile(profile, all_signals)
            stats.embedded += 1
            await store.store_user_vector(user_id, vector)
            stats.written += 1
        except Exception as exc:
            stats.errors += 1
            stats.error_details.append(f"User {user_id}: {exc}")
            logger.exception("User backfill failed for user=%s", user_id)

    stats.finished_at = datetime.now(timezone.utc)
    _log_summary(stats)
    return stats


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

async def main() -> None:
    """CLI entry point for embedding sync."""
    import argparse

    parser = argparse.ArgumentParser(description="Sync property and user taste vectors")
    parser.add_argument("--properties", action="store_true", help="Embed properties into the vector index")
    parser.add_argument("--users", action="store_true", help="Recompute stored user taste vectors")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Neither flag means both
    run_properties = args.properties or not args.users
    run_users = args.users or not args.properties

    t0 = time.monotonic()
    pool = await asyncpg.create_pool(args.database_url, min_size=1, max_size=3)
    index = QdrantVectorIndex.from_settings(settings)
    results: list[SyncStats] = []
    try:
        if run_properties:
            await index.ensure_collection()
            results.append(await run_property_embedding_sync(pool, index))
        if run_users:
            results.append(await run_user_vector_backfill(pool))
    finally:
        await index.close()
        await pool.close()

    logger.info("Embedding sync finished in %.1fs", time.monotonic() - t0)
    if any(r.errors for r in results):
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
