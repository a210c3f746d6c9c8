"""
User taste vector storage — pgvector column ``User."tasteVector"``.

The column is read and written in pgvector's text form '[0.1,0.2,...]'
so no asyncpg codec registration is needed.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

logger = logging.getLogger(__name__)


def vector_to_sql(vec: Sequence[float]) -> str:
    """Format a vector as a pgvector literal: '[0.10000000,0.20000000]'."""
    return "[" + ",".join(f"{float(v):.8f}" for v in vec) + "]"


def sql_to_vector(value: str) -> list[float]:
    """Parse a pgvector literal back into floats."""
    inner = value.strip().strip("[]").strip()
    if not inner:
        return []
    return [float(part) for part in inner.split(",")]


class UserVectorStore:
    """
    Usage:
        store = UserVectorStore(pool)
        vec = await store.get_user_vector(user_id)   # None when never computed
    """

    def __init__(self, pool: Any) -> None:
        self._pool = pool

    async def get_user_vector(self, user_id: str) -> list[float] | None:
        async with self._pool.acquire() as conn:
            raw = await conn.fetchval(
                'SELECT "tasteVector"::text FROM "User" WHERE id = $1',
                user_id,
            )
        if not raw:
            logger.debug("No stored taste vector for user=%s", user_id)
            return None
        vector = sql_to_vector(raw)
        return vector or None

    async def store_user_vector(self, user_id: str, vector: Sequence[float]) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                'UPDATE "User" SET "tasteVector" = $1::vector, "tasteVectorUpdatedAt" = NOW() WHERE id = $2',
                vector_to_sql(vector),
                user_id,
            )
