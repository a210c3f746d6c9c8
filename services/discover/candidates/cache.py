"""
Candidate cache — TTL snapshot of the enriched candidate pool.

Interface:
    get_or_fetch(fetch_fn)  -> serve the snapshot, or await fetch_fn() and store it
    invalidate()            -> drop the snapshot; the next call always re-fetches

Two backends:

InMemoryCandidateCache
    Process-local. TTL measured against an injectable monotonic clock.

RedisCandidateCache
    Shared across workers. Single JSON key written with SET ... EX ttl.
    Redis errors degrade to a cache miss (logged); errors from fetch_fn
    always propagate. After invalidate() the next get_or_fetch never reads
    the key, so a failed DELETE cannot serve the old snapshot.

Neither backend locks: concurrent misses may each call fetch_fn. The
fetch is idempotent and the last write wins.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Awaitable, Callable, Protocol

import redis.asyncio as aioredis

from services.discover.taste.types import CandidateProperty

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300  # 5 minutes

REDIS_KEY = "discover:candidates:v1"

FetchFn = Callable[[], Awaitable[list[CandidateProperty]]]


class CandidateCache(Protocol):
    async def get_or_fetch(self, fetch_fn: FetchFn) -> list[CandidateProperty]: ...

    async def invalidate(self) -> None: ...


class InMemoryCandidateCache:
    """
    Process-local TTL cache.

    Usage:
        cache = InMemoryCandidateCache(ttl_s=300)
        candidates = await cache.get_or_fetch(source.fetch_candidates)
    """

    def __init__(
        self,
        ttl_s: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_s = ttl_s
        self._clock = clock
        self._data: list[CandidateProperty] | None = None
        self._fetched_at: float = 0.0

    def _is_fresh(self) -> bool:
        return self._data is not None and self._clock() - self._fetched_at < self._ttl_s

    async def get_or_fetch(self, fetch_fn: FetchFn) -> list[CandidateProperty]:
        if self._is_fresh():
            logger.debug("Candidate cache hit: %d candidates", len(self._data))
            return self._data

        logger.debug("Candidate cache miss, fetching")
        data = await fetch_fn()
        self._data = data
        self._fetched_at = self._clock()
        logger.info("Cached %d enriched candidates (ttl=%ss)", len(data), self._ttl_s)
        return data

    async def invalidate(self) -> None:
        self._data = None
        self._fetched_at = 0.0
        logger.info("Candidate cache invalidated")


class RedisCandidateCache:
    """
    Redis-backed TTL cache shared by every worker.

    Args:
        redis: An async Redis client (redis.asyncio compatible).
               May be None, in which case every call is a miss.
    """

    def __init__(self, redis: Any, ttl_s: int = DEFAULT_TTL_SECONDS, key: str = REDIS_KEY) -> None:
        self._redis = redis
        self._ttl_s = int(ttl_s)
        self._key = key
        # Set by invalidate(); the next get_or_fetch skips the read even if DELETE failed
        self._invalidated = False

    async def _read(self) -> list[CandidateProperty] | None:
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._key)
        except Exception:
            logger.warning("Candidate cache GET failed for key=%s", self._key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            return [CandidateProperty.from_dict(item) for item in payload]
        except (ValueError, TypeError, KeyError):
            logger.warning("Candidate cache entry unreadable, refetching: key=%s", self._key, exc_info=True)
            return None

    async def _write(self, data: list[CandidateProperty]) -> None:
        if self._redis is None:
            return
        try:
            payload = json.dumps([c.to_dict() for c in data], ensure_ascii=False)
            await self._redis.set(self._key, payload, ex=self._ttl_s)
            logger.info("Cached %d enriched candidates: key=%s ttl=%ds", len(data), self._key, self._ttl_s)
        except Exception:
            logger.warning("Candidate cache SET failed for key=%s", self._key, exc_info=True)

    async def get_or_fetch(self, fetch_fn: FetchFn) -> list[CandidateProperty]:
        cached = None if self._invalidated else await self._read()
        if cached is not None:
            logger.debug("Candidate cache hit: key=%s count=%d", self._key, len(cached))
            return cached

        logger.debug("Candidate cache miss: key=%s", self._key)
        data = await fetch_fn()
        self._invalidated = False
        await self._write(data)
        return data

    async def invalidate(self) -> None:
        self._invalidated = True
        if self._redis is None:
            return
        try:
            await self._redis.delete(self._key)
            logger.info("Candidate cache invalidated: key=%s", self._key)
        except Exception:
            # The stale key is overwritten when the next get_or_fetch refetches
            logger.warning(
                "Candidate cache DELETE failed for key=%s; next fetch bypasses the cache",
                self._key,
                exc_info=True,
            )


def build_candidate_cache(settings: Any, redis: Any = None) -> CandidateCache:
    """Pick the cache backend named by ``settings.candidate_cache_backend``."""
    if settings.candidate_cache_backend == "redis":
        if redis is None and settings.redis_url:
            redis = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
        if redis is None:
            logger.warning("candidate_cache_backend=redis but no redis_url; every fetch will miss")
        return RedisCandidateCache(redis, ttl_s=settings.candidate_cache_ttl_s)
    return InMemoryCandidateCache(ttl_s=settings.candidate_cache_ttl_s)
