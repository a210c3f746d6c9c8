"""
Dict-backed fakes for the storage clients the discover feed talks to.

FakeRedis -- the get/set/delete subset of redis.asyncio used by the
candidate cache. Set ``fail = True`` to make every call raise.

FakePool -- an asyncpg pool stand-in. ``pool.acquire()`` yields a
FakeConnection whose results are queued per method:

    pool = FakePool()
    pool.conn.fetch_results.append([row1, row2])   # next conn.fetch()
    pool.conn.fetchrow_results.append(row)         # next conn.fetchrow()
    pool.conn.execute_results.append(RuntimeError()) # next conn.execute() raises

Every call is recorded on ``pool.conn.calls`` as (method, query, args).
"""

from __future__ import annotations

from collections import deque
from contextlib import asynccontextmanager
from typing import Any


class FakeRedis:
    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def get(self, key: str) -> str | None:
        self._check()
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._check()
        self._store[key] = value
        self.ttls[key] = ex

    async def delete(self, key: str) -> int:
        self._check()
        existed = key in self._store
        self._store.pop(key, None)
        self.ttls.pop(key, None)
        return int(existed)

    def key_exists(self, key: str) -> bool:
        return key in self._store

    def raw(self, key: str) -> str | None:
        return self._store.get(key)


class FakeConnection:
    def __init__(self) -> None:
        self.fetch_results: deque[Any] = deque()
        self.fetchrow_results: deque[Any] = deque()
        self.fetchval_results: deque[Any] = deque()
        self.execute_results: deque[Any] = deque()
        self.calls: list[tuple[str, str, tuple]] = []
        self.error: Exception | None = None

    def _next(self, method: str, query: str, args: tuple, queue: deque, default: Any) -> Any:
        self.calls.append((method, query, args))
        if self.error is not None:
            raise self.error
        result = queue.popleft() if queue else default
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch(self, query: str, *args: Any) -> list[Any]:
        return self._next("fetch", query, args, self.fetch_results, [])

    async def fetchrow(self, query: str, *args: Any) -> Any:
        return self._next("fetchrow", query, args, self.fetchrow_results, None)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return self._next("fetchval", query, args, self.fetchval_results, None)

    async def execute(self, query: str, *args: Any) -> str:
        return self._next("execute", query, args, self.execute_results, "UPDATE 1")

    def calls_to(self, method: str) -> list[tuple[str, tuple]]:
        return [(q, a) for m, q, a in self.calls if m == method]


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.acquired = 0

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        yield self.conn
