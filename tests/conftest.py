"""
Shared test fixtures for job-status tests.

This module provides:
- A controllable clock for expiry tests
- A fake redis.asyncio client (hashes, sorted sets, TTL, pipelines)
- Store fixtures (in-memory and Redis-backed)
- Hook and queue fixtures
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from redis.exceptions import WatchError

from job_status.hooks import HookManager, InMemoryMetricsHook
from job_status.queue import LocalQueue
from job_status.storage import InMemoryStatusStore, RedisStatusStore

TTL_SECONDS = 3600


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Manually advanced time source (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Fake Redis
# =============================================================================


class FakePipeline:
    """Queues commands and applies them together on execute().

    After watch() the pipeline answers reads immediately until multi(); a
    watched key that changed before execute() raises WatchError.
    """

    def __init__(self, client: FakeRedis, transaction: bool = True):
        self._client = client
        self._transaction = transaction
        self._commands: list[tuple[str, Callable[..., Any], tuple, dict]] = []
        self._watched: dict[str, int] = {}
        self._multi = False

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._reset()

    def _reset(self) -> None:
        self._commands = []
        self._watched = {}
        self._multi = False

    async def watch(self, *keys: str) -> None:
        self._client._check()
        self._watched.update({key: self._client.versions.get(key, 0) for key in keys})

    def multi(self) -> None:
        self._multi = True

    def exists(self, *keys: str) -> Any:
        return self._client.exists(*keys)

    def __getattr__(self, name: str) -> Callable[..., FakePipeline]:
        op = getattr(self._client, f"_{name}")

        def queue(*args: Any, **kwargs: Any) -> FakePipeline:
            self._commands.append((name, op, args, kwargs))
            return self

        return queue

    async def execute(self) -> list[Any]:
        self._client._check()
        for key in self._watched:
            self._client._purge(key)
        changed = any(self._client.versions.get(key, 0) != version for key, version in self._watched.items())
        commands = self._commands
        self._reset()
        if changed:
            raise WatchError("Watched variable changed.")
        self._client.batches.append([name for name, *_ in commands])
        return [op(*args, **kwargs) for _, op, args, kwargs in commands]


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` with decode_responses=True.

    Supports the hash, sorted-set, expiry and pipeline commands the status
    store uses. Set ``error`` to make every command raise it.
    """

    def __init__(self, clock: Callable[[], float]):
        self.clock = clock
        self.hashes: dict[str, dict[str, str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, float] = {}
        self.versions: dict[str, int] = {}
        self.batches: list[list[str]] = []
        self.error: Exception | None = None
        self.closed = False

    # Sync implementations, shared by direct calls and pipelines

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def _purge(self, key: str) -> None:
        expires = self.expiry.get(key)
        if expires is not None and expires <= self.clock():
            self.hashes.pop(key, None)
            self.expiry.pop(key, None)
            self._touch(key)

    def _delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._purge(key)
            found = self.hashes.pop(key, None) is not None
            found = self.zsets.pop(key, None) is not None or found
            self.expiry.pop(key, None)
            if found:
                self._touch(key)
            removed += int(found)
        return removed

    def _hset(self, key: str, mapping: dict[str, str]) -> int:
        self._purge(key)
        current = self.hashes.setdefault(key, {})
        added = len(set(mapping) - set(current))
        current.update({k: str(v) for k, v in mapping.items()})
        self._touch(key)
        return added

    def _expire(self, key: str, seconds: int) -> bool:
        self._purge(key)
        if key not in self.hashes and key not in self.zsets:
            return False
        self.expiry[key] = self.clock() + seconds
        self._touch(key)
        return True

    def _zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self.zsets.setdefault(key, {})
        added = len(set(mapping) - set(zset))
        zset.update({member: float(score) for member, score in mapping.items()})
        return added

    def _zrem(self, key: str, *members: str) -> int:
        zset = self.zsets.get(key, {})
        removed = sum(1 for member in members if zset.pop(member, None) is not None)
        if key in self.zsets and not zset:
            del self.zsets[key]
        return removed

    def _range(
        self,
        key: str,
        low: Any,
        high: Any,
        start: int | None,
        num: int | None,
        reverse: bool,
    ) -> list[str]:
        low, high = float(low), float(high)
        entries = sorted(
            ((score, member) for member, score in self.zsets.get(key, {}).items() if low <= score <= high),
            reverse=reverse,
        )
        members = [member for _, member in entries]
        if start is not None:
            members = members[start:] if num is None or num < 0 else members[start:start + num]
        return members

    # Async client API

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check()
        self._purge(key)
        return dict(self.hashes.get(key, {}))

    async def exists(self, *keys: str) -> int:
        self._check()
        for key in keys:
            self._purge(key)
        return sum(1 for key in keys if key in self.hashes or key in self.zsets)

    async def delete(self, *keys: str) -> int:
        self._check()
        return self._delete(*keys)

    async def zrangebyscore(self, key, min, max, start=None, num=None) -> list[str]:
        self._check()
        return self._range(key, min, max, start, num, reverse=False)

    async def zrevrangebyscore(self, key, max, min, start=None, num=None) -> list[str]:
        self._check()
        return self._range(key, min, max, start, num, reverse=True)

    async def zcard(self, key: str) -> int:
        self._check()
        return len(self.zsets.get(key, {}))

    async def zcount(self, key: str, min: Any, max: Any) -> int:
        self._check()
        return len(self._range(key, min, max, None, None, reverse=False))

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def memory_store(clock) -> InMemoryStatusStore:
    return InMemoryStatusStore(ttl_seconds=TTL_SECONDS, time_func=clock)


@pytest.fixture
def redis_store(fake_redis, clock) -> RedisStatusStore:
    return RedisStatusStore(fake_redis, key_prefix="test", ttl_seconds=TTL_SECONDS, time_func=clock)


@pytest.fixture(params=["memory", "redis"])
def store(request, memory_store, redis_store):
    """Both store backends, so every behavior is checked against each."""
    if request.param == "memory":
        return memory_store
    return redis_store


@pytest.fixture
def metrics() -> InMemoryMetricsHook:
    return InMemoryMetricsHook()


@pytest.fixture
def hooks(metrics) -> HookManager:
    return HookManager([metrics])


@pytest.fixture
def local_queue() -> LocalQueue:
    return LocalQueue()
