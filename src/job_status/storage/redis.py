"""
Redis status store.

Layout:
- ``{prefix}:{job_id}`` - hash, one JSON-encoded field per record field,
  with a TTL equal to the retention window
- ``{prefix}:index`` - sorted set of job ids scored by expiry time

Redis drops an expired hash on its own; the index entry is removed by
``sweep()``, which the maintenance path calls periodically.

A single record write (full save or partial field update) goes out as one
MULTI/EXEC pipeline together with its EXPIRE and ZADD, so readers never see
half of one write. Separate writes are not combined. A partial update
WATCHes the record key and checks it exists inside the same transaction, so
it never recreates a record that was deleted or expired in the meantime.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Mapping

import redis.asyncio as redis_lib
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from ..config import StoreConfig
from ..errors import ErrorContext, StoreUnavailableError
from ..types import StatusRecord, encode_fields
from .base import StatusStore


class RedisStatusStore(StatusStore):
    """Status store backed by a shared Redis server.

    Example:
        ```python
        store = RedisStatusStore.from_config(StoreConfig(redis_url="redis://localhost:6379/0"))
        record = await store.load(job_id)
        ```
    """

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        key_prefix: str = "job_status",
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self._client = client
        self._prefix = key_prefix

    @classmethod
    def from_config(cls, config: StoreConfig) -> RedisStatusStore:
        client = redis_lib.from_url(
            config.redis_url,
            decode_responses=True,
            socket_timeout=config.socket_timeout,
        )
        return cls(client, key_prefix=config.key_prefix, ttl_seconds=config.ttl_seconds)

    @property
    def index_key(self) -> str:
        return f"{self._prefix}:index"

    def record_key(self, job_id: str) -> str:
        return f"{self._prefix}:{job_id}"

    async def save(self, record: StatusRecord) -> StatusRecord:
        record = self._stamp(record)
        key = self.record_key(record.job_id)
        with self._translate_errors("save", record.job_id):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.hset(key, mapping=record.to_mapping())
                pipe.expire(key, self.ttl_seconds)
                pipe.zadd(self.index_key, {record.job_id: record.expires_at})
                await pipe.execute()
        return record

    async def load(self, job_id: str) -> StatusRecord | None:
        with self._translate_errors("load", job_id):
            mapping = await self._client.hgetall(self.record_key(job_id))
        if not mapping:
            return None
        return StatusRecord.from_mapping(mapping)

    async def update(self, job_id: str, fields: Mapping[str, Any]) -> bool:
        values, expires_at = self._prepare_update(job_id, fields)
        key = self.record_key(job_id)
        with self._translate_errors("update", job_id):
            async with self._client.pipeline(transaction=True) as pipe:
                while True:
                    # EXEC is discarded if the key is deleted or expires after WATCH.
                    await pipe.watch(key)
                    if not await pipe.exists(key):
                        return False
                    pipe.multi()
                    pipe.hset(key, mapping=encode_fields(values))
                    pipe.expire(key, self.ttl_seconds)
                    pipe.zadd(self.index_key, {job_id: expires_at})
                    try:
                        await pipe.execute()
                    except WatchError:
                        continue
                    return True

    async def delete(self, job_id: str) -> bool:
        with self._translate_errors("delete", job_id):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(self.record_key(job_id))
                pipe.zrem(self.index_key, job_id)
                deleted, unindexed = await pipe.execute()
        return bool(deleted) or bool(unindexed)

    async def sweep(self, now: float | None = None, limit: int | None = None) -> list[str]:
        threshold = self.now() if now is None else now
        with self._translate_errors("sweep"):
            if limit is None:
                job_ids = await self._client.zrangebyscore(self.index_key, "-inf", threshold)
            else:
                job_ids = await self._client.zrangebyscore(
                    self.index_key, "-inf", threshold, start=0, num=limit
                )
            if not job_ids:
                return []
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.zrem(self.index_key, *job_ids)
                pipe.delete(*(self.record_key(job_id) for job_id in job_ids))
                await pipe.execute()
        return list(job_ids)

    async def list_ids(
        self,
        min_score: float | None = None,
        max_score: float | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
        descending: bool = False,
    ) -> list[str]:
        low = "-inf" if min_score is None else min_score
        high = "+inf" if max_score is None else max_score
        page: dict[str, int] = {}
        if limit is not None:
            page = {"start": offset, "num": limit}
        elif offset:
            page = {"start": offset, "num": -1}
        with self._translate_errors("list_ids"):
            if descending:
                job_ids = await self._client.zrevrangebyscore(self.index_key, high, low, **page)
            else:
                job_ids = await self._client.zrangebyscore(self.index_key, low, high, **page)
        return list(job_ids)

    async def count(self, min_score: float | None = None, max_score: float | None = None) -> int:
        with self._translate_errors("count"):
            if min_score is None and max_score is None:
                return int(await self._client.zcard(self.index_key))
            return int(
                await self._client.zcount(
                    self.index_key,
                    "-inf" if min_score is None else min_score,
                    "+inf" if max_score is None else max_score,
                )
            )

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisConnectionError, RedisTimeoutError):
            return False

    async def close(self) -> None:
        await self._client.aclose()

    @contextmanager
    def _translate_errors(self, operation: str, job_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise StoreUnavailableError(
                f"Redis unavailable during {operation}: {exc}",
                context=ErrorContext(job_id=job_id, operation=operation),
                cause=exc,
            ) from exc


__all__ = ["RedisStatusStore"]
