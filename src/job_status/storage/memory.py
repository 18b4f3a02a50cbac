"""
In-memory status store.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from ..types import JobStatus, StatusRecord
from .base import StatusStore


class InMemoryStatusStore(StatusStore):
    """In-memory status store implementation.

    Suitable for testing and single-process deployments. Expiry is emulated
    with the injected clock: an expired record reads as missing, its index
    entry stays until swept.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._records: dict[str, StatusRecord] = {}
        self._index: dict[str, int] = {}  # job_id -> expires_at
        self._lock = asyncio.Lock()

    async def save(self, record: StatusRecord) -> StatusRecord:
        record = self._stamp(record)
        async with self._lock:
            self._records[record.job_id] = record.with_updates(args=list(record.args))
            self._index[record.job_id] = record.expires_at
        return record

    async def load(self, job_id: str) -> StatusRecord | None:
        async with self._lock:
            record = self._live(job_id)
            if record is None:
                return None
            return record.with_updates(args=list(record.args))

    async def update(self, job_id: str, fields: Mapping[str, Any]) -> bool:
        values, expires_at = self._prepare_update(job_id, fields)
        if "status" in values:
            values["status"] = JobStatus(values["status"])
        async with self._lock:
            record = self._live(job_id)
            if record is None:
                return False
            self._records[job_id] = record.with_updates(**values)
            self._index[job_id] = expires_at
            return True

    async def delete(self, job_id: str) -> bool:
        async with self._lock:
            record = self._records.pop(job_id, None)
            indexed = self._index.pop(job_id, None)
            return record is not None or indexed is not None

    async def sweep(self, now: float | None = None, limit: int | None = None) -> list[str]:
        threshold = self.now() if now is None else now
        async with self._lock:
            expired = sorted(
                (score, job_id) for job_id, score in self._index.items() if score <= threshold
            )
            if limit is not None:
                expired = expired[:limit]
            removed = []
            for _, job_id in expired:
                self._index.pop(job_id, None)
                self._records.pop(job_id, None)
                removed.append(job_id)
            return removed

    async def list_ids(
        self,
        min_score: float | None = None,
        max_score: float | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
        descending: bool = False,
    ) -> list[str]:
        async with self._lock:
            entries = sorted(
                (
                    (score, job_id)
                    for job_id, score in self._index.items()
                    if _in_range(score, min_score, max_score)
                ),
                reverse=descending,
            )
        ids = [job_id for _, job_id in entries]
        end = None if limit is None else offset + limit
        return ids[offset:end]

    async def count(self, min_score: float | None = None, max_score: float | None = None) -> int:
        async with self._lock:
            return sum(1 for score in self._index.values() if _in_range(score, min_score, max_score))

    def _live(self, job_id: str) -> StatusRecord | None:
        record = self._records.get(job_id)
        if record is None:
            return None
        if record.expires_at <= self.now():
            # Lapsed TTL: the record is gone, the index entry waits for sweep().
            del self._records[job_id]
            return None
        return record


def _in_range(score: float, min_score: float | None, max_score: float | None) -> bool:
    if min_score is not None and score < min_score:
        return False
    if max_score is not None and score > max_score:
        return False
    return True


__all__ = ["InMemoryStatusStore"]
