"""
Status store interface.

A store keeps one record per job id plus a sorted index of job ids scored
by expiry time. Writes to a single record are applied as one store
operation; nothing spans more than one record.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping

from ..config import DEFAULT_TTL_SECONDS
from ..types import RECORD_FIELDS, StatusRecord

# Fields the store refuses to rewrite through update(): they are fixed at creation.
WRITE_ONCE_FIELDS: frozenset[str] = frozenset({"job_id", "args", "created_at"})


class StatusStore(ABC):
    """Abstract interface for status record persistence.

    Implementations must be safe for concurrent use by one writer and many
    readers per job id.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        time_func: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._time = time_func

    def now(self) -> int:
        return int(self._time())

    @abstractmethod
    async def save(self, record: StatusRecord) -> StatusRecord:
        """Write the full record, refresh its expiry and its index entry.

        Returns:
            The record as persisted (``updated_at``/``expires_at`` refreshed).
        """
        ...

    @abstractmethod
    async def load(self, job_id: str) -> StatusRecord | None:
        """Get a record by job id. ``None`` when unknown or expired."""
        ...

    @abstractmethod
    async def update(self, job_id: str, fields: Mapping[str, Any]) -> bool:
        """Write a subset of fields of an existing record in one operation.

        Fields not named are left as they are in the store. Expiry and the
        index entry are refreshed.

        Returns:
            False if no record exists for ``job_id``.
        """
        ...

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        """Delete a record and its index entry. Returns True if deleted."""
        ...

    @abstractmethod
    async def sweep(self, now: float | None = None, limit: int | None = None) -> list[str]:
        """Remove index entries (and leftover records) expiring at or before ``now``.

        Returns:
            The removed job ids.
        """
        ...

    @abstractmethod
    async def list_ids(
        self,
        min_score: float | None = None,
        max_score: float | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
        descending: bool = False,
    ) -> list[str]:
        """List job ids whose expiry score lies in ``[min_score, max_score]``."""
        ...

    @abstractmethod
    async def count(self, min_score: float | None = None, max_score: float | None = None) -> int:
        """Count index entries within the score range."""
        ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def _stamp(self, record: StatusRecord) -> StatusRecord:
        now = self.now()
        return record.with_updates(updated_at=now, expires_at=now + self.ttl_seconds)

    def _prepare_update(self, job_id: str, fields: Mapping[str, Any]) -> tuple[dict[str, Any], int]:
        """Validate a partial write and add bookkeeping fields.

        Returns:
            The fields to write and the new expiry score.
        """
        unknown = set(fields) - RECORD_FIELDS
        if unknown:
            raise ValueError(f"Unknown record fields: {sorted(unknown)}")
        frozen = set(fields) & WRITE_ONCE_FIELDS
        if frozen:
            raise ValueError(f"Fields cannot be rewritten: {sorted(frozen)}")

        now = self.now()
        expires_at = now + self.ttl_seconds
        values = dict(fields)
        values["job_id"] = job_id
        values["updated_at"] = now
        values["expires_at"] = expires_at
        return values, expires_at


__all__ = ["StatusStore", "WRITE_ONCE_FIELDS"]
