"""
Read-side API over tracked jobs, for dashboards and operators.
"""

from __future__ import annotations

from collections.abc import Iterable

from .container import StatusContainer
from .logging import get_logger
from .storage import StatusStore
from .types import JobStatus, StatusRecord

logger = get_logger()


class StatusQuery:
    """Lookups, listing, kill requests and deletion by job id.

    Listing walks the expiry index, so the most recently touched jobs come
    first when ``descending`` is set.
    """

    def __init__(self, store: StatusStore):
        self.store = store

    async def get(self, job_id: str) -> StatusRecord | None:
        return await self.store.load(job_id)

    async def list_ids(
        self,
        *,
        offset: int = 0,
        limit: int | None = None,
        descending: bool = True,
    ) -> list[str]:
        """Ids of indexed jobs whose records have not yet expired."""
        return await self.store.list_ids(
            min_score=self.store.now() + 1,
            offset=offset,
            limit=limit,
            descending=descending,
        )

    async def list(
        self,
        *,
        status: JobStatus | str | None = None,
        offset: int = 0,
        limit: int | None = None,
        descending: bool = True,
    ) -> list[StatusRecord]:
        """Load records page by page; ids whose record is gone are skipped.

        With a ``status`` filter, paging applies to the filtered result.
        """
        if status is None:
            job_ids = await self.list_ids(offset=offset, limit=limit, descending=descending)
            return await self._load_many(job_ids)

        wanted = JobStatus(status)
        records = [
            record
            for record in await self._load_many(await self.list_ids(descending=descending))
            if record.status == wanted
        ]
        end = None if limit is None else offset + limit
        return records[offset:end]

    async def count(self, status: JobStatus | str | None = None) -> int:
        """Number of live jobs, optionally only those in ``status``."""
        if status is None:
            return await self.store.count(min_score=self.store.now() + 1)
        return len(await self.list(status=status))

    async def pct_complete(self, job_id: str) -> int | None:
        record = await self.store.load(job_id)
        return None if record is None else record.pct_complete

    async def request_kill(self, job_id: str) -> bool:
        """Set the kill flag of ``job_id``.

        Returns:
            False if there is no record for ``job_id``.
        """
        container = await StatusContainer.load(self.store, job_id)
        if container is None:
            logger.info("Kill requested for unknown job", job_id=job_id)
            return False
        await container.request_kill()
        return True

    async def delete(self, job_ids: Iterable[str] | None = None) -> int:
        """Delete the given records, or every indexed record when ``job_ids`` is None.

        Returns:
            How many records were deleted.
        """
        if job_ids is None:
            job_ids = await self.store.list_ids()
        deleted = 0
        for job_id in job_ids:
            if await self.store.delete(job_id):
                deleted += 1
        logger.info("Deleted status records", deleted=deleted)
        return deleted

    async def _load_many(self, job_ids: Iterable[str]) -> list[StatusRecord]:
        records = []
        for job_id in job_ids:
            record = await self.store.load(job_id)
            if record is not None:
                records.append(record)
        return records


__all__ = ["StatusQuery"]
