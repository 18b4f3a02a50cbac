"""
Status container: the in-process view of one job's status record.

Writes go straight to the store as partial field updates, so a progress
write from the executing process never overwrites a kill request written
concurrently by another process. Reads are served from the last loaded
snapshot; call ``reload()`` to observe other processes' writes.

The container does no locking. Exactly one process (the one executing the
job) writes progress and status for a given job id at a time; any number of
processes may read it or request a kill.
"""

from __future__ import annotations

from typing import Any, Sequence

from .errors import ContainerNotFoundError, IllegalTransitionError
from .logging import get_logger
from .storage import StatusStore
from .types import JobStatus, StatusRecord, validate_progress

logger = get_logger()


class StatusContainer:
    """Accessor over the persisted status of a single job."""

    def __init__(self, store: StatusStore, record: StatusRecord):
        self._store = store
        self._record = record

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        store: StatusStore,
        job_id: str,
        args: Sequence[Any] = (),
        *,
        job_type: str | None = None,
        queue: str | None = None,
    ) -> StatusContainer:
        """Persist a new ``queued`` record for ``job_id``.

        Store failures propagate: a job must not be submitted untracked.
        """
        record = StatusRecord(
            job_id=job_id,
            status=JobStatus.QUEUED,
            args=list(args),
            job_type=job_type,
            queue=queue,
        )
        record = await store.save(record)
        return cls(store, record)

    @classmethod
    async def load(cls, store: StatusStore, job_id: str) -> StatusContainer | None:
        """Load the container for ``job_id``; ``None`` if there is no record."""
        record = await store.load(job_id)
        if record is None:
            return None
        return cls(store, record)

    @classmethod
    async def get(cls, store: StatusStore, job_id: str) -> StatusContainer:
        """Like load() but a missing record raises ContainerNotFoundError."""
        container = await cls.load(store, job_id)
        if container is None:
            raise ContainerNotFoundError(job_id, operation="load")
        return container

    async def reload(self) -> StatusContainer:
        """Replace every field with the latest persisted values."""
        record = await self._store.load(self.job_id)
        if record is None:
            raise ContainerNotFoundError(self.job_id, operation="reload")
        self._record = record
        return self

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def record(self) -> StatusRecord:
        return self._record

    @property
    def job_id(self) -> str:
        return self._record.job_id

    @property
    def status(self) -> JobStatus:
        return self._record.status

    @property
    def at(self) -> int:
        return self._record.at

    @property
    def total(self) -> int:
        return self._record.total

    @property
    def message(self) -> str | None:
        return self._record.message

    @property
    def payload(self) -> Any:
        return self._record.payload

    @property
    def args(self) -> list[Any]:
        return list(self._record.args)

    @property
    def job_type(self) -> str | None:
        return self._record.job_type

    @property
    def queue(self) -> str | None:
        return self._record.queue

    @property
    def kill_requested(self) -> bool:
        """Kill flag as of the last load/reload."""
        return self._record.kill_requested

    @property
    def created_at(self) -> int:
        return self._record.created_at

    @property
    def updated_at(self) -> int:
        return self._record.updated_at

    @property
    def expires_at(self) -> int:
        return self._record.expires_at

    @property
    def pct_complete(self) -> int:
        return self._record.pct_complete

    @property
    def is_queued(self) -> bool:
        return self.status == JobStatus.QUEUED

    @property
    def is_working(self) -> bool:
        return self.status == JobStatus.WORKING

    @property
    def is_complete(self) -> bool:
        return self.status == JobStatus.COMPLETE

    @property
    def is_failed(self) -> bool:
        return self.status == JobStatus.FAILED

    @property
    def is_killed(self) -> bool:
        return self.status == JobStatus.KILLED

    @property
    def is_killable(self) -> bool:
        """Whether a kill request can still change the outcome."""
        return self.status.is_active

    async def fetch_kill_requested(self) -> bool:
        """Read the persisted kill flag, bypassing the local snapshot."""
        record = await self._store.load(self.job_id)
        if record is None:
            raise ContainerNotFoundError(self.job_id, operation="fetch_kill_requested")
        self._record = self._record.with_updates(kill_requested=record.kill_requested)
        return record.kill_requested

    def to_dict(self) -> dict[str, Any]:
        return self._record.to_dict()

    # ------------------------------------------------------------------
    # Writes (each one persists immediately)
    # ------------------------------------------------------------------

    async def set_at(self, at: int, message: str | None = None) -> None:
        """Set progress; ``message`` is cleared unless supplied again."""
        validate_progress(at, self.total)
        await self._write("set_at", at=at, message=message)

    async def set_total(self, total: int) -> None:
        validate_progress(self.at, total)
        await self._write("set_total", total=total)

    async def set_message(self, message: str | None) -> None:
        await self._write("set_message", message=message)

    async def set_payload(self, payload: Any) -> None:
        """Attach an arbitrary JSON-serializable value; it survives progress updates."""
        await self._write("set_payload", payload=payload)

    async def set_progress(self, at: int, total: int | None = None, message: str | None = None) -> None:
        """Set ``at``, ``total`` and ``message`` in a single store write."""
        total = self.total if total is None else total
        validate_progress(at, total)
        await self._write("set_progress", at=at, total=total, message=message)

    async def set_status(self, new_status: JobStatus | str) -> None:
        """Move to ``new_status``; entering a terminal status clears ``message``.

        Raises:
            IllegalTransitionError: If the lifecycle graph has no such edge.
        """
        new_status = JobStatus(new_status)
        current = self.status
        if not current.can_transition_to(new_status):
            raise IllegalTransitionError(current.value, new_status.value, job_id=self.job_id)
        if new_status.is_terminal:
            await self._write("set_status", status=new_status, message=None)
        else:
            await self._write("set_status", status=new_status)
        logger.log_transition(current.value, new_status.value, job_id=self.job_id)

    async def request_kill(self) -> None:
        """Ask the executing process to stop at its next checkpoint.

        Fire-and-forget: poll the status to see whether the job stopped.
        """
        await self._write("request_kill", kill_requested=True)
        logger.info("Kill requested", job_id=self.job_id, status=self.status.value)

    async def delete(self) -> bool:
        return await self._store.delete(self.job_id)

    async def _write(self, operation: str, **fields: Any) -> None:
        if not await self._store.update(self.job_id, fields):
            raise ContainerNotFoundError(self.job_id, operation=operation)
        self._record = self._record.with_updates(updated_at=self._store.now(), **fields)

    def __repr__(self) -> str:
        return (
            f"StatusContainer(job_id={self.job_id!r}, status={self.status.value!r}, "
            f"at={self.at}, total={self.total})"
        )


__all__ = ["StatusContainer"]
