"""
Worker execution wrapper.

StatusWorker drives a job's status record around a user-supplied async body:

    queued -> working -> complete | failed | killed

The body receives a StatusHandle (progress setters, payload, the kill
checkpoint) followed by the arguments captured at enqueue time.

Outcomes:
- record missing at entry: no-op, the body never runs
- record already final (redelivery): no-op, the body never runs
- kill requested before start: killed, the body never runs
- body returns: complete, or killed if a kill was requested meanwhile
- body raises JobKilledError (from checkpoint()): killed, not re-raised
- body raises anything else: failed, the exception is re-raised unchanged
  (even when the failed status cannot be written)
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from .cancellation import KillToken
from .container import StatusContainer
from .errors import ContainerNotFoundError, JobKilledError
from .hooks import HookManager
from .logging import Timer, get_logger
from .storage import StatusStore
from .types import JobStatus

logger = get_logger()

JobBody = Callable[..., Awaitable[Any]]


class StatusHandle:
    """What a running job body sees of its own status record."""

    def __init__(self, container: StatusContainer, kill_token: KillToken):
        self._container = container
        self._kill_token = kill_token

    @property
    def job_id(self) -> str:
        return self._container.job_id

    @property
    def args(self) -> list[Any]:
        return self._container.args

    @property
    def container(self) -> StatusContainer:
        return self._container

    @property
    def kill_token(self) -> KillToken:
        return self._kill_token

    async def set_at(self, at: int, message: str | None = None) -> None:
        await self._container.set_at(at, message)

    async def set_total(self, total: int) -> None:
        await self._container.set_total(total)

    async def set_progress(self, at: int, total: int | None = None, message: str | None = None) -> None:
        await self._container.set_progress(at, total, message)

    async def set_message(self, message: str | None) -> None:
        await self._container.set_message(message)

    async def set_payload(self, payload: Any) -> None:
        await self._container.set_payload(payload)

    async def checkpoint(self) -> None:
        """Stop here if a kill was requested.

        Raises:
            JobKilledError: Caught by the worker, which marks the job killed.
        """
        await self._kill_token.raise_if_killed()

    async def kill_requested(self) -> bool:
        """Fresh read of the kill flag, for bodies that prefer to stop on their own."""
        return await self._kill_token.check()


class StatusWorker:
    """Runs a job body under status tracking.

    Example:
        ```python
        async def resize(handle: StatusHandle, path: str, width: int) -> str:
            await handle.set_total(3)
            for step in range(3):
                await handle.checkpoint()
                ...
                await handle.set_at(step + 1, f"step {step + 1}")
            await handle.set_payload({"path": path})
            return path

        worker = StatusWorker(store, resize, job_type="resize")
        queue.register("resize", worker.perform)
        ```
    """

    def __init__(
        self,
        store: StatusStore,
        body: JobBody,
        *,
        job_type: str | None = None,
        hooks: HookManager | None = None,
    ):
        self.store = store
        self.body = body
        self.job_type = job_type
        self.hooks = hooks or HookManager()

    async def perform(self, job_id: str) -> Any:
        """Execute the job ``job_id``; the host queue calls this with the id only.

        Returns:
            The body's return value, or None when the body did not complete.

        Raises:
            Exception: Whatever the body raised, other than JobKilledError.
        """
        container = await StatusContainer.load(self.store, job_id)
        if container is None:
            logger.warning("No status record, skipping job", job_id=job_id, job_type=self.job_type)
            await self.hooks.emit("job.missing", {"job_type": self.job_type}, None)
            return None

        job_type = self.job_type or container.job_type
        with logger.job_context(job_id, job_type=job_type):
            return await self._run(container, job_type)

    async def _run(self, container: StatusContainer, job_type: str | None) -> Any:
        payload = {"job_type": job_type}

        if container.status.is_terminal:
            logger.info("Job already finished, skipping", status=container.status.value)
            await self.hooks.emit("job.skipped", payload, container.record)
            return None

        if container.kill_requested:
            await container.set_status(JobStatus.KILLED)
            await self.hooks.emit("job.killed", payload, container.record)
            return None

        if container.is_working:
            # Redelivered while a previous attempt was in flight; keep the progress.
            logger.warning("Job already working, running again")
        else:
            await container.set_status(JobStatus.WORKING)
        await self.hooks.emit("job.started", payload, container.record)

        handle = StatusHandle(container, KillToken(self.store, container.job_id))
        timer = Timer()
        try:
            result = await self.body(handle, *container.args)
        except JobKilledError:
            await self._finalize(container, JobStatus.KILLED, payload, timer)
            return None
        except Exception as exc:
            logger.log_error(exc, "Job body raised")
            try:
                await self._finalize(
                    container,
                    JobStatus.FAILED,
                    {**payload, "error_type": type(exc).__name__, "error": str(exc)},
                    timer,
                )
            except Exception as finalize_exc:
                # The body's exception is what the host queue must see.
                logger.log_error(finalize_exc, "Could not record job failure")
            raise exc

        try:
            await container.reload()
        except ContainerNotFoundError:
            logger.warning("Status record vanished during execution")
            await self.hooks.emit("job.missing", payload, None)
            return result

        if container.kill_requested:
            await self._finalize(container, JobStatus.KILLED, payload, timer)
            return None
        await self._finalize(container, JobStatus.COMPLETE, payload, timer)
        return result

    async def _finalize(
        self,
        container: StatusContainer,
        status: JobStatus,
        payload: dict[str, Any],
        timer: Timer,
    ) -> None:
        duration_ms = timer.stop()
        try:
            await container.set_status(status)
        except ContainerNotFoundError:
            logger.warning("Status record vanished during execution", final_status=status.value)
            await self.hooks.emit("job.missing", payload, None)
            return
        event = {
            JobStatus.COMPLETE: "job.completed",
            JobStatus.FAILED: "job.failed",
            JobStatus.KILLED: "job.killed",
        }[status]
        await self.hooks.emit(event, {**payload, "duration_ms": duration_ms}, container.record)


__all__ = ["StatusWorker", "StatusHandle", "JobBody"]
