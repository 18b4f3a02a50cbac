"""
Enqueue interceptor.

Wraps the host queue's submit call so that every submitted job has a
``queued`` status record before the queue can hand it to a worker. Only the
job id travels through the queue; the worker recovers the real arguments
from the record.
"""

from __future__ import annotations

from typing import Any, Callable

from .container import StatusContainer
from .hooks import HookManager
from .ids import generate_job_id
from .logging import get_logger
from .queue import JobQueue
from .storage import StatusStore

logger = get_logger()


class EnqueueInterceptor:
    """Creates the status record, then submits the job id to the queue.

    Example:
        ```python
        interceptor = EnqueueInterceptor(store, queue)
        job_id = await interceptor.enqueue("resize", "photo.png", 640)
        if job_id is None:
            ...  # the queue refused the job, no record is left behind
        ```
    """

    def __init__(
        self,
        store: StatusStore,
        queue: JobQueue,
        *,
        id_factory: Callable[[], str] = generate_job_id,
        hooks: HookManager | None = None,
    ):
        self.store = store
        self.queue = queue
        self.id_factory = id_factory
        self.hooks = hooks or HookManager()

    async def enqueue(self, job_type: str, *args: Any, queue_name: str | None = None) -> str | None:
        """Track and submit one job.

        Returns:
            The job id, or None when the queue rejected the submission.

        Raises:
            StoreError: If the record could not be created; nothing is submitted.
            Exception: Whatever the queue raised, after the record is removed.
        """
        job_id = self.id_factory()
        container = await StatusContainer.create(
            self.store, job_id, args, job_type=job_type, queue=queue_name
        )

        try:
            accepted = await self.queue.enqueue(job_id, job_type, [job_id])
        except Exception:
            logger.exception("Queue raised on enqueue", job_id=job_id, job_type=job_type)
            await self._discard(job_id)
            raise

        if not accepted:
            logger.info("Job rejected by queue", job_id=job_id, job_type=job_type)
            await self._discard(job_id)
            await self.hooks.emit("job.rejected", {"job_type": job_type}, container.record)
            return None

        logger.info("Job enqueued", job_id=job_id, job_type=job_type, queue=queue_name)
        await self.hooks.emit("job.enqueued", {"job_type": job_type}, container.record)
        return job_id

    async def _discard(self, job_id: str) -> None:
        try:
            await self.store.delete(job_id)
        except Exception as exc:
            logger.warning("Could not delete record of unsubmitted job", job_id=job_id, error=str(exc))


__all__ = ["EnqueueInterceptor"]
