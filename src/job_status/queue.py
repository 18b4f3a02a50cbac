"""Host queue contract and an in-process reference queue.

The status overlay sits on top of an existing job queue. All it needs from
that queue is:

- ``enqueue(job_id, job_type, args) -> bool`` (False = rejected)
- executing a job by calling the registered handler with the job id

``LocalQueue`` implements that contract in-process, with an enqueue
middleware chain in front of the push, so the overlay can be exercised and
demonstrated without a queue server.

Key design:
- EnqueueMiddleware is an abstract base class; returning False rejects
- MiddlewareChain composes middlewares (first added = outermost)
- Handler failures reach the caller of ``run_next()`` unchanged
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, Sequence

from .logging import get_logger

logger = get_logger()


@dataclass
class QueuedJob:
    """A job as seen by the host queue."""
    job_id: str
    job_type: str
    args: list[Any] = field(default_factory=list)
    queue: str = "default"
    metadata: dict[str, Any] = field(default_factory=dict)


class JobQueue(Protocol):
    """What the status overlay consumes from a host queue."""

    async def enqueue(self, job_id: str, job_type: str, args: Sequence[Any]) -> bool:
        """Submit a job; False means the submission was refused."""
        ...


NextHandler = Callable[[QueuedJob], Awaitable[bool]]
JobHandler = Callable[..., Awaitable[Any]]


class EnqueueMiddleware(ABC):
    """Base class for enqueue middleware.

    Call next(job) to continue the chain; return False to reject the job.
    """

    @abstractmethod
    async def __call__(self, job: QueuedJob, next: NextHandler) -> bool:
        ...


class RejectingMiddleware(EnqueueMiddleware):
    """Refuses every job whose type matches ``predicate`` (all jobs by default)."""

    def __init__(self, predicate: Callable[[QueuedJob], bool] | None = None):
        self._predicate = predicate or (lambda job: True)

    async def __call__(self, job: QueuedJob, next: NextHandler) -> bool:
        if self._predicate(job):
            logger.info("Job refused by middleware", job_id=job.job_id, job_type=job.job_type)
            return False
        return await next(job)


class MiddlewareChain:
    """Composes middleware into an enqueue chain.

    Middleware is applied in order: first added = outermost wrapper.
    """

    def __init__(self, middlewares: list[EnqueueMiddleware] | None = None):
        self._middlewares = list(middlewares or [])

    def add(self, middleware: EnqueueMiddleware) -> MiddlewareChain:
        """Add middleware to the chain. Returns self for chaining."""
        self._middlewares.append(middleware)
        return self

    def __len__(self) -> int:
        return len(self._middlewares)

    def build(self, handler: NextHandler) -> NextHandler:
        """Build the chain by wrapping the handler with all middleware."""
        result = handler
        for middleware in reversed(self._middlewares):
            async def wrapped(job: QueuedJob, _mw=middleware, _next=result) -> bool:
                return await _mw(job, _next)
            result = wrapped
        return result


class LocalQueue:
    """In-process FIFO queue implementing the host queue contract.

    Example:
        ```python
        queue = LocalQueue()
        queue.register("resize", StatusWorker(store, resize).perform)
        await queue.enqueue(job_id, "resize", [job_id])
        await queue.drain()
        ```
    """

    def __init__(
        self,
        name: str = "default",
        middlewares: list[EnqueueMiddleware] | None = None,
    ):
        self.name = name
        self.middlewares = MiddlewareChain(middlewares)
        self.failures: list[tuple[QueuedJob, BaseException]] = []
        self._handlers: dict[str, JobHandler] = {}
        self._pending: deque[QueuedJob] = deque()

    def register(self, job_type: str, handler: JobHandler) -> None:
        """Route jobs of ``job_type`` to ``handler``."""
        self._handlers[job_type] = handler

    @property
    def pending(self) -> list[QueuedJob]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    async def enqueue(self, job_id: str, job_type: str, args: Sequence[Any]) -> bool:
        job = QueuedJob(job_id=job_id, job_type=job_type, args=list(args), queue=self.name)
        return await self.middlewares.build(self._push)(job)

    async def _push(self, job: QueuedJob) -> bool:
        self._pending.append(job)
        logger.debug("Job pushed", job_id=job.job_id, job_type=job.job_type, queue=self.name)
        return True

    async def run_next(self) -> QueuedJob | None:
        """Execute the oldest pending job.

        Returns:
            The job that ran, or None if nothing was pending.

        Raises:
            LookupError: If no handler is registered for the job type.
            Exception: Whatever the handler raised (also kept in ``failures``).
        """
        if not self._pending:
            return None
        job = self._pending.popleft()
        handler = self._handlers.get(job.job_type)
        if handler is None:
            raise LookupError(f"No handler registered for job type {job.job_type!r}")
        try:
            await handler(*job.args)
        except Exception as exc:
            self.failures.append((job, exc))
            logger.warning("Job handler raised", job_id=job.job_id, job_type=job.job_type, error=str(exc))
            raise
        return job

    async def drain(self, *, raise_errors: bool = False) -> int:
        """Run pending jobs until the queue is empty. Returns how many ran."""
        ran = 0
        while self._pending:
            try:
                await self.run_next()
            except Exception:
                if raise_errors:
                    raise
            ran += 1
        return ran


__all__ = [
    "QueuedJob",
    "JobQueue",
    "EnqueueMiddleware",
    "RejectingMiddleware",
    "MiddlewareChain",
    "LocalQueue",
    "NextHandler",
    "JobHandler",
]
