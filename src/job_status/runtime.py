"""
StatusRuntime: wires the overlay together from Settings.

One runtime per process holds the shared store client and hands out the
interceptor (enqueue side), workers (execution side), the query API and the
sweeper.
"""

from __future__ import annotations

from typing import Any

from .config import Settings, get_settings
from .hooks import HookManager
from .interceptor import EnqueueInterceptor
from .logging import configure_logging, get_logger
from .query import StatusQuery
from .queue import JobQueue
from .storage import StatusStore, build_store
from .sweeper import StatusSweeper
from .worker import JobBody, StatusWorker

logger = get_logger()


class StatusRuntime:
    """Process-wide entry point.

    Example:
        ```python
        runtime = StatusRuntime.from_settings(queue)
        runtime.register("resize", resize)
        await runtime.start()

        job_id = await runtime.enqueue("resize", "photo.png", 640)
        record = await runtime.query.get(job_id)

        await runtime.close()
        ```
    """

    def __init__(
        self,
        store: StatusStore,
        queue: JobQueue,
        *,
        settings: Settings | None = None,
        hooks: HookManager | None = None,
    ):
        self.settings = settings or Settings()
        self.store = store
        self.queue = queue
        self.hooks = hooks or HookManager()
        self.interceptor = EnqueueInterceptor(store, queue, hooks=self.hooks)
        self.query = StatusQuery(store)
        self.sweeper = StatusSweeper(store, config=self.settings.sweeper, hooks=self.hooks)

    @classmethod
    def from_settings(
        cls,
        queue: JobQueue,
        settings: Settings | None = None,
        *,
        hooks: HookManager | None = None,
    ) -> StatusRuntime:
        """Configure logging and build the store named by ``settings``."""
        settings = settings or get_settings()
        configure_logging(
            level=settings.logging.level,
            json_output=settings.logging.format == "json",
            name=settings.logging.logger_name,
        )
        return cls(build_store(settings.store), queue, settings=settings, hooks=hooks)

    async def enqueue(self, job_type: str, *args: Any, queue_name: str | None = None) -> str | None:
        return await self.interceptor.enqueue(job_type, *args, queue_name=queue_name)

    def worker(self, body: JobBody, *, job_type: str | None = None) -> StatusWorker:
        return StatusWorker(self.store, body, job_type=job_type, hooks=self.hooks)

    def register(self, job_type: str, body: JobBody) -> StatusWorker:
        """Register ``body`` with a queue that routes by job type (e.g. LocalQueue)."""
        worker = self.worker(body, job_type=job_type)
        register = getattr(self.queue, "register", None)
        if register is None:
            raise TypeError(f"{type(self.queue).__name__} does not accept handler registration")
        register(job_type, worker.perform)
        return worker

    async def start(self) -> None:
        if not await self.store.ping():
            logger.warning("Status store did not answer ping")
        await self.sweeper.start()

    async def close(self) -> None:
        await self.sweeper.stop()
        await self.store.close()


__all__ = ["StatusRuntime"]
