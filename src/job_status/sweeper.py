"""
Periodic cleanup of the expiry index.

The store drops lapsed records on its own (Redis TTL); their entries in the
sorted index stay behind until ``sweep()`` removes them. StatusSweeper calls
it on a fixed interval. A failed sweep is logged and reported to hooks, and
the loop carries on.
"""

from __future__ import annotations

import asyncio

from .config import SweeperConfig
from .hooks import HookManager
from .logging import get_logger, timed
from .storage import StatusStore

logger = get_logger()


class StatusSweeper:
    """Background task removing expired index entries.

    Example:
        ```python
        sweeper = StatusSweeper(store, config=settings.sweeper)
        await sweeper.start()
        ...
        await sweeper.stop()
        ```
    """

    def __init__(
        self,
        store: StatusStore,
        *,
        config: SweeperConfig | None = None,
        hooks: HookManager | None = None,
    ):
        self.store = store
        self.config = config or SweeperConfig()
        self.hooks = hooks or HookManager()
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self, now: float | None = None) -> list[str]:
        """Run one sweep; never raises.

        Returns:
            The removed job ids (empty when the sweep failed).
        """
        try:
            with timed() as timer:
                removed = await self.store.sweep(now=now, limit=self.config.batch_limit)
        except Exception as exc:
            logger.log_error(exc, "Sweep failed", operation="sweep")
            await self.hooks.emit("sweep.error", {"error_type": type(exc).__name__, "error": str(exc)})
            return []

        if removed:
            logger.info("Swept expired status records", removed=len(removed), duration_ms=timer.elapsed_ms)
        await self.hooks.emit("sweep.completed", {"removed": len(removed), "duration_ms": timer.elapsed_ms})
        return removed

    async def run(self) -> None:
        """Sweep every ``interval_seconds`` until stop() is called."""
        while not self._stop_event.is_set():
            await self.sweep_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.config.interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def start(self) -> None:
        """Start the background loop (no-op when disabled or already running)."""
        if not self.config.enabled:
            logger.info("Sweeper disabled")
            return
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the background loop and wait for it to exit."""
        self._stop_event.set()
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None


__all__ = ["StatusSweeper"]
