"""Kill tokens for cooperative job interruption.

A KillToken is the job body's view of the ``kill_requested`` flag of its
status record. Any process can set the flag; the running body only notices
it when it reaches a checkpoint and asks the token.

Key design:
- The flag lives in the store, the token only caches the last observation
- Each check yields to the event loop before reading, so a busy body still
  lets other tasks (including a local killer) run
- Cooperative: nothing interrupts the body between checkpoints
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable

from .errors import JobKilledError

if TYPE_CHECKING:
    from .storage import StatusStore


class KillToken:
    """Store-backed token for cooperative cancellation of one job.

    Usage:
        token = KillToken(store, job_id)

        # In long-running job code:
        for chunk in chunks:
            await token.raise_if_killed()
            process(chunk)

        # From any other process:
        await StatusContainer.get(store, job_id).request_kill()
    """

    def __init__(self, store: StatusStore, job_id: str, *, killed: bool = False):
        self._store = store
        self._job_id = job_id
        self._killed = killed
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def job_id(self) -> str:
        return self._job_id

    @property
    def is_killed(self) -> bool:
        """Kill state as of the last check (no store access)."""
        return self._killed

    async def check(self) -> bool:
        """Yield to the event loop, then read the persisted kill flag.

        A record that disappeared mid-run (deleted or expired) reads as not
        killed; the last observation is kept.
        """
        await asyncio.sleep(0)
        if self._killed:
            return True
        record = await self._store.load(self._job_id)
        if record is not None and record.kill_requested:
            self._mark_killed()
        return self._killed

    async def raise_if_killed(self) -> None:
        """Raise JobKilledError if a kill was requested.

        This is the checkpoint job bodies call at natural breakpoints.

        Raises:
            JobKilledError: If a kill was requested for this job.
        """
        if await self.check():
            raise JobKilledError(self._job_id)

    async def wait(self, poll_interval: float = 1.0) -> None:
        """Block until a kill is observed, polling the store."""
        while not await self.check():
            await asyncio.sleep(poll_interval)

    def on_kill(self, callback: Callable[[], Any]) -> None:
        """Register callback for the first observed kill.

        Callback is invoked immediately if a kill was already observed.
        """
        self._callbacks.append(callback)
        if self._killed:
            callback()

    def _mark_killed(self) -> None:
        if self._killed:
            return
        self._killed = True
        for cb in self._callbacks:
            cb()


__all__ = ["KillToken", "JobKilledError"]
