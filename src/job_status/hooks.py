"""
Lightweight lifecycle hooks.

Events emitted by the interceptor, the worker and the sweeper:

- ``job.enqueued`` / ``job.rejected``
- ``job.started`` / ``job.completed`` / ``job.failed`` / ``job.killed``
- ``job.missing`` (record gone before execution) / ``job.skipped`` (already final)
- ``sweep.completed`` / ``sweep.error``
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

from .logging import StructuredLogger, get_logger


class Hook(Protocol):
    """Protocol for lifecycle hooks."""

    async def emit(self, event: str, payload: dict, context: Any) -> None:
        """Emit an event with payload and the job's status record (or None)."""
        ...


class HookManager:
    """Manages multiple hooks and broadcasts events to all of them."""

    def __init__(self, hooks: Iterable[Hook] | None = None) -> None:
        self._hooks = list(hooks or [])

    def add(self, hook: Hook) -> None:
        self._hooks.append(hook)

    def __len__(self) -> int:
        return len(self._hooks)

    async def emit(self, event: str, payload: dict, context: Any = None) -> None:
        """Emit an event to all registered hooks."""
        for hook in self._hooks:
            result = hook.emit(event, payload, context)
            if asyncio.iscoroutine(result):
                await result


class InMemoryMetricsHook:
    """
    Simple metrics accumulator for tests and local inspection.

    Counts every event and keeps run durations of finished jobs.
    """

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.durations_ms: list[float] = []
        self.errors: list[dict[str, Any]] = []

    async def emit(self, event: str, payload: dict, context: Any) -> None:
        self.counters[event] = self.counters.get(event, 0) + 1

        if event in ("job.completed", "job.failed", "job.killed") and "duration_ms" in payload:
            self.durations_ms.append(float(payload["duration_ms"]))

        if event in ("job.failed", "sweep.error"):
            self.errors.append({"event": event, "payload": payload})

    def count(self, event: str) -> int:
        return self.counters.get(event, 0)

    def snapshot(self) -> dict[str, Any]:
        """Return a snapshot of all collected metrics."""
        return {
            "counters": dict(self.counters),
            "durations_ms": list(self.durations_ms),
            "errors": list(self.errors),
        }

    def reset(self) -> dict[str, Any]:
        """Reset metrics and return the previous snapshot."""
        snapshot = self.snapshot()
        self.counters.clear()
        self.durations_ms.clear()
        self.errors.clear()
        return snapshot


class LoggingHook:
    """Writes every lifecycle event to the structured logger at DEBUG."""

    def __init__(self, logger: StructuredLogger | None = None) -> None:
        self._logger = logger or get_logger()

    async def emit(self, event: str, payload: dict, context: Any) -> None:
        job_id = getattr(context, "job_id", None)
        self._logger.debug(f"hook {event}", hook_event=event, hook_job_id=job_id, **payload)


__all__ = ["Hook", "HookManager", "InMemoryMetricsHook", "LoggingHook"]
