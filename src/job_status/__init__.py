"""
job-status: persistent, queryable status for jobs of an async job queue.

Every enqueued job gets a status record in a shared store (Redis) holding
its lifecycle state, progress, an opaque payload and a cooperative kill
flag. The enqueuing process, the executing process and any observer share
that record.

Example:
    ```python
    from job_status import LocalQueue, StatusRuntime, Settings, StoreConfig

    queue = LocalQueue()
    runtime = StatusRuntime.from_settings(queue, Settings(store=StoreConfig(backend="memory")))

    async def count_to(handle, n):
        await handle.set_total(n)
        for i in range(n):
            await handle.checkpoint()
            await handle.set_at(i + 1)

    runtime.register("count_to", count_to)
    job_id = await runtime.enqueue("count_to", 10)
    await queue.drain()
    print((await runtime.query.get(job_id)).status)  # JobStatus.COMPLETE
    ```
"""

from .cancellation import KillToken
from .config import (
    LoggingConfig,
    Settings,
    StoreConfig,
    SweeperConfig,
    configure,
    get_settings,
    load_env,
)
from .container import StatusContainer
from .errors import (
    ConfigError,
    ContainerError,
    ContainerNotFoundError,
    CorruptRecordError,
    ErrorCode,
    ErrorContext,
    IllegalTransitionError,
    InvalidConfigError,
    InvalidProgressError,
    JobKilledError,
    JobStatusError,
    StoreError,
    StoreUnavailableError,
    is_retryable,
)
from .hooks import Hook, HookManager, InMemoryMetricsHook, LoggingHook
from .ids import generate_job_id
from .interceptor import EnqueueInterceptor
from .logging import StructuredLogger, configure_logging, get_logger
from .query import StatusQuery
from .queue import (
    EnqueueMiddleware,
    JobQueue,
    LocalQueue,
    MiddlewareChain,
    QueuedJob,
    RejectingMiddleware,
)
from .runtime import StatusRuntime
from .storage import InMemoryStatusStore, RedisStatusStore, StatusStore, build_store
from .sweeper import StatusSweeper
from .types import VALID_TRANSITIONS, JobStatus, StatusRecord
from .worker import StatusHandle, StatusWorker

__version__ = "0.1.0"

__all__ = [
    # Types
    "JobStatus",
    "StatusRecord",
    "VALID_TRANSITIONS",
    # Store
    "StatusStore",
    "InMemoryStatusStore",
    "RedisStatusStore",
    "build_store",
    # Status
    "StatusContainer",
    "KillToken",
    "EnqueueInterceptor",
    "StatusWorker",
    "StatusHandle",
    "StatusQuery",
    "StatusSweeper",
    "StatusRuntime",
    "generate_job_id",
    # Host queue
    "JobQueue",
    "QueuedJob",
    "EnqueueMiddleware",
    "RejectingMiddleware",
    "MiddlewareChain",
    "LocalQueue",
    # Hooks
    "Hook",
    "HookManager",
    "InMemoryMetricsHook",
    "LoggingHook",
    # Config
    "Settings",
    "StoreConfig",
    "LoggingConfig",
    "SweeperConfig",
    "get_settings",
    "configure",
    "load_env",
    # Logging
    "StructuredLogger",
    "get_logger",
    "configure_logging",
    # Errors
    "ErrorCode",
    "ErrorContext",
    "JobStatusError",
    "ContainerError",
    "ContainerNotFoundError",
    "IllegalTransitionError",
    "InvalidProgressError",
    "StoreError",
    "StoreUnavailableError",
    "CorruptRecordError",
    "JobKilledError",
    "ConfigError",
    "InvalidConfigError",
    "is_retryable",
]
