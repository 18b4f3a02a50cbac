"""
Storage adapters for job-status.

- StatusStore: persistence interface
- InMemoryStatusStore: tests and single-process deployments
- RedisStatusStore: shared store for multi-process deployments
"""

from __future__ import annotations

from ..config import StoreConfig
from .base import WRITE_ONCE_FIELDS, StatusStore
from .memory import InMemoryStatusStore
from .redis import RedisStatusStore


def build_store(config: StoreConfig | None = None) -> StatusStore:
    """Create the store selected by ``config.backend``."""
    config = config or StoreConfig()

    if config.backend == "memory":
        return InMemoryStatusStore(ttl_seconds=config.ttl_seconds)

    if config.backend == "redis":
        return RedisStatusStore.from_config(config)

    raise ValueError(f"Unknown store backend: {config.backend!r}")


__all__ = [
    "StatusStore",
    "InMemoryStatusStore",
    "RedisStatusStore",
    "WRITE_ONCE_FIELDS",
    "build_store",
]
