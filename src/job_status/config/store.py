"""
Status store configuration.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from .base import DEFAULT_TTL_SECONDS, StoreBackendType


@dataclass
class StoreConfig:
    """Configuration for the status record store.

    ``ttl_seconds`` is the retention window: every write pushes the record's
    expiry to now + ttl_seconds.
    """

    backend: StoreBackendType = "redis"

    # Redis settings
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    key_prefix: str = "job_status"
    socket_timeout: float | None = 5.0

    # Retention
    ttl_seconds: int = DEFAULT_TTL_SECONDS

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.backend not in ("memory", "redis"):
            raise ValueError(f"Invalid store backend: {self.backend}")
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if self.socket_timeout is not None and self.socket_timeout <= 0:
            raise ValueError("socket_timeout must be positive")
        if not re.fullmatch(r"[A-Za-z0-9_.:-]+", self.key_prefix or ""):
            raise ValueError(f"Invalid key_prefix: {self.key_prefix!r}")
        if self.backend == "redis" and not self.redis_url.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must be a valid Redis connection string")


__all__ = ["StoreConfig"]
