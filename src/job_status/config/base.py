"""
Base types for configuration.
"""

from __future__ import annotations

from typing import Literal

StoreBackendType = Literal["memory", "redis"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]

# Thirty days, the retention window records get unless configured otherwise.
DEFAULT_TTL_SECONDS = 60 * 60 * 24 * 30


__all__ = ["StoreBackendType", "LogLevel", "LogFormat", "DEFAULT_TTL_SECONDS"]
