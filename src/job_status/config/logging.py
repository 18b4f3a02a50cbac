"""
Logging and sweeper configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import LogFormat, LogLevel


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: LogLevel = "INFO"
    format: LogFormat = "json"
    logger_name: str = "job_status"

    def __post_init__(self):
        """Validate configuration after initialization."""
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if self.level not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}. Must be one of {valid_levels}")
        valid_formats = ("text", "json")
        if self.format not in valid_formats:
            raise ValueError(f"Invalid log format: {self.format}. Must be one of {valid_formats}")


@dataclass
class SweeperConfig:
    """Configuration for the expired-record sweeper."""

    enabled: bool = True
    interval_seconds: float = 60.0
    batch_limit: int = 1000

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.batch_limit <= 0:
            raise ValueError("batch_limit must be positive")


__all__ = ["LoggingConfig", "SweeperConfig"]
