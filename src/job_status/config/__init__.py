"""
Configuration system for job-status.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""

from .base import DEFAULT_TTL_SECONDS, LogFormat, LogLevel, StoreBackendType
from .logging import LoggingConfig, SweeperConfig
from .settings import Settings, configure, get_settings, load_env
from .store import StoreConfig

__all__ = [
    # Types
    "StoreBackendType",
    "LogLevel",
    "LogFormat",
    "DEFAULT_TTL_SECONDS",
    # Section configs
    "StoreConfig",
    "LoggingConfig",
    "SweeperConfig",
    # Master config
    "Settings",
    # Global functions
    "get_settings",
    "configure",
    "load_env",
]
