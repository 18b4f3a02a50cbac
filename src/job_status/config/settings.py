"""
Settings master configuration and global helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from dotenv import find_dotenv, load_dotenv

from ..config_schema import CONFIG_SCHEMA
from ..errors import InvalidConfigError
from .logging import LoggingConfig, SweeperConfig
from .store import StoreConfig


@dataclass
class Settings:
    """
    Master configuration for job-status.

    Aggregates the store, logging and sweeper sections into a single object
    that can be loaded from environment variables, files, or constructed
    programmatically.
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    sweeper: SweeperConfig = field(default_factory=SweeperConfig)

    @classmethod
    def from_env(cls, prefix: str = "JOB_STATUS_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            JOB_STATUS_STORE_BACKEND=redis
            JOB_STATUS_REDIS_URL=redis://cache:6379/2
            JOB_STATUS_TTL_SECONDS=86400
        """
        settings = cls()

        # Store settings
        if backend := os.getenv(f"{prefix}STORE_BACKEND"):
            settings.store.backend = backend.lower()  # type: ignore
        if url := os.getenv(f"{prefix}REDIS_URL"):
            settings.store.redis_url = url
        if key_prefix := os.getenv(f"{prefix}KEY_PREFIX"):
            settings.store.key_prefix = key_prefix
        if ttl := os.getenv(f"{prefix}TTL_SECONDS"):
            settings.store.ttl_seconds = int(ttl)
        if socket_timeout := os.getenv(f"{prefix}SOCKET_TIMEOUT"):
            settings.store.socket_timeout = float(socket_timeout)

        # Logging settings
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            settings.logging.level = level.upper()  # type: ignore
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            settings.logging.format = log_format.lower()  # type: ignore

        # Sweeper settings
        if enabled := os.getenv(f"{prefix}SWEEPER_ENABLED"):
            settings.sweeper.enabled = enabled.lower() == "true"
        if interval := os.getenv(f"{prefix}SWEEPER_INTERVAL_SECONDS"):
            settings.sweeper.interval_seconds = float(interval)
        if batch_limit := os.getenv(f"{prefix}SWEEPER_BATCH_LIMIT"):
            settings.sweeper.batch_limit = int(batch_limit)

        # Re-run section validation on the overridden values
        settings.store.__post_init__()
        settings.logging.__post_init__()
        settings.sweeper.__post_init__()

        return settings

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise InvalidConfigError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def default(cls) -> Settings:
        return cls()

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary.

        The dictionary is validated against the configuration schema
        before the Settings object is built.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise InvalidConfigError(f"Configuration validation failed: {e.message}", cause=e) from e

        settings = cls()

        if "store" in data:
            settings.store = StoreConfig(**data["store"])

        if "logging" in data:
            settings.logging = LoggingConfig(
                **{k: v for k, v in data["logging"].items() if hasattr(settings.logging, k)}
            )

        if "sweeper" in data:
            settings.sweeper = SweeperConfig(
                **{k: v for k, v in data["sweeper"].items() if hasattr(settings.sweeper, k)}
            )

        return settings

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        import dataclasses

        return dataclasses.asdict(self)


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating with defaults if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Settings | None = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override specific sections (store=, logging=, sweeper=)

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if hasattr(_global_settings, key):
            setattr(_global_settings, key, value)

    return _global_settings


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "get_settings", "configure", "load_env"]
