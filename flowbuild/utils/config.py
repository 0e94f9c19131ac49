"""Configuration utilities for loading engine settings from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def load_env(env_file: Optional[str] = None) -> None:
    """Load environment variables from .env file.

    Args:
        env_file: Optional path to .env file. If not specified, searches
                 for .env in current and parent directories.

    Example:
        >>> from flowbuild.utils.config import load_env, EngineConfig
        >>> load_env()
        >>> config = EngineConfig.from_env()
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()


def get_config(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get configuration value from environment.

    Args:
        key: Configuration key
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    return os.getenv(key, default)


@dataclass
class EngineConfig:
    """Tunables for a FlowEngine.

    Attributes:
        event_buffer_size: How far an attached reader may lag behind the
            executor before emit() waits for it
        retention_seconds: How long finished jobs stay in the registry
        eviction_interval: Seconds between registry eviction sweeps
        archive_path: Optional SQLite file that keeps finished job records
    """

    event_buffer_size: int = 64
    retention_seconds: float = 300.0
    eviction_interval: float = 30.0
    archive_path: Optional[str] = None

    def __post_init__(self):
        if self.event_buffer_size < 1:
            raise ValueError("event_buffer_size must be at least 1")
        if self.retention_seconds < 0:
            raise ValueError("retention_seconds must not be negative")
        if self.eviction_interval <= 0:
            raise ValueError("eviction_interval must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from FLOWBUILD_* environment variables."""
        return cls(
            event_buffer_size=int(get_config("FLOWBUILD_EVENT_BUFFER_SIZE", "64")),
            retention_seconds=float(
                get_config("FLOWBUILD_JOB_RETENTION_SECONDS", "300")
            ),
            eviction_interval=float(
                get_config("FLOWBUILD_EVICTION_INTERVAL_SECONDS", "30")
            ),
            archive_path=get_config("FLOWBUILD_ARCHIVE_PATH") or None,
        )
