"""Application configuration helpers."""

from __future__ import annotations

from .cache import CacheConfig, get_cache_config
from .env import env_int, optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging
from .receiver import ReceiverConfig, get_receiver_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ReceiverConfig",
    "StorageConfig",
    "configure_logging",
    "env_int",
    "get_cache_config",
    "get_database_config",
    "get_receiver_config",
    "get_storage_config",
    "optional_env_var",
]
