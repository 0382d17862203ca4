"""Where the entry store lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DEFAULT_DB_FILENAME: Final[str] = "entrysync.db"


def _default_data_dir() -> Path:
    if os.name == "nt":
        root = optional_env_var("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = optional_env_var("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root) / "entrysync"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the SQLite store when no ``DATABASE_URI`` is set."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def sqlite_uri(self) -> str:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{data_dir / self.database_filename}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    explicit = optional_env_var("ENTRYSYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(explicit) if explicit else _default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = optional_env_var("DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri)
