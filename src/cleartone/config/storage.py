"""Local storage locations and database connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_float
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "cleartone"
DEFAULT_DB_FILENAME: Final[str] = "cleartone.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
DEFAULT_DB_TIMEOUT_SECONDS: Final[float] = 5.0


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Directory holding the default SQLite database and the HTTP response cache."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def directory(self, *, create: bool = True) -> Path:
        resolved = self.data_dir.expanduser().resolve()
        if create:
            resolved.mkdir(parents=True, exist_ok=True)
        return resolved

    def database_path(self, *, create: bool = True) -> Path:
        return self.directory(create=create) / self.database_filename

    def http_cache_path(self, *, create: bool = True) -> Path:
        return self.directory(create=create) / self.http_cache_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    # bounds connection checkout and SQLite lock waits
    timeout_seconds: float = DEFAULT_DB_TIMEOUT_SECONDS


def _platform_data_home() -> Path:
    if os.name == "nt":
        return Path(os.getenv("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def get_storage_config() -> StorageConfig:
    override = os.getenv("CLEARTONE_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file inside the data directory."""

    timeout = optional_float("CLEARTONE_DB_TIMEOUT_SECONDS", DEFAULT_DB_TIMEOUT_SECONDS)
    if timeout <= 0:
        raise ConfigurationError("CLEARTONE_DB_TIMEOUT_SECONDS must be positive")
    uri = os.getenv("DATABASE_URI") or (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri, timeout_seconds=timeout)


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
