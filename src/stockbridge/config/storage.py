"""Where the canonical product store and the HTTP cache live on disk."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_bool, env_str

APP_DIR_NAME: Final[str] = "stockbridge"
DEFAULT_DB_FILENAME: Final[str] = "stockbridge.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.sqlite"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory shared by every store; rows are scoped by store id, not by file."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def ensure_data_dir(self) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    @property
    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.ensure_data_dir() / self.database_filename}"

    @property
    def http_cache_path(self) -> Path:
        return self.ensure_data_dir() / self.http_cache_filename


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _platform_data_home() -> Path:
    if sys.platform == "win32":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    data_dir = env_str("STOCKBRIDGE_DATA_DIR", "")
    return StorageConfig(
        data_dir=Path(data_dir) if data_dir else _platform_data_home() / APP_DIR_NAME
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a sqlite file inside the data directory."""

    uri = env_str("DATABASE_URI", "") or (storage or get_storage_config()).database_uri
    return DatabaseConfig(uri=uri, echo=env_bool("STOCKBRIDGE_SQL_ECHO", False))


def get_http_cache_path(*, storage: StorageConfig | None = None) -> Path:
    return (storage or get_storage_config()).http_cache_path
