"""Where the catalog database lives and how to reach it.

Resolution order for the database URI:

1. ``CATALOGIX_DATABASE_URI``
2. ``DATABASE_URI`` (shared with alembic and the test suite)
3. a SQLite file ``catalog.db`` under ``CATALOGIX_DATA_DIR`` or the per-user data directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_bool

APP_DIR_NAME: Final[str] = "catalogix"
DEFAULT_DB_FILENAME: Final[str] = "catalog.db"
URI_ENV_VARS: Final[tuple[str, ...]] = ("CATALOGIX_DATABASE_URI", "DATABASE_URI")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self, *, ensure: bool = True) -> Path:
        directory = self.data_dir.expanduser().resolve()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def user_data_dir() -> Path:
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root) / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    override = os.getenv("CATALOGIX_DATA_DIR")
    return StorageConfig(data_dir=Path(override) if override else user_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    echo = env_bool("CATALOGIX_SQL_ECHO", default=False)
    for name in URI_ENV_VARS:
        uri = os.getenv(name)
        if uri:
            return DatabaseConfig(uri=uri, echo=echo)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri(), echo=echo)


def get_database_uri() -> str:
    return get_database_config().uri
