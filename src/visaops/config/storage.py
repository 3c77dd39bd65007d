"""Where the SQLAlchemy store keeps its database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_flag

APP_DIR_NAME: Final[str] = "visaops"
DEFAULT_DB_FILENAME: Final[str] = "visaops.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory for the SQLite database used when ``DATABASE_URI`` is unset."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self, *, create_dir: bool = True) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if create_dir:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _default_data_dir() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return (Path(local) if local else Path.home() / "AppData" / "Local") / APP_DIR_NAME
    xdg = os.getenv("XDG_DATA_HOME")
    return (Path(xdg) if xdg else Path.home() / ".local" / "share") / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("VISAOPS_DATA_DIR")
    return StorageConfig(data_dir=Path(env_dir) if env_dir else _default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory.

    ``VISAOPS_SQL_ECHO`` turns on statement logging for engines built here.
    """

    uri = os.getenv("DATABASE_URI")
    if not uri:
        path = (storage or get_storage_config()).database_path()
        uri = f"sqlite+pysqlite:///{path}"
    return DatabaseConfig(uri=uri, echo=env_flag("VISAOPS_SQL_ECHO"))


def get_database_uri() -> str:
    return get_database_config().uri
