"""Where the local identity store lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

APP_DIR_NAME: Final[str] = "remote_identity"
DEFAULT_DB_FILENAME: Final[str] = "identities.db"

DATA_DIR_VARIABLE: Final[str] = "REMOTE_IDENTITY_DATA_DIR"
DATABASE_URI_VARIABLE: Final[str] = "DATABASE_URI"
DATABASE_ECHO_VARIABLE: Final[str] = "REMOTE_IDENTITY_DATABASE_ECHO"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the default SQLite identity store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _platform_data_home(environ: Mapping[str, str]) -> Path:
    if os.name == "nt":
        base = environ.get("LOCALAPPDATA")
        return Path(base) if base else Path.home() / "AppData" / "Local"
    base = environ.get("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def get_storage_config(environ: Mapping[str, str] | None = None) -> StorageConfig:
    source = os.environ if environ is None else environ
    explicit = source.get(DATA_DIR_VARIABLE)
    data_dir = Path(explicit) if explicit else _platform_data_home(source) / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(
    *,
    storage: StorageConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    source = os.environ if environ is None else environ
    echo = source.get(DATABASE_ECHO_VARIABLE, "").strip().lower() in {"1", "true", "yes", "on"}
    uri = source.get(DATABASE_URI_VARIABLE)
    if not uri:
        uri = (storage or get_storage_config(source)).database_uri()
    return DatabaseConfig(uri=uri, echo=echo)
