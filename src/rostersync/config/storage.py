"""Where the progress ledger lives on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "rostersync"
LEDGER_DB_FILENAME: Final[str] = "progress.db"


@dataclass(frozen=True, slots=True)
class LedgerStorageConfig:
    """Location of the SQLite database holding resumable sync progress.

    ``uri`` wins when set (``DATABASE_URI``); otherwise the database is a
    file inside ``data_dir``.
    """

    data_dir: Path
    uri: str | None = None

    def database_path(self) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / LEDGER_DB_FILENAME

    def database_uri(self) -> str:
        if self.uri:
            return self.uri
        return f"sqlite+pysqlite:///{self.database_path()}"


def default_data_dir() -> Path:
    """Platform data directory (``%LOCALAPPDATA%`` or ``$XDG_DATA_HOME``)."""

    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Local"
    else:
        base = os.getenv("XDG_DATA_HOME")
        root = Path(base) if base else Path.home() / ".local" / "share"
    return (root / APP_DIR_NAME).expanduser().resolve()


def get_ledger_storage_config() -> LedgerStorageConfig:
    override = os.getenv("ROSTERSYNC_DATA_DIR")
    data_dir = Path(override) if override else default_data_dir()
    return LedgerStorageConfig(data_dir=data_dir, uri=os.getenv("DATABASE_URI") or None)
