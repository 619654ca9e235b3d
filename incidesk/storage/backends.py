from __future__ import annotations

"""
Key-value storage port for incidesk.

Each entry is read and written whole: one entry for the incident list,
one for the config.

INCIDESK_STORAGE_URL formats:
  sqlite:///./data/incidesk.db   single SQLite file (default)
  json:///./data/store           one <key>.json file per entry
  memory://                      process memory only (tests, dry runs)
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._entries.get(key)

    def write(self, key: str, value: str) -> None:
        self._entries[key] = value


class JsonFileStorage:
    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        # Write-then-rename so a crash never leaves half an entry behind.
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


class SqliteStorage:
    def __init__(self, database_url: str) -> None:
        if not database_url.startswith("sqlite:///"):
            raise ValueError(f"Unsupported INCIDESK_STORAGE_URL: {database_url}")
        self._db_path = Path(database_url.removeprefix("sqlite:///"))
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key         TEXT    PRIMARY KEY,
                    value       TEXT    NOT NULL
                )
            """)

    def read(self, key: str) -> str | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE key = ? LIMIT 1", (key,)
            ).fetchone()
        return row[0] if row is not None else None

    def write(self, key: str, value: str) -> None:
        with self._conn() as conn:
            conn.execute(
                """INSERT INTO kv_entries (key, value) VALUES (?, ?)
                   ON CONFLICT (key) DO UPDATE SET value = excluded.value""",
                (key, value),
            )


def open_storage(url: str) -> KeyValueStorage:
    if url.startswith("sqlite:///"):
        return SqliteStorage(url)
    if url.startswith("json:///"):
        return JsonFileStorage(url.removeprefix("json:///"))
    if url.startswith("memory://"):
        logger.info("memory storage selected, nothing will survive this process")
        return MemoryStorage()
    raise ValueError(f"Unsupported INCIDESK_STORAGE_URL: {url}")
