"""sqlite storage for save slots — one shared connection, numbered schema migrations."""
from __future__ import annotations

import contextlib
import importlib
import logging
import pathlib
import re
import sqlite3
from typing import Iterator

from ash_aether.utils import utc_now_iso

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"
MIGRATIONS_PACKAGE = "ash_aether.storage.migrations"
MIGRATIONS_DIR = pathlib.Path(__file__).parent / "migrations"

_MIGRATION_FILE = re.compile(r"^(\d{3})_\w+\.py$")


def discover_migrations(directory: pathlib.Path = MIGRATIONS_DIR) -> list[tuple[int, str]]:
    """``(version, module name)`` for every ``NNN_name.py`` file, lowest version first."""
    found = []
    for path in directory.iterdir():
        match = _MIGRATION_FILE.match(path.name)
        if match:
            found.append((int(match.group(1)), path.stem))
    return sorted(found)


class Database:
    """Save-slot store. The connection opens lazily and every repo shares it."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None
        if not self.in_memory:
            pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def in_memory(self) -> bool:
        return self.db_path == IN_MEMORY

    def initialize(self) -> list[int]:
        """Bring the schema up to date. Returns the versions this call applied."""
        with self.get_connection() as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_version "
                "(version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
            )
        current = self.schema_version()

        applied: list[int] = []
        for version, name in discover_migrations():
            if version <= current:
                continue
            module = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")
            with self.get_connection() as conn:
                module.upgrade(conn)
                conn.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (version, utc_now_iso()),
                )
            logger.info("Applied schema migration %s", name)
            applied.append(version)
        return applied

    def schema_version(self) -> int:
        with self.get_connection() as conn:
            row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
        return row[0]

    @contextlib.contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        # One unit of work: committed when the block exits cleanly.
        conn = self._connect()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()

    def close(self) -> None:
        if self._connection is None:
            return
        self._connection.close()
        self._connection = None

    def _connect(self) -> sqlite3.Connection:
        if self._connection is None:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            if not self.in_memory:
                conn.execute("PRAGMA journal_mode=WAL")
            self._connection = conn
        return self._connection
