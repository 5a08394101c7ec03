# persistence/db.py
"""
SQLite storage for client-side state.

The dashboard client keeps its session in a small key/value table of named
slots. A file-based database survives restarts; ":memory:" is handy for tests.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Union

_logger = logging.getLogger(__name__)

# Database file location (configurable via env var)
DEFAULT_DB_PATH = Path.home() / ".orbitguard" / "client.db"
DB_PATH_ENV = "ORBITGUARD_DB_PATH"

MEMORY_DB = ":memory:"


def default_db_path() -> str:
    """Resolve the database path from the environment, falling back to the default."""
    return os.environ.get(DB_PATH_ENV, str(DEFAULT_DB_PATH))


class Database:
    """
    One SQLite connection plus the slot schema.

    The client is single-threaded, so a single connection is held for the
    lifetime of the object.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self._path = str(path) if path is not None else default_db_path()
        self._conn: Optional[sqlite3.Connection] = None
        self._initialized = False

    @property
    def path(self) -> str:
        return self._path

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if self._path != MEMORY_DB:
                # Ensure directory exists
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(self._path, timeout=30.0)
            # Return rows as dicts
            conn.row_factory = sqlite3.Row
            self._conn = conn

        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Connection context manager; commits on success, rolls back on error.

        Usage:
            with db.transaction() as conn:
                conn.execute("INSERT ...")
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def init_db(self) -> None:
        """
        Initialize database schema.

        Creates tables if they don't exist.
        Safe to call multiple times (idempotent).
        """
        if self._initialized:
            return

        with self.transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS session_slots (
                    slot TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

        _logger.info(f"Database initialized at {self._path}")
        self._initialized = True

    def read_slots(self, names: Iterable[str]) -> Dict[str, str]:
        """Read the named slots; missing slots are absent from the result."""
        self.init_db()
        names = list(names)
        placeholders = ", ".join("?" for _ in names)

        with self.transaction() as conn:
            cursor = conn.execute(
                f"SELECT slot, value FROM session_slots WHERE slot IN ({placeholders})",
                names,
            )
            rows = cursor.fetchall()

        return {row["slot"]: row["value"] for row in rows}

    def write_slots(self, values: Dict[str, str]) -> None:
        """Write several slots in a single transaction."""
        self.init_db()

        with self.transaction() as conn:
            for slot, value in values.items():
                conn.execute(
                    """
                    INSERT INTO session_slots (slot, value) VALUES (?, ?)
                    ON CONFLICT(slot) DO UPDATE SET value = excluded.value
                    """,
                    (slot, value),
                )

    def delete_slots(self, names: Iterable[str]) -> None:
        """Remove the named slots in a single transaction."""
        self.init_db()

        with self.transaction() as conn:
            for slot in names:
                conn.execute("DELETE FROM session_slots WHERE slot = ?", (slot,))

    def close(self) -> None:
        """Close the underlying connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        # An in-memory database is gone once its connection closes
        if self._path == MEMORY_DB:
            self._initialized = False

    def reset(self) -> None:
        """Reset database (for testing). Drops all tables."""
        with self.transaction() as conn:
            conn.execute("DROP TABLE IF EXISTS session_slots")
        self._initialized = False
