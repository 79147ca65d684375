"""
SQLite persistence and a simple migration system.

The ``Store`` object is the single owner of the database connection.
Services receive it by reference and perform every read and write
through ``Store.transaction()``, which is both the process-wide critical
section and the SQLite transaction boundary: the outermost transaction
commits when its block finishes and rolls back if the block raises.
Nested transactions join the outer one, so a service call that composes
several component operations is applied as a whole or not at all.

Applied migration versions are recorded in the ``migrations`` table and
new migrations are executed in order when a ``Store`` is opened.
"""

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings

logger = logging.getLogger(__name__)

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: initial schema
    (
        1,
        """
        -- identity -> user
        CREATE TABLE IF NOT EXISTS users (
            identity TEXT PRIMARY KEY,
            username TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- username -> identity
        CREATE TABLE IF NOT EXISTS usernames (
            username TEXT PRIMARY KEY,
            identity TEXT NOT NULL
        );

        -- contact id -> contact.  Ids are assigned from the counters
        -- table, never by AUTOINCREMENT, so the store controls allocation.
        CREATE TABLE IF NOT EXISTS contacts (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS counters (
            name TEXT PRIMARY KEY,
            value INTEGER NOT NULL
        );
        """,
    ),
    # Migration 2: owned/shared relation table backing the user lists
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS user_contacts (
            identity TEXT NOT NULL,
            contact_id INTEGER NOT NULL,
            relation TEXT NOT NULL CHECK (relation IN ('owned', 'shared')),
            position INTEGER NOT NULL,
            PRIMARY KEY (identity, contact_id, relation)
        );

        -- A contact has at most one owner.
        CREATE UNIQUE INDEX IF NOT EXISTS idx_user_contacts_owner
            ON user_contacts(contact_id) WHERE relation = 'owned';
        CREATE INDEX IF NOT EXISTS idx_user_contacts_contact_id
            ON user_contacts(contact_id);
        """,
    ),
]


def get_database_path(database_url: str | None = None) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths and ``:memory:`` are used as is; anything else is
    resolved relative to the project root.
    """
    db_url = database_url or settings.database_url
    if db_url == ":memory:" or os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def init_db(conn: sqlite3.Connection) -> int:
    """Apply pending migrations and return the resulting schema version."""
    cursor = conn.cursor()
    try:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                logger.info("Applied migration %s", version)
                current_version = version

        cursor.execute("INSERT OR IGNORE INTO counters (name, value) VALUES ('contact_id', 0)")
        conn.commit()
        return current_version
    finally:
        cursor.close()


class Store:
    """Owner of the SQLite connection shared by all directory components."""

    def __init__(self, database_url: str | None = None) -> None:
        self.path = get_database_path(database_url)
        # The connection is used from FastAPI's worker threads as well as
        # the thread that opened it; the lock below serialises all access.
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        self.schema_version = init_db(self._conn)
        logger.debug("Opened store at %s (schema v%s)", self.path, self.schema_version)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside the store-wide critical section."""
        with self._lock:
            self._depth += 1
            cursor = self._conn.cursor()
            try:
                yield cursor
                if self._depth == 1:
                    self._conn.commit()
            except BaseException:
                if self._depth == 1:
                    self._conn.rollback()
                raise
            finally:
                self._depth -= 1
                cursor.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
