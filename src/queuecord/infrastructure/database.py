"""SQLite database schema and AppDatabase composition root."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from queuecord.infrastructure.config import DB_FILENAME, STORE_DIR
from queuecord.infrastructure.logger import logger


def create_schema(db: sqlite3.Connection) -> None:
    """Create all tables. Safe to call multiple times (IF NOT EXISTS)."""
    db.executescript("""
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        );
    """)


class AppDatabase:
    """Composition root that opens the DB and exposes repositories."""

    def __init__(self) -> None:
        self._db: sqlite3.Connection | None = None
        self.kv_repo: KeyValueRepository | None = None  # type: ignore[name-defined]
        self.queue_store: MessageQueueStore | None = None  # type: ignore[name-defined]

    @property
    def is_open(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> sqlite3.Connection:
        assert self._db is not None, "Database not initialized. Call init() first."
        return self._db

    def init(self, db_path: Path | None = None) -> None:
        """Open (or create) the database file, by default at the standard location."""
        db_path = db_path or STORE_DIR / DB_FILENAME
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(db_path))
        self._db.row_factory = sqlite3.Row
        # WAL lets the CLI write while a running service reads.
        self._db.execute("PRAGMA journal_mode=WAL")
        self._init_repos()
        logger.debug("Database opened", path=str(db_path))

    def _init_test(self) -> None:
        """For tests only. Creates a fresh in-memory database."""
        self._db = sqlite3.connect(":memory:")
        self._db.row_factory = sqlite3.Row
        self._init_repos()

    def _init_repos(self) -> None:
        assert self._db is not None
        create_schema(self._db)

        # Import here to avoid circular imports
        from queuecord.infrastructure.kv_repo import KeyValueRepository
        from queuecord.queue.store import MessageQueueStore

        self.kv_repo = KeyValueRepository(self._db)
        self.queue_store = MessageQueueStore(self.kv_repo)

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
