"""Named-slot key/value persistence."""

from __future__ import annotations

import sqlite3


class KeyValueRepository:
    def __init__(self, db: sqlite3.Connection) -> None:
        self._db = db

    def get(self, key: str) -> str | None:
        row = self._db.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))",
            (key, value),
        )
        self._db.commit()

    def delete(self, key: str) -> None:
        self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self._db.commit()

    def get_many(self, keys: list[str]) -> dict[str, str]:
        if not keys:
            return {}
        placeholders = ",".join("?" * len(keys))
        rows = self._db.execute(f"SELECT key, value FROM kv_store WHERE key IN ({placeholders})", keys).fetchall()
        return {row["key"]: row["value"] for row in rows}
