"""Tests for database initialization and the key/value repository."""

from queuecord.infrastructure.database import AppDatabase


class TestAppDatabase:
    def test_init_creates_schema(self):
        db = AppDatabase()
        db._init_test()
        tables = db.db.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
        assert "kv_store" in [row[0] for row in tables]

    def test_repos_initialized(self):
        db = AppDatabase()
        db._init_test()
        assert db.kv_repo is not None
        assert db.queue_store is not None
        assert db.is_open

    def test_multiple_init_is_safe(self):
        db = AppDatabase()
        db._init_test()
        db._init_test()  # Should not raise

    def test_init_creates_file(self, tmp_path):
        db_path = tmp_path / "nested" / "queue.db"
        db = AppDatabase()
        db.init(db_path)
        db.close()
        assert db_path.exists()
        assert not db.is_open


class TestKeyValueRepository:
    def test_set_and_get(self, db):
        db.kv_repo.set("key1", "value1")
        assert db.kv_repo.get("key1") == "value1"

    def test_get_nonexistent(self, db):
        assert db.kv_repo.get("nonexistent") is None

    def test_upsert(self, db):
        db.kv_repo.set("key1", "old")
        db.kv_repo.set("key1", "new")
        assert db.kv_repo.get("key1") == "new"

    def test_delete(self, db):
        db.kv_repo.set("key1", "value1")
        db.kv_repo.delete("key1")
        assert db.kv_repo.get("key1") is None

    def test_get_many_skips_missing(self, db):
        db.kv_repo.set("a", "1")
        assert db.kv_repo.get_many(["a", "b"]) == {"a": "1"}
        assert db.kv_repo.get_many([]) == {}
