# persistence/tests/test_persistence.py
"""Tests for persistence layer."""

import os
from unittest.mock import patch

import pytest

from persistence.db import DB_PATH_ENV, MEMORY_DB, Database, default_db_path


@pytest.fixture
def db():
    """Fresh in-memory database for each test."""
    database = Database(MEMORY_DB)
    database.init_db()
    yield database
    database.close()


class TestDatabase:
    """Test Database slot storage."""

    def test_write_and_read(self, db):
        db.write_slots({"a": "1", "b": "2"})

        assert db.read_slots(["a", "b"]) == {"a": "1", "b": "2"}

    def test_missing_slots_are_absent(self, db):
        db.write_slots({"a": "1"})

        assert db.read_slots(["a", "b"]) == {"a": "1"}

    def test_overwrite(self, db):
        db.write_slots({"a": "1"})
        db.write_slots({"a": "2"})

        assert db.read_slots(["a"]) == {"a": "2"}

    def test_delete(self, db):
        db.write_slots({"a": "1", "b": "2"})
        db.delete_slots(["a", "b"])

        assert db.read_slots(["a", "b"]) == {}

    def test_init_is_idempotent(self, db):
        db.init_db()
        db.init_db()
        db.write_slots({"a": "1"})

        assert db.read_slots(["a"]) == {"a": "1"}

    def test_failed_transaction_rolls_back(self, db):
        """A failing block leaves earlier writes in the same transaction undone."""
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO session_slots (slot, value) VALUES (?, ?)",
                    ("a", "1"),
                )
                raise RuntimeError("boom")

        assert db.read_slots(["a"]) == {}

    def test_reset_drops_data(self, db):
        db.write_slots({"a": "1"})
        db.reset()

        assert db.read_slots(["a"]) == {}

    def test_file_database_survives_reopen(self, tmp_path):
        path = tmp_path / "nested" / "client.db"

        first = Database(path)
        first.write_slots({"a": "1"})
        first.close()

        second = Database(path)
        assert second.read_slots(["a"]) == {"a": "1"}
        second.close()


class TestDefaultPath:
    """Test database path resolution."""

    def test_env_override(self):
        with patch.dict(os.environ, {DB_PATH_ENV: "/tmp/orbitguard-test.db"}):
            assert default_db_path() == "/tmp/orbitguard-test.db"

    def test_default_when_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            assert default_db_path().endswith("client.db")
