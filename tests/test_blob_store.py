"""Tests for the vault blob stores (v0.1.0).

Covers:
  - MemoryBlobStore get / set / remove
  - SQLiteBlobStore file creation, upsert, remove, persistence across instances
  - Storage failures wrapped in PersistenceError
  - connect() helper PRAGMAs and row factory
"""

import sqlite3

import pytest

from trails_vault.core.blob_store import MemoryBlobStore, SQLiteBlobStore
from trails_vault.core.db import connect as db_connect
from trails_vault.vault.errors import PersistenceError


class TestMemoryBlobStore:
    def test_get_missing(self):
        assert MemoryBlobStore().get("k") is None

    def test_set_get_remove(self):
        store = MemoryBlobStore()
        store.set("k", "v")
        assert store.get("k") == "v"
        store.remove("k")
        assert store.get("k") is None

    def test_remove_missing_is_noop(self):
        MemoryBlobStore().remove("nope")

    def test_initial_contents(self):
        store = MemoryBlobStore({"a": "1"})
        assert store.get("a") == "1"
        assert store.keys() == ["a"]


class TestSQLiteBlobStore:
    @pytest.fixture
    def blobs(self, tmp_path):
        return SQLiteBlobStore(db_path=tmp_path / "vault.db")

    def test_creates_db_file(self, tmp_path):
        SQLiteBlobStore(db_path=tmp_path / "vault.db")
        assert (tmp_path / "vault.db").exists()

    def test_creates_parent_dirs(self, tmp_path):
        SQLiteBlobStore(db_path=tmp_path / "sub" / "dir" / "vault.db")
        assert (tmp_path / "sub" / "dir" / "vault.db").exists()

    def test_get_missing(self, blobs):
        assert blobs.get("missing") is None

    def test_set_and_get(self, blobs):
        blobs.set("vault", '{"a": 1}')
        assert blobs.get("vault") == '{"a": 1}'

    def test_upsert_overwrites(self, blobs):
        blobs.set("vault", "one")
        blobs.set("vault", "two")
        assert blobs.get("vault") == "two"

    def test_remove(self, blobs):
        blobs.set("vault", "x")
        blobs.remove("vault")
        assert blobs.get("vault") is None
        blobs.remove("vault")

    def test_persists_across_instances(self, tmp_path):
        SQLiteBlobStore(db_path=tmp_path / "vault.db").set("k", "v")
        assert SQLiteBlobStore(db_path=tmp_path / "vault.db").get("k") == "v"

    def test_wal_mode(self, blobs):
        conn = sqlite3.connect(str(blobs.db_path))
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        finally:
            conn.close()

    def test_unopenable_path_raises_persistence_error(self, tmp_path):
        # A directory cannot be opened as a database file
        (tmp_path / "is_a_dir").mkdir()
        with pytest.raises(PersistenceError) as exc_info:
            SQLiteBlobStore(db_path=tmp_path / "is_a_dir")
        assert isinstance(exc_info.value.cause, sqlite3.Error)

    def test_unwritable_parent_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            SQLiteBlobStore(db_path=blocker / "vault.db")


class TestConnect:
    def test_pragmas_applied(self, tmp_path):
        conn = db_connect(tmp_path / "vault.db")
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
            assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 5000
            # 2 == FULL
            assert conn.execute("PRAGMA synchronous").fetchone()[0] == 2
        finally:
            conn.close()

    def test_row_factory(self, tmp_path):
        conn = db_connect(tmp_path / "vault.db", row_factory=True)
        try:
            row = conn.execute("SELECT 1 AS one").fetchone()
            assert row["one"] == 1
        finally:
            conn.close()

    def test_rejects_thread_sharing_override(self, tmp_path):
        with pytest.raises(TypeError):
            db_connect(tmp_path / "vault.db", check_same_thread=False)
