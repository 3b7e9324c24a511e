# Core Module - Key/Value Blob Store
#
# The vault persists as one JSON blob under one key. The blob store is the
# only thing that touches disk; PasswordVault receives one by injection.
#
#   MemoryBlobStore - dict-backed, for tests and throwaway profiles
#   SQLiteBlobStore - one row per key in a WAL-mode SQLite file
#
# Storage failures are wrapped in PersistenceError so callers can tell
# "couldn't save" apart from "wrong password".

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Union

from ..vault.errors import PersistenceError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Minimal key/value interface owned by the host application."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryBlobStore:
    """In-memory blob store. Contents vanish with the instance."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return sorted(self._data)


class SQLiteBlobStore:
    """SQLite key/value blob store.

    Args:
        db_path: Path to SQLite file. Defaults to data/vault.db.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/vault.db")
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create vault directory {self.db_path.parent}: {e}", e) from e
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        from .db import connect as db_connect

        conn = None
        try:
            conn = db_connect(self.db_path, row_factory=True)
            yield conn
        except sqlite3.Error as e:
            logger.error("Vault storage error on %s: %s", self.db_path, e)
            raise PersistenceError(f"Vault storage error: {e}", e) from e
        finally:
            if conn is not None:
                conn.close()

    def _init_database(self):
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under key, or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Store a blob (upsert). The write is a single transaction."""
        now = datetime.utcnow().isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO blobs (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, value, now),
            )
            conn.commit()

    def remove(self, key: str) -> None:
        """Delete a blob. Missing keys are ignored."""
        with self._connect() as conn:
            conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
            conn.commit()
