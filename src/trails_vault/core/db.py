# Core Module - SQLite Connection Helper
#
# Every Trails Vault SQLite database opens through `connect()` instead of
# raw `sqlite3.connect()`, so each connection gets:
#
#   - WAL journal mode (a reader never sees a half-written vault blob)
#   - busy_timeout to avoid SQLITE_BUSY if the profile is opened twice
#   - synchronous=FULL, since losing the last vault write loses secrets

import sqlite3
from pathlib import Path
from typing import Union


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and safe PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.

    Returns:
        sqlite3.Connection with WAL mode, busy_timeout and full sync.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA synchronous=FULL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
