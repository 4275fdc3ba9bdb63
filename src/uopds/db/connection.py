# ABOUTME: SQLite connection management for the uopds metadata store.
# ABOUTME: Opens or creates the database and applies the schema on first use.

import sqlite3
from pathlib import Path

from uopds.db.schema import SCHEMA_V1

DEFAULT_DB_PATH = Path("database")


def open_catalog(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the metadata store database.

    Creates the database file and parent directories if they don't exist and
    applies the schema when the books table is missing. The connection is
    shared between request threads, so same-thread checking is disabled;
    CatalogStore serializes access with its own lock.

    Args:
        path: Path to the database file. Defaults to ./database.

    Returns:
        A configured sqlite3.Connection.

    Raises:
        sqlite3.DatabaseError: If the file exists but is not a usable database.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        initialized = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='books'"
        ).fetchone()
        if initialized is None:
            conn.executescript(SCHEMA_V1)
    except sqlite3.DatabaseError:
        conn.close()
        raise

    return conn
