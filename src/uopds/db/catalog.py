# ABOUTME: Thread-safe metadata store for cached catalog entries and directory ids.
# ABOUTME: Lookup by path or urn, insert with path uniqueness, and directory markers.

import logging
import sqlite3
import threading

from uopds.catalog.types import CatalogEntry
from uopds.db.identity import random_urn
from uopds.db.mapping import entry_to_row, row_to_entry

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for metadata store failures."""


class DuplicatePathError(CatalogError):
    """Raised when inserting an entry for a path that already has one."""


class CatalogStore:
    """Wraps a sqlite3 connection and provides typed access to cached entries.

    Every statement runs under a single lock, so request threads sharing one
    store never observe a half-written row.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def insert(self, entry: CatalogEntry) -> int:
        """Cache an entry under its source path.

        Args:
            entry: The entry to store. Its cover, if any, is stored by
                filename and MIME type only.

        Returns:
            The row ID of the inserted entry.

        Raises:
            DuplicatePathError: If the path already has an entry.
        """
        row = entry_to_row(entry)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        values = list(row.values())

        with self._lock:
            try:
                cursor = self._conn.execute(
                    f"INSERT INTO books ({columns}) VALUES ({placeholders})",
                    values,
                )
                self._conn.commit()
            except sqlite3.IntegrityError as exc:
                self._conn.rollback()
                if "UNIQUE constraint failed: books.path" in str(exc):
                    raise DuplicatePathError(
                        f"Entry for {entry.source_path} already exists"
                    ) from exc
                raise
            except sqlite3.Error:
                self._conn.rollback()
                raise

        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_path(self, path: str) -> CatalogEntry | None:
        """Retrieve the cached entry for a path relative to the book root."""
        with self._lock:
            row = self._conn.execute("SELECT * FROM books WHERE path = ?", (path,)).fetchone()
        return row_to_entry(row) if row else None

    def get_by_id(self, urn: str) -> CatalogEntry | None:
        """Retrieve an entry by its urn.

        Content-hash urns are shared by byte-identical files; the earliest
        inserted one wins.
        """
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM books WHERE urn = ? ORDER BY id LIMIT 1", (urn,)
            ).fetchone()
        return row_to_entry(row) if row else None

    def list_all(self) -> list[CatalogEntry]:
        """Return every cached entry, ordered by path."""
        with self._lock:
            rows = self._conn.execute("SELECT * FROM books ORDER BY path").fetchall()
        return [row_to_entry(row) for row in rows]

    def directory_id(self, path: str) -> str:
        """Return the stable feed id for a directory, creating it on first use.

        Creation is INSERT OR IGNORE followed by a re-read under the store
        lock, so racing callers all get the one persisted marker. A store
        failure is logged and a transient id is returned instead; a feed with
        an unstable id is still a correct feed.
        """
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT urn FROM directories WHERE path = ?", (path,)
                ).fetchone()
                if row is not None:
                    return row["urn"]

                self._conn.execute(
                    "INSERT OR IGNORE INTO directories (path, urn) VALUES (?, ?)",
                    (path, random_urn()),
                )
                self._conn.commit()
                row = self._conn.execute(
                    "SELECT urn FROM directories WHERE path = ?", (path,)
                ).fetchone()
            except sqlite3.Error as exc:
                self._conn.rollback()
                logger.warning("Could not persist directory id for %s: %s", path, exc)
                return random_urn()

        if row is None:
            logger.warning("Directory id for %s vanished after insert", path)
            return random_urn()
        return row["urn"]
