# ABOUTME: Directory-to-feed synthesis with lazy import of uncached files.
# ABOUTME: Lists one directory, reconciles it against the store, and assembles a Feed.

import logging
import os
import posixpath
import sqlite3
from datetime import datetime, timezone

from uopds.catalog.types import NAVIGATION_TYPE, CatalogEntry, Feed, Link, NavigationEntry
from uopds.config import ServerConfig
from uopds.core.importer import ImporterRegistry
from uopds.db.catalog import CatalogError, CatalogStore, DuplicatePathError
from uopds.formats.archive import FormatError

logger = logging.getLogger(__name__)

# Failures that skip a single file instead of failing the whole listing.
IMPORT_ERRORS = (FormatError, CatalogError, OSError, sqlite3.Error)


def clean_path(request_path: str) -> str:
    """Normalize a request path to an absolute path within the book root.

    ".." segments are clamped at the root, so the result never escapes it:
    "a/../../b" becomes "/b". The root itself is "/".
    """
    cleaned = posixpath.normpath("/" + request_path.replace("\\", "/"))
    # normpath keeps a leading "//" (POSIX allows it to be special)
    return "/" + cleaned.lstrip("/")


def relative_path(cleaned: str, name: str = "") -> str:
    """Join a cleaned directory path and a child name into a book-root-relative path."""
    return posixpath.join(cleaned, name).lstrip("/")


def is_utf8_name(name: str) -> bool:
    """Whether a filesystem name decoded cleanly.

    Names that are not valid UTF-8 come back from os.scandir with surrogate
    escapes; they cannot be stored, served, or written into a feed.
    """
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class FeedSynthesizer:
    """Renders one directory of the book tree as a Feed.

    Files the store has not seen are imported on the spot; files whose
    extension has no importer are left out of the listing.
    """

    def __init__(
        self,
        config: ServerConfig,
        store: CatalogStore,
        registry: ImporterRegistry,
    ) -> None:
        self._config = config
        self._store = store
        self._registry = registry

    def render_directory(self, request_path: str) -> Feed:
        """Render the directory at request_path as a feed.

        Args:
            request_path: Path relative to the book root. Leading slashes and
                ".." segments are cleaned before use.

        Returns:
            A Feed listing sub-directories first, then files, each group
            sorted by name.

        Raises:
            OSError: If the directory itself cannot be listed.
        """
        cleaned = clean_path(request_path)
        directory = self._config.book_dir / relative_path(cleaned)

        subdirs: list[str] = []
        files: list[str] = []
        with os.scandir(directory) as it:
            for child in it:
                if not is_utf8_name(child.name):
                    logger.warning("Skipping %r: name is not valid UTF-8", child.path)
                    continue
                try:
                    if child.is_dir():
                        subdirs.append(child.name)
                    elif child.is_file():
                        files.append(child.name)
                except OSError as exc:
                    logger.warning("Skipping %s: %s", child.path, exc)

        feed = Feed(
            id=self._store.directory_id(cleaned),
            title=self._feed_title(cleaned),
            updated=datetime.now(timezone.utc),
            links=self._navigation_links(cleaned),
        )

        for name in sorted(subdirs):
            child = posixpath.join(cleaned, name)
            feed.entries.append(
                NavigationEntry(
                    id=self._store.directory_id(child),
                    title=name,
                    href=self._config.root + child,
                )
            )

        for name in sorted(files):
            entry = self.lookup_or_import(relative_path(cleaned, name))
            if entry is not None:
                feed.entries.append(entry)

        return feed

    def lookup_or_import(self, source_path: str) -> CatalogEntry | None:
        """Return the cached entry for a file, importing it on a miss.

        Returns None when the file has no importer or its import failed; the
        failure is logged. A duplicate-path failure means a concurrent
        request imported the file first, so the store is read again.
        """
        entry = self._store.get_by_path(source_path)
        if entry is not None:
            return entry

        extension = posixpath.splitext(source_path)[1]
        if self._registry.importer_for(extension) is None:
            return None

        try:
            return self._registry.import_file(extension, source_path)
        except DuplicatePathError:
            logger.debug("%s imported concurrently, re-reading", source_path)
            return self._store.get_by_path(source_path)
        except IMPORT_ERRORS as exc:
            logger.warning("Failed to import %s: %s", source_path, exc)
            return None

    def _feed_title(self, cleaned: str) -> str:
        if cleaned == "/":
            return self._config.title
        return posixpath.basename(cleaned)

    def _navigation_links(self, cleaned: str) -> list[Link]:
        root = self._config.root
        links = [
            Link(rel="self", href=root + cleaned, type=NAVIGATION_TYPE),
            Link(rel="start", href=root + "/", type=NAVIGATION_TYPE),
        ]
        if cleaned != "/":
            parent = posixpath.dirname(cleaned)
            links.append(Link(rel="up", href=root + parent, type=NAVIGATION_TYPE))
        return links
