# ABOUTME: Per-format importers that turn a raw file into a cached catalog entry.
# ABOUTME: EPUB, first-image CBZ, and filename-based fallback, dispatched by extension.

import logging
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from uopds.catalog.types import CatalogEntry
from uopds.config import ServerConfig
from uopds.db.catalog import CatalogStore
from uopds.db.identity import IdentityPolicy, identity_policy
from uopds.formats.archive import read_first_member
from uopds.formats.covers import DEFAULT_COVER_TYPE, guess_image_type, write_cover
from uopds.formats.epub import read_epub_package

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown author"
EPUB_TYPE = "application/epub+zip"
CBZ_TYPE = "application/x-cbz"
FALLBACK_TYPE = "application/octet-stream"

# Formats with no metadata standard we read; cataloged by filename only.
GENERIC_EXTENSIONS: frozenset[str] = frozenset(
    {".pdf", ".mobi", ".azw", ".azw3", ".txt", ".fb2", ".djvu", ".cbr"}
)


@runtime_checkable
class Importer(Protocol):
    """Protocol for format importers.

    import_file derives an entry from the file at source_path (relative to
    the book root), stores any cover asset, inserts the entry into the
    metadata store, and returns it.
    """

    def import_file(self, source_path: str) -> CatalogEntry: ...


@dataclass(frozen=True)
class ImportContext:
    """Collaborators shared by every importer."""

    config: ServerConfig
    store: CatalogStore
    identity: IdentityPolicy

    def absolute(self, source_path: str) -> Path:
        """Map a book-root-relative path onto the filesystem."""
        return self.config.book_dir / source_path

    def finish(self, entry: CatalogEntry) -> CatalogEntry:
        """Mint the entry's identifier and insert it into the store.

        Raises:
            OSError: If content-hash identity cannot read the file.
            DuplicatePathError: If another import already cached this path.
        """
        entry.id = self.identity.new_identifier(self.absolute(entry.source_path))
        self.store.insert(entry)
        logger.info("Imported %s as %s", entry.source_path, entry.id)
        return entry


def _modified_at(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def _stem(source_path: str) -> str:
    return PurePosixPath(source_path).stem


@dataclass(frozen=True)
class EpubImporter:
    """Imports EPUBs from their OPF package metadata and declared cover."""

    context: ImportContext

    def import_file(self, source_path: str) -> CatalogEntry:
        """Import an EPUB.

        Raises:
            ArchiveError, MetadataError, CoverError: If the package is unreadable.
            OSError: On filesystem failures, including writing the cover.
            DuplicatePathError: If the path was imported concurrently.
        """
        path = self.context.absolute(source_path)
        pkg = read_epub_package(path)

        entry = CatalogEntry(
            id="",
            title=pkg.title or _stem(source_path),
            source_path=source_path,
            author_name=pkg.creator,
            language=pkg.language,
            summary=pkg.description,
            date=pkg.date,
            content_type=EPUB_TYPE,
            updated_at=_modified_at(path),
        )
        if pkg.has_cover:
            entry.cover = write_cover(
                self.context.config.cover_dir,
                pkg.cover_image,
                pkg.cover_type or DEFAULT_COVER_TYPE,
            )
        return self.context.finish(entry)


@dataclass(frozen=True)
class CbzImporter:
    """Imports comic archives, using the first stored entry as the cover.

    There is no metadata standard for CBZ, so the title is the filename and
    the author a placeholder. The first entry is not checked to be an image.
    """

    context: ImportContext

    def import_file(self, source_path: str) -> CatalogEntry:
        """Import a CBZ.

        Raises:
            ArchiveError: If the file is not a readable zip archive.
            EmptyArchiveError: If the archive has no entries.
            CoverError: If the first entry cannot be read.
            OSError: On filesystem failures, including writing the cover.
            DuplicatePathError: If the path was imported concurrently.
        """
        path = self.context.absolute(source_path)
        first = read_first_member(path)

        entry = CatalogEntry(
            id="",
            title=_stem(source_path),
            source_path=source_path,
            author_name=UNKNOWN_AUTHOR,
            content_type=CBZ_TYPE,
            updated_at=_modified_at(path),
        )
        entry.cover = write_cover(
            self.context.config.cover_dir, first.data, guess_image_type(first.name)
        )
        return self.context.finish(entry)


@dataclass(frozen=True)
class GenericImporter:
    """Catalogs any file by name, with its content type from the system MIME table."""

    context: ImportContext

    def import_file(self, source_path: str) -> CatalogEntry:
        path = self.context.absolute(source_path)
        content_type, _ = mimetypes.guess_type(PurePosixPath(source_path).name)

        entry = CatalogEntry(
            id="",
            title=_stem(source_path),
            source_path=source_path,
            author_name=UNKNOWN_AUTHOR,
            content_type=content_type or FALLBACK_TYPE,
            updated_at=_modified_at(path),
        )
        return self.context.finish(entry)


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and ensure a leading dot: "EPUB" -> ".epub"."""
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"


class ImporterRegistry:
    """Immutable extension -> importer mapping, built once at startup."""

    def __init__(
        self,
        importers: Mapping[str, Importer],
        fallback: Importer | None = None,
    ) -> None:
        self._importers = MappingProxyType(
            {normalize_extension(ext): imp for ext, imp in importers.items()}
        )
        self._fallback = fallback

    @property
    def extensions(self) -> frozenset[str]:
        """Extensions with a registered importer."""
        return frozenset(self._importers)

    def importer_for(self, extension: str) -> Importer | None:
        """Return the importer for an extension, the fallback, or None."""
        if not extension:
            return self._fallback
        return self._importers.get(normalize_extension(extension), self._fallback)

    def import_file(self, extension: str, source_path: str) -> CatalogEntry | None:
        """Import source_path with the importer registered for extension.

        Returns:
            The new entry, or None if no importer handles the extension.
        """
        importer = self.importer_for(extension)
        if importer is None:
            return None
        return importer.import_file(source_path)


def build_registry(config: ServerConfig, store: CatalogStore) -> ImporterRegistry:
    """Build the default registry for a server configuration.

    .epub and .cbz get their structured importers, the GENERIC_EXTENSIONS
    are cataloged by filename, and when config.import_unknown is set every
    other extension falls back to the filename importer as well.
    """
    context = ImportContext(
        config=config, store=store, identity=identity_policy(config.identity)
    )
    generic = GenericImporter(context)

    importers: dict[str, Importer] = {ext: generic for ext in GENERIC_EXTENSIONS}
    importers[".epub"] = EpubImporter(context)
    importers[".cbz"] = CbzImporter(context)

    return ImporterRegistry(importers, fallback=generic if config.import_unknown else None)
