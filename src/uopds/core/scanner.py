# ABOUTME: Recursive catalog warm-up over the whole book tree.
# ABOUTME: Runs the same lookup-or-import path as feed rendering and tallies the outcome.

import logging
import os
import posixpath
from collections.abc import Iterator
from dataclasses import dataclass, field

from uopds.config import ServerConfig
from uopds.core.feed import IMPORT_ERRORS, is_utf8_name
from uopds.core.importer import ImporterRegistry
from uopds.db.catalog import CatalogStore, DuplicatePathError

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Summary of a scan over the book tree."""

    added: int = 0
    cached: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[tuple[str, str]] = field(default_factory=list)


def _walk_files(config: ServerConfig) -> Iterator[str]:
    """Yield book-root-relative POSIX paths of every regular file, sorted per directory."""
    for dirpath, dirnames, filenames in os.walk(config.book_dir):
        dirnames[:] = sorted(d for d in dirnames if is_utf8_name(d))
        rel_dir = os.path.relpath(dirpath, config.book_dir)
        for name in sorted(filenames):
            if not is_utf8_name(name):
                logger.warning(
                    "Skipping %r: name is not valid UTF-8", os.path.join(dirpath, name)
                )
                continue
            if rel_dir == os.curdir:
                yield name
            else:
                yield posixpath.join(rel_dir.replace(os.sep, "/"), name)


def scan_library(
    config: ServerConfig,
    store: CatalogStore,
    registry: ImporterRegistry,
) -> ScanResult:
    """Import every file under the book root that the store has not cached.

    Files already in the store count as cached, files with no importer as
    skipped. Import failures are recorded as errors and the scan continues.

    Args:
        config: Server configuration naming the book root.
        store: The metadata store to fill.
        registry: Importers by extension.

    Returns:
        ScanResult with counts and per-file error messages.
    """
    result = ScanResult()

    for source_path in _walk_files(config):
        if store.get_by_path(source_path) is not None:
            result.cached += 1
            continue

        extension = posixpath.splitext(source_path)[1]
        if registry.importer_for(extension) is None:
            result.skipped += 1
            continue

        try:
            registry.import_file(extension, source_path)
            result.added += 1
        except DuplicatePathError:
            # A running server imported it between our lookup and insert
            result.cached += 1
        except IMPORT_ERRORS as exc:
            logger.warning("Failed to import %s: %s", source_path, exc)
            result.errors += 1
            result.error_details.append((source_path, str(exc)))

    return result
