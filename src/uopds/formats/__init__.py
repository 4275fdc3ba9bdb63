# ABOUTME: File format readers for uopds: zip containers, EPUB packages, and covers.
# ABOUTME: Exports the format error hierarchy shared by every importer.

from uopds.formats.archive import ArchiveError, CoverError, EmptyArchiveError, FormatError
from uopds.formats.epub import EpubPackage, MetadataError, read_epub_package

__all__ = [
    "ArchiveError",
    "CoverError",
    "EmptyArchiveError",
    "EpubPackage",
    "FormatError",
    "MetadataError",
    "read_epub_package",
]
