# ABOUTME: Shared zip container helpers and the format error hierarchy.
# ABOUTME: Opens archives defensively and reads the first stored entry for image archives.

import zipfile
from dataclasses import dataclass
from pathlib import Path


class FormatError(Exception):
    """Base class for failures deriving an entry from a file's contents."""


class ArchiveError(FormatError):
    """Raised when a file is missing, unreadable, or not a valid zip container."""


class EmptyArchiveError(FormatError):
    """Raised when an archive has no entries where at least one is required."""


class CoverError(FormatError):
    """Raised when an archive entry chosen as the cover cannot be read."""


@dataclass(frozen=True)
class ArchiveMember:
    """Raw bytes of one archive entry plus its stored name."""

    name: str
    data: bytes


def open_archive(path: Path) -> zipfile.ZipFile:
    """Open a zip container for random access.

    Raises:
        ArchiveError: If the file cannot be opened or is not a zip archive.
    """
    try:
        return zipfile.ZipFile(path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError(f"Failed to open archive: {path}: {exc}") from exc


def read_member(zf: zipfile.ZipFile, name: str) -> bytes:
    """Read one entry's full contents.

    Raises:
        KeyError: If no entry has that name.
        zipfile.BadZipFile, OSError: If the entry cannot be decompressed.
    """
    with zf.open(name) as member:
        return member.read()


def read_first_member(path: Path) -> ArchiveMember:
    """Read the first entry of an archive, in central directory order.

    Raises:
        ArchiveError: If the file is not a readable zip archive.
        CoverError: If the first entry cannot be decompressed.
        EmptyArchiveError: If the archive has no entries.
    """
    with open_archive(path) as zf:
        infos = zf.infolist()
        if not infos:
            raise EmptyArchiveError(f"Archive has no entries: {path}")
        first = infos[0]
        try:
            data = read_member(zf, first.filename)
        except (OSError, zipfile.BadZipFile, RuntimeError) as exc:
            raise CoverError(
                f"Failed to read {first.filename} from {path}: {exc}"
            ) from exc
    return ArchiveMember(name=first.filename, data=data)
