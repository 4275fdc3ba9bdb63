# ABOUTME: Converts between CatalogEntry dataclasses and SQLite row dictionaries.
# ABOUTME: Handles cover columns and ISO timestamp serialization.

from datetime import datetime
from typing import Any

from uopds.catalog.types import CatalogEntry, CoverAsset


def entry_to_row(entry: CatalogEntry) -> dict[str, Any]:
    """Convert a CatalogEntry to a dict suitable for INSERT.

    Links are derived data and are never stored.
    """
    return {
        "path": entry.source_path,
        "urn": entry.id,
        "title": entry.title,
        "author": entry.author_name,
        "language": entry.language,
        "summary": entry.summary,
        "date": entry.date,
        "content_type": entry.content_type,
        "cover_filename": entry.cover.filename if entry.cover else None,
        "cover_type": entry.cover.mime_type if entry.cover else None,
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
    }


def row_to_entry(row: Any) -> CatalogEntry:
    """Convert a database row (dict-like) back to a CatalogEntry."""
    cover = None
    if row["cover_filename"]:
        cover = CoverAsset(filename=row["cover_filename"], mime_type=row["cover_type"] or "")
    updated = row["updated_at"]
    return CatalogEntry(
        id=row["urn"],
        title=row["title"],
        source_path=row["path"],
        author_name=row["author"],
        language=row["language"],
        summary=row["summary"],
        date=row["date"],
        content_type=row["content_type"],
        cover=cover,
        updated_at=datetime.fromisoformat(updated) if updated else None,
    )
