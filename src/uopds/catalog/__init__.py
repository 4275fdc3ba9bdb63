# ABOUTME: Catalog data model package for uopds.
# ABOUTME: Exports the entry, cover, link, and feed dataclasses used throughout.

from uopds.catalog.types import (
    CatalogEntry,
    CoverAsset,
    Feed,
    FeedEntry,
    Link,
    NavigationEntry,
)

__all__ = [
    "CatalogEntry",
    "CoverAsset",
    "Feed",
    "FeedEntry",
    "Link",
    "NavigationEntry",
]
