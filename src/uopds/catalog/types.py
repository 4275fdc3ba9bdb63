# ABOUTME: Core data structures for catalog entries, cover assets, and feeds.
# ABOUTME: CatalogEntry is the interchange format between importers, the store, and feeds.

from dataclasses import dataclass, field
from datetime import datetime

ACQUISITION_REL = "http://opds-spec.org/acquisition"
IMAGE_REL = "http://opds-spec.org/image"
THUMBNAIL_REL = "http://opds-spec.org/image/thumbnail"

NAVIGATION_TYPE = "application/atom+xml;profile=opds-catalog;kind=navigation"


@dataclass(frozen=True)
class Link:
    """A feed link: relation, target, and media type."""

    rel: str
    href: str
    type: str


@dataclass(frozen=True)
class CoverAsset:
    """A cover image stored under its content-hash filename in the cover directory."""

    filename: str
    mime_type: str


@dataclass
class CatalogEntry:
    """Cached bibliographic record for one file under the book root.

    Everything except id and source_path is display-only free text and may be
    empty. Links are not stored; they are rebuilt per request from the mount
    root, because the root is runtime configuration.
    """

    id: str
    title: str
    source_path: str
    author_name: str = ""
    language: str = ""
    summary: str = ""
    date: str = ""
    content_type: str = "application/octet-stream"
    cover: CoverAsset | None = None
    updated_at: datetime | None = None

    def links(self, root: str) -> list[Link]:
        """Build the acquisition link and, when a cover exists, the image links."""
        links = [
            Link(
                rel=ACQUISITION_REL,
                href=root + "/books/" + self.source_path,
                type=self.content_type,
            )
        ]
        if self.cover is not None:
            href = root + "/covers/" + self.cover.filename
            links.append(Link(rel=IMAGE_REL, href=href, type=self.cover.mime_type))
            links.append(Link(rel=THUMBNAIL_REL, href=href, type=self.cover.mime_type))
        return links


@dataclass(frozen=True)
class NavigationEntry:
    """A sub-directory listed in a feed, linking to its own feed."""

    id: str
    title: str
    href: str


FeedEntry = NavigationEntry | CatalogEntry


@dataclass
class Feed:
    """A rendered directory listing. Request-scoped, never persisted."""

    id: str
    title: str
    updated: datetime
    links: list[Link] = field(default_factory=list)
    entries: list[FeedEntry] = field(default_factory=list)

    @property
    def navigation_entries(self) -> list[NavigationEntry]:
        """Sub-directory entries, in feed order."""
        return [e for e in self.entries if isinstance(e, NavigationEntry)]

    @property
    def catalog_entries(self) -> list[CatalogEntry]:
        """File entries, in feed order."""
        return [e for e in self.entries if isinstance(e, CatalogEntry)]

    def link(self, rel: str) -> Link | None:
        """Return the first link with the given relation, if any."""
        for link in self.links:
            if link.rel == rel:
                return link
        return None
