# ABOUTME: EPUB package metadata extraction using zipfile and lxml.
# ABOUTME: Follows container.xml to the OPF, decodes it by its declared charset, finds the cover.

import logging
import posixpath
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

from lxml import etree

from uopds.formats.archive import CoverError, FormatError, open_archive, read_member

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"
OPF_MEDIA_TYPE = "application/oebps-package+xml"

_NS = {"c": CONTAINER_NS, "opf": OPF_NS, "dc": DC_NS}

# Entity expansion and network access stay off: the XML comes from untrusted files.
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)

_MEMBER_ERRORS = (KeyError, OSError, zipfile.BadZipFile, zlib.error, RuntimeError)


class MetadataError(FormatError):
    """Raised when container.xml or the OPF package document is missing or unparseable."""


@dataclass(frozen=True)
class ManifestItem:
    """One item from the OPF manifest. href is relative to the OPF document."""

    id: str
    href: str
    media_type: str
    properties: frozenset[str] = frozenset()


@dataclass
class EpubPackage:
    """Metadata read from an EPUB's OPF package document, plus its cover bytes."""

    opf_path: str
    title: str = ""
    creator: str = ""
    language: str = ""
    date: str = ""
    description: str = ""
    manifest: list[ManifestItem] = field(default_factory=list)
    cover_image: bytes | None = None
    cover_type: str | None = None
    cover_path: str | None = None

    @property
    def has_cover(self) -> bool:
        """Whether cover image data is present."""
        return self.cover_image is not None and len(self.cover_image) > 0


def _parse_xml(data: bytes, name: str) -> etree._Element:
    """Parse raw XML bytes, letting lxml honor the BOM and encoding declaration."""
    try:
        return etree.fromstring(data, parser=_PARSER)
    except (etree.XMLSyntaxError, ValueError, LookupError) as exc:
        # LookupError: the document declares a charset Python does not know.
        raise MetadataError(f"Malformed XML in {name}: {exc}") from exc


def _read_xml_member(zf: zipfile.ZipFile, name: str) -> etree._Element:
    try:
        data = read_member(zf, name)
    except _MEMBER_ERRORS as exc:
        raise MetadataError(f"Missing or unreadable {name}: {exc}") from exc
    return _parse_xml(data, name)


def find_opf_path(container: etree._Element) -> str:
    """Return the archive path of the package document named by container.xml.

    Raises:
        MetadataError: If no rootfile carries a full-path.
    """
    rootfiles = container.findall(".//c:rootfiles/c:rootfile", _NS)
    # Pointer documents written without the container namespace still occur.
    if not rootfiles:
        rootfiles = container.findall(".//rootfiles/rootfile")

    candidates = [rf for rf in rootfiles if rf.get("full-path")]
    if not candidates:
        raise MetadataError(f"{CONTAINER_PATH} names no package document")

    for rootfile in candidates:
        if rootfile.get("media-type") == OPF_MEDIA_TYPE:
            return rootfile.get("full-path")
    return candidates[0].get("full-path")


def _first_text(metadata: etree._Element | None, name: str) -> str:
    if metadata is None:
        return ""
    node = metadata.find(f"dc:{name}", _NS)
    if node is None:
        return ""
    return "".join(node.itertext()).strip()


def _parse_manifest(package: etree._Element) -> list[ManifestItem]:
    items = []
    for item in package.findall("opf:manifest/opf:item", _NS):
        href = item.get("href")
        if not href:
            continue
        items.append(
            ManifestItem(
                id=item.get("id", ""),
                href=href,
                media_type=item.get("media-type", ""),
                properties=frozenset((item.get("properties") or "").split()),
            )
        )
    return items


def find_cover_item(package: etree._Element, manifest: list[ManifestItem]) -> ManifestItem | None:
    """Pick the manifest item holding the cover image, if the package declares one.

    Checks, in order: the EPUB 3 cover-image property, the EPUB 2
    <meta name="cover"> pointer, and an image item whose id is "cover".
    """
    for item in manifest:
        if "cover-image" in item.properties:
            return item

    by_id = {item.id: item for item in manifest}
    for meta in package.findall("opf:metadata/opf:meta", _NS):
        if meta.get("name") == "cover":
            item = by_id.get(meta.get("content", ""))
            if item is not None:
                return item

    item = by_id.get("cover")
    if item is not None and item.media_type.startswith("image/"):
        return item

    return None


def resolve_href(opf_path: str, href: str) -> str:
    """Resolve a manifest href against the OPF document's directory in the archive."""
    base = posixpath.dirname(opf_path)
    joined = posixpath.normpath(posixpath.join(base, unquote(href)))
    return joined.lstrip("/")


def read_epub_package(path: Path) -> EpubPackage:
    """Extract package metadata and the cover image from an EPUB file.

    This is a pure read: nothing is written and no identifiers are minted.

    Args:
        path: Path to the EPUB file.

    Returns:
        EpubPackage with the OPF fields, manifest, and cover bytes if declared.

    Raises:
        ArchiveError: If the file cannot be opened as a zip archive.
        MetadataError: If container.xml or the OPF is missing or malformed.
        CoverError: If the package declares a cover that cannot be read.
    """
    with open_archive(path) as zf:
        container = _read_xml_member(zf, CONTAINER_PATH)
        opf_path = find_opf_path(container)
        package = _read_xml_member(zf, opf_path)

        metadata = package.find("opf:metadata", _NS)
        manifest = _parse_manifest(package)
        pkg = EpubPackage(
            opf_path=opf_path,
            title=_first_text(metadata, "title"),
            creator=_first_text(metadata, "creator"),
            language=_first_text(metadata, "language"),
            date=_first_text(metadata, "date"),
            description=_first_text(metadata, "description"),
            manifest=manifest,
        )

        cover = find_cover_item(package, manifest)
        if cover is None:
            logger.debug("No cover declared in %s", path)
            return pkg

        cover_path = resolve_href(opf_path, cover.href)
        try:
            pkg.cover_image = read_member(zf, cover_path)
        except _MEMBER_ERRORS as exc:
            raise CoverError(f"Declared cover {cover_path} unreadable in {path}: {exc}") from exc
        pkg.cover_type = cover.media_type or None
        pkg.cover_path = cover_path

    return pkg
