# ABOUTME: Serializes Feed values as OPDS Atom documents using lxml.
# ABOUTME: Catalog entries get acquisition and cover links built from the mount root.

import re
from datetime import datetime, timezone
from urllib.parse import quote

from lxml import etree

from uopds.catalog.types import NAVIGATION_TYPE, CatalogEntry, Feed, Link, NavigationEntry
from uopds.config import ServerConfig

ATOM_NS = "http://www.w3.org/2005/Atom"
DC_TERMS_NS = "http://purl.org/dc/terms/"
OPDS_NS = "http://opds-spec.org/2010/catalog"

FEED_CONTENT_TYPE = NAVIGATION_TYPE
SUBSECTION_REL = "subsection"

_NSMAP = {None: ATOM_NS, "dc": DC_TERMS_NS, "opds": OPDS_NS}

# Characters XML 1.0 cannot carry, such as C0 controls and lone surrogates.
_XML_INVALID = re.compile(r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def xml_safe(value: str) -> str:
    """Drop characters that cannot appear in an XML document."""
    return _XML_INVALID.sub("", value)


def xml_safe_href(href: str) -> str:
    """Percent-encode characters in a link target that XML cannot carry.

    The server unquotes request paths, so the link still reaches the file.
    """
    return _XML_INVALID.sub(
        lambda m: quote(m.group(), safe="", errors="surrogatepass"), href
    )


def _atom(tag: str) -> str:
    return f"{{{ATOM_NS}}}{tag}"


def _timestamp(value: datetime | None) -> str:
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


def _text(parent: etree._Element, tag: str, text: str) -> etree._Element:
    node = etree.SubElement(parent, tag)
    node.text = xml_safe(text)
    return node


def _link(parent: etree._Element, link: Link) -> None:
    etree.SubElement(
        parent,
        _atom("link"),
        rel=xml_safe(link.rel),
        href=xml_safe_href(link.href),
        type=xml_safe(link.type),
    )


def _author(parent: etree._Element, name: str) -> None:
    author = etree.SubElement(parent, _atom("author"))
    _text(author, _atom("name"), name)


def _navigation_entry(parent: etree._Element, nav: NavigationEntry, updated: str) -> None:
    node = etree.SubElement(parent, _atom("entry"))
    _text(node, _atom("title"), nav.title)
    _text(node, _atom("id"), nav.id)
    _text(node, _atom("updated"), updated)
    _link(node, Link(rel=SUBSECTION_REL, href=nav.href, type=NAVIGATION_TYPE))


def _catalog_entry(parent: etree._Element, entry: CatalogEntry, root: str) -> None:
    node = etree.SubElement(parent, _atom("entry"))
    _text(node, _atom("title"), entry.title)
    _text(node, _atom("id"), entry.id)
    _text(node, _atom("updated"), _timestamp(entry.updated_at))
    if entry.author_name:
        _author(node, entry.author_name)
    if entry.language:
        _text(node, f"{{{DC_TERMS_NS}}}language", entry.language)
    if entry.date:
        _text(node, f"{{{DC_TERMS_NS}}}issued", entry.date)
    if entry.summary:
        summary = _text(node, _atom("summary"), entry.summary)
        summary.set("type", "text")
    for link in entry.links(root):
        _link(node, link)


def feed_to_element(feed: Feed, config: ServerConfig) -> etree._Element:
    """Build the Atom <feed> element for a rendered directory."""
    updated = _timestamp(feed.updated)

    doc = etree.Element(_atom("feed"), nsmap=_NSMAP)
    _text(doc, _atom("id"), feed.id)
    _text(doc, _atom("title"), feed.title)
    _text(doc, _atom("updated"), updated)
    _author(doc, config.title)
    for link in feed.links:
        _link(doc, link)

    for entry in feed.entries:
        if isinstance(entry, NavigationEntry):
            _navigation_entry(doc, entry, updated)
        else:
            _catalog_entry(doc, entry, config.root)
    return doc


def render_feed(feed: Feed, config: ServerConfig) -> bytes:
    """Serialize a Feed to UTF-8 Atom XML with an XML declaration.

    Args:
        feed: The rendered directory.
        config: Server configuration; its root prefixes entry links and its
            title names the feed author.

    Returns:
        The encoded document.
    """
    return etree.tostring(
        feed_to_element(feed, config),
        xml_declaration=True,
        encoding="utf-8",
        pretty_print=True,
    )
