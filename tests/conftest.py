# ABOUTME: Shared pytest fixtures for uopds tests.
# ABOUTME: Builds EPUB and CBZ files (valid and malformed) and a wired-up catalog stack.

import os
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from uopds.config import ServerConfig
from uopds.core.feed import FeedSynthesizer
from uopds.core.importer import ImporterRegistry, build_registry
from uopds.db.catalog import CatalogStore
from uopds.db.connection import open_catalog

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

# A tiny but real JPEG header; nothing decodes it, only hashes it.
COVER_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00cover-image-bytes\xff\xd9"


def _opf_document(
    *,
    title: str,
    creator: str,
    language: str,
    date: str,
    description: str,
    encoding: str,
    cover_href: str | None,
    cover_style: str,
) -> bytes:
    meta = ""
    items = ['<item id="chap01" href="text/chap01.xhtml" media-type="application/xhtml+xml"/>']
    if cover_href is not None:
        if cover_style == "property":
            items.append(
                f'<item id="cover-img" href="{cover_href}" media-type="image/jpeg" '
                'properties="cover-image"/>'
            )
        elif cover_style == "meta":
            meta = '<meta name="cover" content="my-cover"/>'
            items.append(f'<item id="my-cover" href="{cover_href}" media-type="image/jpeg"/>')
        else:
            items.append(f'<item id="cover" href="{cover_href}" media-type="image/jpeg"/>')

    body = f"""<?xml version="1.0" encoding="{encoding}"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="uid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="uid">test-{title}</dc:identifier>
    <dc:title>{title}</dc:title>
    <dc:creator>{creator}</dc:creator>
    <dc:language>{language}</dc:language>
    <dc:date>{date}</dc:date>
    <dc:description>{description}</dc:description>
    {meta}
  </metadata>
  <manifest>
    {"".join(items)}
  </manifest>
  <spine><itemref idref="chap01"/></spine>
</package>
"""
    return body.encode(encoding)


def build_epub(
    path: Path,
    *,
    title: str = "The Name of the Rose",
    creator: str = "Umberto Eco",
    language: str = "en",
    date: str = "1980",
    description: str = "A mystery set in a medieval monastery.",
    opf_path: str = "OEBPS/content.opf",
    encoding: str = "UTF-8",
    cover: bytes | None = None,
    cover_href: str = "images/cover.jpg",
    cover_style: str = "property",
    store_cover: bool = True,
    with_container: bool = True,
) -> Path:
    """Write an EPUB by hand so tests control every byte of its structure."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opf_dir = opf_path.rpartition("/")[0]
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        if with_container:
            zf.writestr("META-INF/container.xml", CONTAINER_XML.format(opf_path=opf_path))
        zf.writestr(
            opf_path,
            _opf_document(
                title=title,
                creator=creator,
                language=language,
                date=date,
                description=description,
                encoding=encoding,
                cover_href=cover_href if cover is not None else None,
                cover_style=cover_style,
            ),
        )
        prefix = f"{opf_dir}/" if opf_dir else ""
        zf.writestr(f"{prefix}text/chap01.xhtml", "<html><body><p>Content.</p></body></html>")
        if cover is not None and store_cover:
            zf.writestr(f"{prefix}{cover_href}", cover)
    return path


def build_cbz(path: Path, members: list[tuple[str, bytes]]) -> Path:
    """Write a CBZ whose central directory lists members in the given order."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members:
            zf.writestr(name, data)
    return path


@pytest.fixture
def make_epub() -> Callable[..., Path]:
    """Factory for hand-built EPUB files."""
    return build_epub


@pytest.fixture
def make_cbz() -> Callable[..., Path]:
    """Factory for CBZ files."""
    return build_cbz


@pytest.fixture
def cover_bytes() -> bytes:
    """Raw bytes standing in for a cover image."""
    return COVER_BYTES


def write_raw_name(directory: Path, raw_name: bytes, data: bytes = b"x") -> None:
    """Create a file whose name is arbitrary bytes, skipping where the filesystem refuses."""
    try:
        with open(os.path.join(os.fsencode(directory), raw_name), "wb") as f:
            f.write(data)
    except OSError as exc:
        pytest.skip(f"filesystem rejects non-UTF-8 names: {exc}")


@pytest.fixture
def make_raw_name() -> Callable[..., None]:
    """Factory for files whose names are not valid UTF-8."""
    return write_raw_name


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """Create a minimal valid EPUB file with known metadata using ebooklib."""
    book = epub.EpubBook()

    book.set_identifier("test-isbn-978-0-123456-47-2")
    book.set_title("The Name of the Rose")
    book.set_language("en")
    book.add_author("Umberto Eco")

    book.add_metadata("DC", "description", "A mystery set in a medieval monastery.")
    book.add_metadata("DC", "date", "1980-01-01")

    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "name_of_the_rose.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """Create a corrupt file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath


@pytest.fixture
def config(tmp_path: Path) -> ServerConfig:
    """A server configuration rooted in a temporary directory."""
    books = tmp_path / "books"
    books.mkdir()
    return ServerConfig(
        book_dir=books,
        cover_dir=tmp_path / "covers",
        db_path=tmp_path / "store" / "catalog.db",
    )


@pytest.fixture
def store(config: ServerConfig) -> Iterator[CatalogStore]:
    """A CatalogStore backed by a temporary database."""
    catalog = CatalogStore(open_catalog(config.db_path))
    yield catalog
    catalog.close()


@pytest.fixture
def registry(config: ServerConfig, store: CatalogStore) -> ImporterRegistry:
    """The default importer registry for the temporary configuration."""
    return build_registry(config, store)


@pytest.fixture
def synthesizer(
    config: ServerConfig, store: CatalogStore, registry: ImporterRegistry
) -> FeedSynthesizer:
    """A FeedSynthesizer wired to the temporary store and registry."""
    return FeedSynthesizer(config, store, registry)
