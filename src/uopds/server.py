# ABOUTME: Threaded HTTP server exposing directory feeds, book files, and covers.
# ABOUTME: One thread per request; feeds come from the FeedSynthesizer, files from disk.

import logging
import mimetypes
import shutil
import sqlite3
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from uopds.config import ServerConfig
from uopds.core.feed import FeedSynthesizer
from uopds.opds.atom import FEED_CONTENT_TYPE, render_feed

logger = logging.getLogger(__name__)

BOOKS_MOUNT = "/books/"
COVERS_MOUNT = "/covers/"
_COPY_BUFSIZE = 64 * 1024


def resolve_static(base: Path, rel: str) -> Path | None:
    """Map a URL-decoded path under a mount onto a file inside base.

    Returns None if the path escapes base or is not a regular file.
    """
    base = base.resolve()
    try:
        target = (base / rel.lstrip("/")).resolve()
    except (OSError, RuntimeError):
        return None
    if not target.is_relative_to(base) or not target.is_file():
        return None
    return target


class CatalogRequestHandler(BaseHTTPRequestHandler):
    """Routes GET and HEAD requests under the configured mount root."""

    server: "CatalogServer"
    server_version = "uopds"

    def do_GET(self) -> None:
        self._dispatch(send_body=True)

    def do_HEAD(self) -> None:
        self._dispatch(send_body=False)

    def _dispatch(self, send_body: bool) -> None:
        config = self.server.config
        path = unquote(urlsplit(self.path).path)

        if config.root:
            if path != config.root and not path.startswith(config.root + "/"):
                self.send_error(HTTPStatus.NOT_FOUND)
                return
            path = path[len(config.root):]

        if path.startswith(BOOKS_MOUNT):
            self._serve_file(config.book_dir, path[len(BOOKS_MOUNT):], send_body)
        elif path.startswith(COVERS_MOUNT):
            self._serve_file(config.cover_dir, path[len(COVERS_MOUNT):], send_body)
        else:
            self._serve_feed(path or "/", send_body)

    def _serve_feed(self, request_path: str, send_body: bool) -> None:
        try:
            feed = self.server.synthesizer.render_directory(request_path)
        except (FileNotFoundError, NotADirectoryError):
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        except PermissionError:
            self.send_error(HTTPStatus.FORBIDDEN)
            return
        except OSError as exc:
            logger.error("Failed to list %s: %s", request_path, exc)
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR)
            return
        except sqlite3.Error as exc:
            logger.error("Store failure while listing %s: %s", request_path, exc)
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR)
            return

        try:
            body = render_feed(feed, self.server.config)
        except ValueError as exc:
            logger.error("Failed to serialize feed for %s: %s", request_path, exc)
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR)
            return

        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", FEED_CONTENT_TYPE)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if send_body:
            self.wfile.write(body)

    def _serve_file(self, base: Path, rel: str, send_body: bool) -> None:
        target = resolve_static(base, rel)
        if target is None:
            self.send_error(HTTPStatus.NOT_FOUND)
            return

        content_type, _ = mimetypes.guess_type(target.name)
        try:
            f = open(target, "rb")
        except OSError:
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        with f:
            size = target.stat().st_size
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", content_type or "application/octet-stream")
            self.send_header("Content-Length", str(size))
            self.end_headers()
            if send_body:
                shutil.copyfileobj(f, self.wfile, _COPY_BUFSIZE)

    def log_message(self, format: str, *args: object) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


class CatalogServer(ThreadingHTTPServer):
    """ThreadingHTTPServer carrying the configuration and feed synthesizer."""

    daemon_threads = True

    def __init__(self, config: ServerConfig, synthesizer: FeedSynthesizer) -> None:
        self.config = config
        self.synthesizer = synthesizer
        super().__init__((config.host, config.port), CatalogRequestHandler)
