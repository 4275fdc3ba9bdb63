# ABOUTME: Server configuration for uopds, built once at startup.
# ABOUTME: Holds directories, store path, mount root, and identity mode; no global state.

from dataclasses import dataclass
from pathlib import Path

from uopds.db.connection import DEFAULT_DB_PATH
from uopds.db.identity import IdentityMode

DEFAULT_BOOK_DIR = Path("books")
DEFAULT_COVER_DIR = Path("covers")
DEFAULT_TITLE = "uopds"
DEFAULT_HOST = ""
DEFAULT_PORT = 8080


def normalize_root(root: str) -> str:
    """Normalize a mount root so that root + "/books/" composes cleanly.

    "" and "/" both mean the server is mounted at the top. Anything else gets
    a single leading slash and no trailing slash: "opds/" becomes "/opds".
    """
    root = root.strip().rstrip("/")
    if root and not root.startswith("/"):
        root = "/" + root
    return root


def parse_addr(addr: str) -> tuple[str, int]:
    """Split a HOST:PORT listen address. An empty host listens on all interfaces.

    Raises:
        ValueError: If the port is missing or not an integer.
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"Listen address must be HOST:PORT, got {addr!r}")
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"Invalid port in listen address {addr!r}") from exc


@dataclass(frozen=True)
class ServerConfig:
    """Everything the store, importers, and feed synthesizer need to know.

    Constructed once by the CLI (or a test) and passed by reference into
    every component constructor.
    """

    book_dir: Path = DEFAULT_BOOK_DIR
    cover_dir: Path = DEFAULT_COVER_DIR
    db_path: Path = DEFAULT_DB_PATH
    root: str = ""
    identity: IdentityMode = IdentityMode.CONTENT_HASH
    import_unknown: bool = False
    title: str = DEFAULT_TITLE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "root", normalize_root(self.root))
        object.__setattr__(self, "book_dir", Path(self.book_dir))
        object.__setattr__(self, "cover_dir", Path(self.cover_dir))
        object.__setattr__(self, "db_path", Path(self.db_path))
