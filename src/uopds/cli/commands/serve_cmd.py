# ABOUTME: The `uopds serve` command that runs the OPDS catalog server.
# ABOUTME: Builds the config, store, importer registry, and synthesizer, then serves forever.

import logging
from pathlib import Path

import click
from rich.console import Console

from uopds.cli.options import configure_logging, library_options, open_store
from uopds.config import DEFAULT_TITLE, ServerConfig, parse_addr
from uopds.core.feed import FeedSynthesizer
from uopds.core.importer import build_registry
from uopds.db.identity import IdentityMode
from uopds.server import CatalogServer

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option(
    "--addr",
    default=":8080",
    envvar="UOPDS_ADDR",
    show_default=True,
    help="Listen address as HOST:PORT.",
)
@click.option(
    "--root",
    default="",
    envvar="UOPDS_ROOT",
    help="URL prefix the catalog is mounted under.",
)
@click.option(
    "--title",
    default=DEFAULT_TITLE,
    show_default=True,
    help="Title of the top-level feed.",
)
@library_options
def serve(
    addr: str,
    root: str,
    title: str,
    book_dir: Path,
    cover_dir: Path,
    db_path: Path,
    identity: str,
    import_unknown: bool,
    verbose: bool,
) -> None:
    """Serve the book directory as an OPDS catalog."""
    console = Console(stderr=True)
    configure_logging(verbose)

    try:
        host, port = parse_addr(addr)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--addr") from exc

    if not book_dir.is_dir():
        console.print(f"[red]Error:[/red] book directory {book_dir} does not exist")
        raise SystemExit(1)

    config = ServerConfig(
        book_dir=book_dir,
        cover_dir=cover_dir,
        db_path=db_path,
        root=root,
        identity=IdentityMode(identity),
        import_unknown=import_unknown,
        title=title,
        host=host,
        port=port,
    )
    config.cover_dir.mkdir(parents=True, exist_ok=True)

    store = open_store(config.db_path, console)
    synthesizer = FeedSynthesizer(config, store, build_registry(config, store))
    server = CatalogServer(config, synthesizer)

    logger.info(
        "Serving %s at http://%s:%d%s/", config.book_dir, host or "0.0.0.0", port, config.root
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        store.close()
