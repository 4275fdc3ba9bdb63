# ABOUTME: Shared Click options and startup helpers for uopds CLI commands.
# ABOUTME: Builds ServerConfig from flags or UOPDS_* environment variables and opens the store.

import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from uopds.config import DEFAULT_BOOK_DIR, DEFAULT_COVER_DIR
from uopds.db.catalog import CatalogStore
from uopds.db.connection import DEFAULT_DB_PATH, open_catalog
from uopds.db.identity import IdentityMode

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_DB_PATH,
    envvar="UOPDS_DB",
    show_default=True,
    help="Path to the metadata store.",
)

verbose_option = click.option(
    "-v", "--verbose",
    is_flag=True,
    default=False,
    help="Log debug messages.",
)

_library_options = [
    click.option(
        "--books",
        "book_dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=DEFAULT_BOOK_DIR,
        envvar="UOPDS_BOOKS",
        show_default=True,
        help="Directory holding the book tree.",
    ),
    click.option(
        "--covers",
        "cover_dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=DEFAULT_COVER_DIR,
        envvar="UOPDS_COVERS",
        show_default=True,
        help="Directory for extracted cover images.",
    ),
    db_option,
    click.option(
        "--identity",
        type=click.Choice([mode.value for mode in IdentityMode]),
        default=IdentityMode.CONTENT_HASH.value,
        envvar="UOPDS_IDENTITY",
        show_default=True,
        help="How catalog entry ids are generated.",
    ),
    click.option(
        "--import-unknown/--ignore-unknown",
        default=False,
        help="Catalog files with unrecognized extensions by filename.",
    ),
    verbose_option,
]


def library_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Apply the options every command that imports books needs."""
    for option in reversed(_library_options):
        func = option(func)
    return func


def configure_logging(verbose: bool) -> None:
    """Send log records through Rich, at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def open_store(db_path: Path, console: Console) -> CatalogStore:
    """Open the metadata store, exiting with status 1 if it is unusable."""
    try:
        return CatalogStore(open_catalog(db_path))
    except (sqlite3.Error, OSError) as exc:
        console.print(f"[red]Error:[/red] cannot open store {db_path}: {exc}")
        raise SystemExit(1) from exc
