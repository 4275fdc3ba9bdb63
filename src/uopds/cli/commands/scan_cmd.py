# ABOUTME: The `uopds scan` command for warming the metadata store.
# ABOUTME: Imports every uncached file under the book root and prints a summary.

from pathlib import Path

import click
from rich.console import Console

from uopds.cli.options import configure_logging, library_options, open_store
from uopds.config import ServerConfig
from uopds.core.importer import build_registry
from uopds.core.scanner import scan_library
from uopds.db.identity import IdentityMode

console = Console()


@click.command("scan")
@library_options
def scan(
    book_dir: Path,
    cover_dir: Path,
    db_path: Path,
    identity: str,
    import_unknown: bool,
    verbose: bool,
) -> None:
    """Import every file in the book tree that is not cached yet."""
    configure_logging(verbose)

    if not book_dir.is_dir():
        console.print(f"[red]Error:[/red] book directory {book_dir} does not exist")
        raise SystemExit(1)

    config = ServerConfig(
        book_dir=book_dir,
        cover_dir=cover_dir,
        db_path=db_path,
        identity=IdentityMode(identity),
        import_unknown=import_unknown,
    )

    store = open_store(config.db_path, console)
    try:
        result = scan_library(config, store, build_registry(config, store))
    finally:
        store.close()

    parts = [f"[green]{result.added} added[/green]", f"{result.cached} cached"]
    if result.skipped:
        parts.append(f"[yellow]{result.skipped} skipped[/yellow]")
    if result.errors:
        parts.append(f"[red]{result.errors} error(s)[/red]")
    console.print(", ".join(parts))

    if result.error_details:
        console.print(f"\n[yellow]{result.errors} file(s) could not be imported:[/yellow]")
        for path, msg in result.error_details:
            console.print(f"  [dim]{path}:[/dim] {msg}")
