# ABOUTME: The `uopds inspect` command for viewing EPUB package metadata.
# ABOUTME: Shows what the importer would read from a single EPUB, without storing anything.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from uopds.formats.archive import FormatError
from uopds.formats.epub import read_epub_package

console = Console()


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(path: Path) -> None:
    """Show metadata read from an EPUB file."""
    try:
        pkg = read_epub_package(path)
    except FormatError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    table = Table(title=str(path.name), show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", pkg.title or "[dim]none[/dim]")
    table.add_row("Author", pkg.creator or "[dim]unknown[/dim]")
    table.add_row("Language", pkg.language or "[dim]unknown[/dim]")
    table.add_row("Date", pkg.date or "[dim]none[/dim]")
    table.add_row("Description", pkg.description or "[dim]none[/dim]")
    table.add_row("Package", pkg.opf_path)
    table.add_row("Manifest", f"{len(pkg.manifest)} item(s)")
    if pkg.has_cover:
        table.add_row("Cover", f"{pkg.cover_path} ({pkg.cover_type or 'unknown type'})")
    else:
        table.add_row("Cover", "no")

    console.print(table)
