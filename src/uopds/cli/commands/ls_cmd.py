# ABOUTME: The `uopds ls` command for listing cached catalog entries.
# ABOUTME: Displays a Rich table of every entry in the metadata store.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from uopds.cli.options import db_option, open_store

console = Console()


@click.command("ls")
@db_option
def ls(db_path: Path) -> None:
    """List all entries cached in the metadata store."""
    if not db_path.exists():
        console.print(f"[yellow]No store at {db_path}.[/yellow]")
        return

    store = open_store(db_path, console)
    try:
        entries = store.list_all()
    finally:
        store.close()

    if not entries:
        console.print("[yellow]No entries in the store.[/yellow]")
        return

    table = Table()
    table.add_column("Path", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Lang", width=5)
    table.add_column("Cover", width=5)
    table.add_column("ID", overflow="fold")

    for entry in entries:
        table.add_row(
            entry.source_path,
            entry.title,
            entry.author_name or "[dim]unknown[/dim]",
            entry.language or "?",
            "yes" if entry.cover else "no",
            entry.id,
        )

    console.print(table)
    console.print(f"\n[dim]{len(entries)} entr{'y' if len(entries) == 1 else 'ies'}[/dim]")
