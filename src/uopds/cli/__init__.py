# ABOUTME: CLI package for uopds, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import click

from uopds.cli.commands import inspect_cmd, ls_cmd, scan_cmd, serve_cmd


@click.group()
@click.version_option(package_name="uopds")
def cli() -> None:
    """uopds - serve a directory of e-books as an OPDS catalog."""


cli.add_command(serve_cmd.serve)
cli.add_command(scan_cmd.scan)
cli.add_command(ls_cmd.ls)
cli.add_command(inspect_cmd.inspect)
