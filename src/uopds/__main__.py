# ABOUTME: Entry point for `python -m uopds`.
# ABOUTME: Delegates to the Click command group.

from uopds.cli import cli

if __name__ == "__main__":
    cli()
