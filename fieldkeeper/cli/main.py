#!/usr/bin/env python3
"""Main CLI entry point for fieldkeeper."""
from __future__ import annotations

import logging
import sys

import click
from rich.console import Console

from ..config import get_settings
from .commands import fields, resolve, synthesize

console = Console(stderr=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version="0.1.0", prog_name="fieldkeeper")
def cli(verbose: bool):
    """
    fieldkeeper - remember form values and find their fields again.

    Descriptors survive reloads that regenerate ids, reorder markup or
    rebuild the page entirely.
    """
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Register all commands
cli.add_command(synthesize.synthesize_command)
cli.add_command(resolve.resolve_command)
cli.add_command(resolve.fill_command)
cli.add_command(fields.save_command)
cli.add_command(fields.fields_command)
cli.add_command(fields.forget_command)
cli.add_command(fields.migrate_command)


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
