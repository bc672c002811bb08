"""Commands for saving, listing and removing remembered values."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...autofill import Autofiller
from ...storage.field_store import STORAGE_VERSION, is_advanced_record, page_key
from ..sources import first_match, open_page, open_store, store_option

console = Console()


@click.command(name="save")
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.argument("selector")
@click.argument("value")
@click.option("--url", "-u", required=True, help="Page URL to remember the value for")
@store_option
def save_command(page: str, selector: str, value: str, url: str, store_path: Optional[str]):
    """
    Remember VALUE for the field matching SELECTOR in PAGE.

    An empty VALUE forgets the field's current value instead.
    """
    key = page_key(url)
    store = open_store(store_path)
    with open_page(page) as (tree, scope):
        element = first_match(tree, scope, selector)
        field_hash = Autofiller(tree, store).remember(key, element, value, scope)

    if not value.strip():
        if field_hash:
            console.print(f"[green]✓[/green] Forgot [cyan]{field_hash}[/cyan] on {escape(key)}")
        else:
            console.print("[yellow]No stored value matched that field[/yellow]")
        return

    record = store.get(key).get(field_hash) or {}
    console.print(
        f"[green]✓[/green] Saved [cyan]{field_hash}[/cyan] on {escape(key)} "
        f"[dim](confidence {record.get('confidence', 0):.0%})[/dim]"
    )


@click.command(name="fields")
@click.option("--url", "-u", help="Only show fields for this page")
@store_option
def fields_command(url: Optional[str], store_path: Optional[str]):
    """List remembered values."""
    store = open_store(store_path)
    pages = store.all_pages()
    if url:
        key = page_key(url)
        pages = {key: pages[key]} if key in pages else {}

    if not pages:
        console.print("[yellow]No saved fields[/yellow]")
        return

    for key, page in pages.items():
        table = Table(title=key, border_style="blue")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="yellow")
        table.add_column("Confidence", justify="right", style="green")
        table.add_column("Uses", justify="right")
        table.add_column("Last used", style="dim")

        for field_id, record in page.items():
            if is_advanced_record(record):
                last_used = record.get("last_used")
                table.add_row(
                    field_id,
                    escape(str(record["value"])),
                    f"{float(record.get('confidence', 0)):.0%}",
                    str(record.get("use_count", 0)),
                    _format_timestamp(last_used) if last_used else "",
                )
            else:
                table.add_row(escape(field_id), escape(str(record)), "legacy", "", "")
        console.print(table)


@click.command(name="forget")
@click.argument("url")
@click.argument("field_hash", required=False)
@click.option("--all-fields", is_flag=True, help="Forget every field saved for URL")
@store_option
def forget_command(url: str, field_hash: Optional[str], all_fields: bool, store_path: Optional[str]):
    """Forget the value stored under FIELD_HASH for URL."""
    key = page_key(url)
    store = open_store(store_path)
    if all_fields:
        store.clear_page(key)
        console.print(f"[green]✓[/green] Cleared all fields for {escape(key)}")
        return
    if not field_hash:
        raise click.UsageError("Give a FIELD_HASH or --all-fields")
    if store.delete(key, field_hash):
        console.print(f"[green]✓[/green] Forgot [cyan]{field_hash}[/cyan]")
    else:
        console.print(f"[red]Error:[/red] No field [cyan]{field_hash}[/cyan] stored for {escape(key)}")
        raise SystemExit(1)


@click.command(name="migrate")
@store_option
def migrate_command(store_path: Optional[str]):
    """Mark the field store as current-format (legacy entries are kept as-is)."""
    store = open_store(store_path)
    if store.migrate_legacy():
        console.print(f"[green]✓[/green] Store marked as version {STORAGE_VERSION}")
    else:
        console.print(f"[dim]Store already at version {STORAGE_VERSION}[/dim]")


def _format_timestamp(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
