"""Resolution and autofill commands."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...autofill import Autofiller
from ...config import get_settings
from ...matching.diagnostics import describe_element, nearest_fields
from ...matching.resolver import FieldResolver
from ...storage.field_store import page_key
from ..sources import open_page, open_store, store_option

console = Console()
err_console = Console(stderr=True)


@click.command(name="resolve")
@click.argument("source")
@click.option("--url", "-u", help="Page URL the values were saved for (defaults to SOURCE with --live)")
@click.option("--live", is_flag=True, help="Treat SOURCE as a URL and load it in Chromium")
@click.option("--near-misses/--no-near-misses", default=True, help="Suggest live fields for unresolved descriptors")
@store_option
def resolve_command(source: str, url: Optional[str], live: bool, near_misses: bool, store_path: Optional[str]):
    """
    Locate every stored field for a page in SOURCE.

    SOURCE is an HTML file, or a URL when --live is given.
    """
    key = _page_key(source, url, live)
    store = open_store(store_path)
    descriptors = store.descriptors(key)
    if not descriptors:
        console.print(f"[yellow]No stored fields for[/yellow] [cyan]{key}[/cyan]")
        return

    with open_page(source, live=live) as (tree, scope):
        results = FieldResolver(tree).resolve_all(descriptors, scope)

        table = Table(title=f"Matches for {key}", border_style="blue")
        table.add_column("Hash", style="cyan")
        table.add_column("Method", style="magenta")
        table.add_column("Confidence", justify="right", style="green")
        table.add_column("Element", style="yellow")
        for result in results:
            table.add_row(
                result.hash or "",
                result.method,
                f"{result.confidence:.0%}",
                escape(describe_element(tree, result.element)),
            )
        console.print(table)

        resolved = {result.hash for result in results}
        unresolved = [descriptor for descriptor in descriptors if descriptor.hash not in resolved]
        for descriptor in unresolved:
            console.print(f"[red]✗[/red] No match for [cyan]{descriptor.hash}[/cyan] ({escape(descriptor.selectors.primary)})")
            if not near_misses:
                continue
            for miss in nearest_fields(tree, descriptor, scope):
                console.print(f"    [dim]closest:[/dim] {escape(miss.summary)} [dim]({miss.score:.0%})[/dim]")


@click.command(name="fill")
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", "-u", required=True, help="Page URL the values were saved for")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the filled HTML here (defaults to stdout)")
@click.option("--min-confidence", type=float, default=None, help="Minimum match confidence to apply a value")
@store_option
def fill_command(page: str, url: str, output: Optional[str], min_confidence: Optional[float], store_path: Optional[str]):
    """Apply stored values to the fields of an HTML PAGE."""
    key = page_key(url)
    threshold = min_confidence if min_confidence is not None else get_settings().min_confidence
    store = open_store(store_path)

    with open_page(page) as (tree, scope):
        report = Autofiller(tree, store, min_confidence=threshold).apply(key, scope)
        html = tree.to_html()

    if output:
        Path(output).write_text(html, encoding="utf-8")
        console.print(f"[green]✓[/green] Filled {report.filled_count} field(s), wrote [cyan]{output}[/cyan]")
    else:
        click.echo(html)

    if report.skipped_low_confidence:
        err_console.print(f"[yellow]Skipped {report.skipped_low_confidence} low-confidence match(es)[/yellow]")


def _page_key(source: str, url: Optional[str], live: bool) -> str:
    if url:
        return page_key(url)
    if live:
        return page_key(source)
    raise click.UsageError("--url is required when SOURCE is a file")
