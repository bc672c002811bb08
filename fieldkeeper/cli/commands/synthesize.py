"""Descriptor synthesis command."""
from __future__ import annotations

import json

import click
from rich.console import Console
from rich.syntax import Syntax

from ...matching.synthesizer import SelectorSynthesizer
from ..sources import first_match, open_page

console = Console()


@click.command(name="synthesize")
@click.argument("page", type=click.Path(exists=True, dir_okay=False))
@click.argument("selector")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON without highlighting")
def synthesize_command(page: str, selector: str, as_json: bool):
    """
    Build the descriptor for the first element matching SELECTOR in PAGE.

    Examples:

      fieldkeeper synthesize signup.html "input[name=email]"
    """
    with open_page(page) as (tree, scope):
        element = first_match(tree, scope, selector)
        descriptor = SelectorSynthesizer(tree).synthesize(element)

    payload = json.dumps(descriptor.to_dict(), indent=2, ensure_ascii=False)
    if as_json:
        click.echo(payload)
    else:
        console.print(Syntax(payload, "json", theme="monokai", word_wrap=True))
