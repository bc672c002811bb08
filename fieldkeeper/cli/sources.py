"""Helpers for opening page sources and the field store from CLI commands."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

import click

from ..config import get_settings
from ..dom.html_tree import HtmlTree
from ..storage.field_store import FieldStore

logger = logging.getLogger(__name__)


def store_option(func):
    """Attach the shared ``--store`` option to a command."""

    return click.option(
        "--store",
        "store_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Field store file (defaults to FIELDKEEPER_STORE_PATH)",
    )(func)


def open_store(store_path: Optional[str]) -> FieldStore:
    return FieldStore(store_path or get_settings().resolved_store_path())


@contextmanager
def open_page(source: str, *, live: bool = False) -> Iterator[Tuple[Any, Any]]:
    """Yield ``(tree, scope)`` for an HTML file, or for a URL loaded in Chromium."""

    if not live:
        tree = HtmlTree.from_path(source)
        yield tree, tree.root
        return

    from playwright.sync_api import sync_playwright

    from ..dom.playwright_tree import PlaywrightTree

    settings = get_settings()
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=settings.headless)
        try:
            page = browser.new_page()
            logger.info("Loading %s", source)
            page.goto(source, wait_until="domcontentloaded")
            tree = PlaywrightTree(page)
            yield tree, tree.root
        finally:
            browser.close()


def first_match(tree: Any, scope: Any, selector: str) -> Any:
    """Return the first element for *selector* or raise a usage error."""

    elements = tree.select(selector, scope)
    if not elements:
        raise click.BadParameter(f"No element matches {selector!r}", param_hint="SELECTOR")
    return elements[0]
