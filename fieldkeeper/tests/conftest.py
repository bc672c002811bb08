from __future__ import annotations

import pytest

from fieldkeeper.dom.html_tree import HtmlTree


def page(body: str) -> str:
    return f"<!DOCTYPE html><html><head><title>t</title></head><body>{body}</body></html>"


@pytest.fixture
def make_tree():
    """Parse an HTML body fragment into an :class:`HtmlTree`."""

    def _make(body: str) -> HtmlTree:
        return HtmlTree.from_string(page(body))

    return _make
