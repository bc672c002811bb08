"""lxml-backed tree access for parsed page snapshots."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import lxml.html
from cssselect import HTMLTranslator, SelectorError
from cssselect.xpath import ExpressionError
from lxml import etree

from .tree import SelectorSyntaxError

logger = logging.getLogger(__name__)

_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_LOWER = "abcdefghijklmnopqrstuvwxyz"


class _FieldTranslator(HTMLTranslator):
    """HTML translator that also understands Playwright's ``:has-text()``."""

    def xpath_has_text_function(self, xpath, function):
        if [token.type for token in function.arguments] not in (["STRING"], ["IDENT"]):
            raise ExpressionError(
                f"Expected a single string or ident for :has-text(), got {function.arguments!r}"
            )
        needle = " ".join(function.arguments[0].value.split()).lower()
        haystack = f"translate(normalize-space(.), '{_UPPER}', '{_LOWER}')"
        return xpath.add_condition(f"contains({haystack}, {self.xpath_literal(needle)})")


_TRANSLATOR = _FieldTranslator()


@lru_cache(maxsize=512)
def _compile(selector: str) -> etree.XPath:
    try:
        expression = _TRANSLATOR.css_to_xpath(selector)
    except SelectorError as exc:
        raise SelectorSyntaxError(selector, str(exc)) from exc
    try:
        return etree.XPath(expression)
    except etree.XPathSyntaxError as exc:  # pragma: no cover - translator output is valid XPath
        raise SelectorSyntaxError(selector, str(exc)) from exc


def _is_element(node: Any) -> bool:
    return isinstance(node.tag, str)


class HtmlTree:
    """Tree access over an lxml HTML document.

    The document root doubles as the default query scope::

        tree = HtmlTree.from_string(html)
        fields = tree.select("input", tree.root)
    """

    def __init__(self, root: lxml.html.HtmlElement) -> None:
        self.root = root

    @classmethod
    def from_string(cls, markup: str) -> "HtmlTree":
        return cls(lxml.html.document_fromstring(markup))

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "HtmlTree":
        return cls.from_string(Path(path).read_text(encoding="utf-8"))

    def to_html(self) -> str:
        return lxml.html.tostring(self.root, encoding="unicode", doctype="<!DOCTYPE html>")

    def select(self, selector: str, scope: Any = None) -> List[Any]:
        """Return elements matching *selector*, in document order.

        Like ``querySelectorAll``, an element scope matches the selector
        against the whole document and keeps only the scope's descendants.
        """

        compiled = _compile(selector)
        element_scope = scope is not None and scope is not self.root
        base = scope.getroottree().getroot() if element_scope else self.root
        try:
            nodes = compiled(base)
        except etree.XPathEvalError as exc:
            raise SelectorSyntaxError(selector, str(exc)) from exc
        elements = [node for node in nodes if _is_element(node)]
        if element_scope:
            elements = [node for node in elements if any(parent is scope for parent in node.iterancestors())]
        return elements

    def tag(self, element: Any) -> str:
        return str(element.tag).lower()

    def attribute(self, element: Any, name: str) -> Optional[str]:
        return element.get(name)

    def attributes(self, element: Any) -> Dict[str, str]:
        return {str(key): str(value) for key, value in element.attrib.items()}

    def classes(self, element: Any) -> List[str]:
        return (element.get("class") or "").split()

    def field_type(self, element: Any) -> Optional[str]:
        tag = self.tag(element)
        if tag == "input":
            return (element.get("type") or "text").strip().lower() or "text"
        if tag == "textarea":
            return "textarea"
        if tag == "select":
            return "select-multiple" if element.get("multiple") is not None else "select-one"
        return None

    def is_required(self, element: Any) -> bool:
        return element.get("required") is not None

    def text(self, element: Any) -> str:
        return element.text_content()

    def parent(self, element: Any) -> Optional[Any]:
        return element.getparent()

    def closest(self, element: Any, tag: str) -> Optional[Any]:
        current = element
        while current is not None:
            if _is_element(current) and self.tag(current) == tag:
                return current
            current = current.getparent()
        return None

    def children(self, element: Any) -> List[Any]:
        return [child for child in element if _is_element(child)]

    def previous_sibling(self, element: Any) -> Optional[Any]:
        for sibling in element.itersiblings(preceding=True):
            if _is_element(sibling):
                return sibling
        return None

    def document(self, element: Any) -> Any:
        return element.getroottree().getroot()

    def same(self, first: Any, second: Any) -> bool:
        return first is second

    def value(self, element: Any) -> str:
        tag = self.tag(element)
        if tag == "textarea":
            return element.text_content()
        if tag == "select":
            for option in element.iter("option"):
                if option.get("selected") is not None:
                    return option.get("value", option.text_content().strip())
            return ""
        return element.get("value") or ""

    def set_value(self, element: Any, value: str) -> None:
        tag = self.tag(element)
        if tag == "textarea":
            for child in list(element):
                element.remove(child)
            element.text = value
        elif tag == "select":
            for option in element.iter("option"):
                option_value = option.get("value", option.text_content().strip())
                if option_value == value:
                    option.set("selected", "selected")
                elif option.get("selected") is not None:
                    del option.attrib["selected"]
        else:
            element.set("value", value)
        logger.debug("Set value on <%s>", tag)

    def has_class(self, element: Any, name: str) -> bool:
        return name in self.classes(element)

    def add_class(self, element: Any, name: str) -> None:
        classes = self.classes(element)
        if name not in classes:
            classes.append(name)
            element.set("class", " ".join(classes))

    def set_data(self, element: Any, key: str, value: str) -> None:
        element.set(f"data-{key}", value)

    def release(self, element: Any) -> None:
        # lxml proxies are reclaimed by the garbage collector
        return None
