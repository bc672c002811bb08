"""Tree-access capability shared by the matching engine and its backends.

The engine never touches a document directly. Everything it needs (selector
queries, element attributes, parent/sibling navigation) goes through an object
implementing :class:`TreeAccess`. Two backends ship with the package:
:class:`~fieldkeeper.dom.html_tree.HtmlTree` for parsed page snapshots and
:class:`~fieldkeeper.dom.playwright_tree.PlaywrightTree` for live pages.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Protocol, Sequence

FIELD_SELECTOR = "input, textarea, select"
"""CSS selector for every element that counts toward position hints."""

FIELD_TAGS: Sequence[str] = ("input", "textarea", "select")

FIELD_INPUT_TYPES: Sequence[str] = (
    "text",
    "email",
    "password",
    "tel",
    "url",
    "search",
    "number",
)
"""Input types the resolver accepts as text-like fields."""

LEGACY_INPUT_TYPES: Sequence[str] = tuple(FIELD_INPUT_TYPES) + ("checkbox", "radio")
"""Input types recognised by the legacy field-id scheme."""

_IDENT_SPECIAL_RE = re.compile(r"""([!"#$%&'()*+,./:;<=>?@\[\\\]^`{|}~])""")
_WHITESPACE_RE = re.compile(r"\s")
_LEADING_DIGIT_RE = re.compile(r"^(-?)([0-9])")


class SelectorSyntaxError(ValueError):
    """Raised by a backend when a selector cannot be parsed or evaluated."""

    def __init__(self, selector: str, reason: str = "") -> None:
        message = f"Invalid selector {selector!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.selector = selector
        self.reason = reason


class TreeAccess(Protocol):
    """Protocol describing the element operations the engine relies on.

    ``scope`` arguments accept whatever the backend uses as a query root (a
    parsed document, a live page, or an element).
    """

    def select(self, selector: str, scope: Any) -> List[Any]:
        ...

    def tag(self, element: Any) -> str:
        ...

    def attribute(self, element: Any, name: str) -> Optional[str]:
        ...

    def attributes(self, element: Any) -> Dict[str, str]:
        ...

    def classes(self, element: Any) -> List[str]:
        ...

    def field_type(self, element: Any) -> Optional[str]:
        ...

    def is_required(self, element: Any) -> bool:
        ...

    def text(self, element: Any) -> str:
        ...

    def parent(self, element: Any) -> Optional[Any]:
        ...

    def closest(self, element: Any, tag: str) -> Optional[Any]:
        ...

    def children(self, element: Any) -> List[Any]:
        ...

    def previous_sibling(self, element: Any) -> Optional[Any]:
        ...

    def document(self, element: Any) -> Any:
        ...

    def same(self, first: Any, second: Any) -> bool:
        ...

    def value(self, element: Any) -> str:
        ...

    def set_value(self, element: Any, value: str) -> None:
        ...

    def has_class(self, element: Any, name: str) -> bool:
        ...

    def add_class(self, element: Any, name: str) -> None:
        ...

    def set_data(self, element: Any, key: str, value: str) -> None:
        ...

    def release(self, element: Any) -> None:
        """Drop a reference obtained from a query or navigation call."""
        ...


def is_field(tree: TreeAccess, element: Any, *, input_types: Sequence[str] = FIELD_INPUT_TYPES) -> bool:
    """Return ``True`` when *element* is a field the resolver may return."""

    tag = tree.tag(element)
    if tag not in FIELD_TAGS:
        return False
    if tag == "input":
        return tree.field_type(element) in input_types
    return True


def find_associated_label(tree: TreeAccess, element: Any) -> Optional[Any]:
    """Locate the ``<label>`` describing *element*.

    Checks, in order: an explicit ``label[for=id]`` in the same document, an
    enclosing label, then a label immediately preceding the element.
    """

    element_id = tree.attribute(element, "id")
    if element_id:
        try:
            labels = tree.select(f"label[for={css_string(element_id)}]", tree.document(element))
        except SelectorSyntaxError:
            labels = []
        for extra in labels[1:]:
            tree.release(extra)
        if labels:
            return labels[0]

    enclosing = tree.closest(element, "label")
    if enclosing is not None:
        return enclosing

    previous = tree.previous_sibling(element)
    if previous is not None:
        if tree.tag(previous) == "label":
            return previous
        tree.release(previous)
    return None


def css_string(value: str) -> str:
    """Quote *value* as a double-quoted CSS string."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def css_identifier(value: str) -> str:
    """Escape *value* for use after ``.`` or ``#`` in a selector.

    >>> css_identifier("md:w-1/2")
    'md\\\\:w-1\\\\/2'
    """

    escaped = _IDENT_SPECIAL_RE.sub(r"\\\1", value)
    escaped = _WHITESPACE_RE.sub(lambda match: f"\\{ord(match.group(0)):x} ", escaped)
    # Identifiers cannot start with a digit, or with "-" followed by a digit
    leading = _LEADING_DIGIT_RE.match(escaped)
    if leading:
        prefix, digit = leading.groups()
        escaped = f"{prefix}\\{ord(digit):x} {escaped[leading.end():]}"
    return escaped
