"""Legacy field identifiers used by stores written before descriptors existed."""
from __future__ import annotations

import re
from typing import Any, List

from ..dom.tree import FIELD_SELECTOR, LEGACY_INPUT_TYPES, TreeAccess, is_field

_WHITESPACE_RE = re.compile(r"\s+")


def legacy_field_id(tree: TreeAccess, element: Any) -> str:
    """Return ``tag_type_id_name_placeholder_pos<index>`` for *element*.

    Missing parts are skipped; the placeholder has its whitespace removed and
    the index counts every ``input``, ``textarea`` and ``select`` in the
    document.
    """

    parts = [tree.tag(element)]
    for value in (tree.field_type(element), tree.attribute(element, "id"), tree.attribute(element, "name")):
        if value:
            parts.append(value)

    placeholder = tree.attribute(element, "placeholder")
    if placeholder:
        parts.append(_WHITESPACE_RE.sub("", placeholder))

    fields = tree.select(FIELD_SELECTOR, tree.document(element))
    index = next((i for i, node in enumerate(fields) if tree.same(node, element)), -1)
    for node in fields:
        tree.release(node)
    parts.append(f"pos{index}")
    return "_".join(parts)


def legacy_fields(tree: TreeAccess, scope: Any) -> List[Any]:
    """Return the fields the legacy scheme knows about, in document order."""

    return [
        element
        for element in tree.select(FIELD_SELECTOR, scope)
        if is_field(tree, element, input_types=LEGACY_INPUT_TYPES)
    ]
