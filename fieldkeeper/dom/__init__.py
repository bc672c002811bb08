"""Tree-access backends used by the matching engine."""

from .html_tree import HtmlTree
from .tree import (
    FIELD_INPUT_TYPES,
    FIELD_SELECTOR,
    FIELD_TAGS,
    SelectorSyntaxError,
    TreeAccess,
    css_string,
    find_associated_label,
    is_field,
)

__all__ = [
    "FIELD_INPUT_TYPES",
    "FIELD_SELECTOR",
    "FIELD_TAGS",
    "HtmlTree",
    "SelectorSyntaxError",
    "TreeAccess",
    "css_string",
    "find_associated_label",
    "is_field",
]
