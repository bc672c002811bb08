"""Build multi-tier descriptors for form fields.

A descriptor bundles several independent ways of finding the same field again:

``primary``
    Tag plus stable attributes (``type``, ``name``, ``aria-label``, ``data-*``)
    and stable classes.
``structural``
    Ancestor path anchored at the nearest stable id, at most five levels deep.
``contextual``
    Selectors keyed on the field's label, enclosing form and fieldset legend.
``fuzzy_patterns``
    Substring/prefix attribute patterns built from tokens with the generated
    parts stripped.
``fallback_attributes``
    A semantic snapshot used to score candidates when selectors are ambiguous.
"""
from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

from ..dom.tree import (
    FIELD_SELECTOR,
    SelectorSyntaxError,
    TreeAccess,
    css_identifier,
    css_string,
    find_associated_label,
)
from .confidence import estimate_confidence
from .hashing import descriptor_hash
from .models import FallbackAttributes, FieldDescriptor, SelectorSet
from .stability import clean_dynamic_parts, is_dynamic, stable_classes

logger = logging.getLogger(__name__)

MAX_STRUCTURAL_DEPTH = 5
PLACEHOLDER_PREFIX_LENGTH = 10
PLACEHOLDER_PATTERN_WORDS = 3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def placeholder_pattern(placeholder: str) -> str:
    """Reduce a placeholder to an OR-pattern of its first meaningful words.

    >>> placeholder_pattern("Enter your e-mail address")
    'enter|your|email'
    """

    words = _PUNCTUATION_RE.sub("", placeholder.lower()).split()
    return "|".join([word for word in words if len(word) > 2][:PLACEHOLDER_PATTERN_WORDS])


def position_hint(index: int, total: int) -> str:
    if total <= 3:
        return f"{index + 1}of{total}"
    if index < total * 0.25:
        return "early"
    if index > total * 0.75:
        return "late"
    return "middle"


def _class_suffix(classes: List[str]) -> str:
    return "".join(f".{css_identifier(name)}" for name in classes)


class SelectorSynthesizer:
    """Synthesizes :class:`FieldDescriptor` objects through a tree-access backend."""

    def __init__(self, tree: TreeAccess) -> None:
        self.tree = tree

    def synthesize(self, element: Any) -> FieldDescriptor:
        selectors = self.selectors_for(element)
        descriptor = FieldDescriptor(
            hash=descriptor_hash(selectors),
            selectors=selectors,
            confidence=estimate_confidence(selectors),
        )
        logger.debug(
            "Synthesized descriptor %s (confidence %.2f): %s",
            descriptor.hash,
            descriptor.confidence,
            selectors.primary,
        )
        return descriptor

    def selectors_for(self, element: Any) -> SelectorSet:
        label = find_associated_label(self.tree, element)
        try:
            return SelectorSet(
                primary=self.primary_selector(element),
                structural=self.structural_selector(element),
                contextual=self.contextual_selectors(element, label=label),
                fuzzy_patterns=self.fuzzy_patterns(element),
                fallback_attributes=self.fallback_attributes(element, label=label),
            )
        finally:
            if label is not None:
                self.tree.release(label)

    def primary_selector(self, element: Any) -> str:
        tree = self.tree
        parts = [tree.tag(element)]

        field_type = tree.attribute(element, "type")
        if field_type:
            parts.append(f"[type={css_string(field_type)}]")

        name = tree.attribute(element, "name")
        if name and not is_dynamic(name):
            parts.append(f"[name={css_string(name)}]")

        aria_label = tree.attribute(element, "aria-label")
        if aria_label:
            parts.append(f"[aria-label={css_string(aria_label)}]")

        for attr_name, attr_value in tree.attributes(element).items():
            if attr_name.startswith("data-") and not is_dynamic(attr_value):
                parts.append(f"[{attr_name}={css_string(attr_value)}]")

        parts.append(_class_suffix(stable_classes(tree.classes(element))))
        return "".join(parts)

    def structural_selector(self, element: Any) -> str:
        tree = self.tree
        path: List[str] = []
        current: Optional[Any] = element

        while current is not None and tree.tag(current) != "body":
            segment = tree.tag(current)

            element_id = tree.attribute(current, "id")
            if element_id and not is_dynamic(element_id):
                path.insert(0, f"{segment}#{css_identifier(element_id)}")
                break

            segment += _class_suffix(stable_classes(tree.classes(current)))

            parent = tree.parent(current)
            if parent is not None:
                siblings = tree.children(parent)
                same_tag = [node for node in siblings if tree.tag(node) == tree.tag(current)]
                if len(same_tag) > 1:
                    position = next(i for i, node in enumerate(siblings) if tree.same(node, current))
                    segment += f":nth-child({position + 1})"
                for node in siblings:
                    tree.release(node)

            path.insert(0, segment)
            if current is not element:
                tree.release(current)
            current = parent
            if len(path) >= MAX_STRUCTURAL_DEPTH:
                break

        if current is not None and current is not element:
            tree.release(current)
        return " > ".join(path)

    def contextual_selectors(self, element: Any, *, label: Optional[Any] = None) -> List[str]:
        tree = self.tree
        tag = tree.tag(element)
        contextual: List[str] = []

        owned = label is None
        if owned:
            label = find_associated_label(tree, element)
        if label is not None:
            label_text = " ".join(tree.text(label).split()).lower()
            if owned:
                tree.release(label)
            if label_text:
                quoted = css_string(label_text)
                contextual.append(f"label:has-text({quoted}) + {tag}, label:has-text({quoted}) {tag}")

        form = tree.closest(element, "form")
        if form is not None:
            form_selector = "form" + _class_suffix(stable_classes(tree.classes(form)))
            form_id = tree.attribute(form, "id")
            if form_id and not is_dynamic(form_id):
                form_selector += f"#{css_identifier(form_id)}"
            tree.release(form)
            contextual.append(f"{form_selector} {tag}")

        fieldset = tree.closest(element, "fieldset")
        if fieldset is not None:
            legends = tree.select("legend", fieldset)
            legend_text = " ".join(tree.text(legends[0]).split()) if legends else ""
            for legend in legends:
                tree.release(legend)
            tree.release(fieldset)
            if legend_text:
                quoted = css_string(legend_text)
                contextual.append(
                    f"fieldset legend:has-text({quoted}) ~ {tag}, "
                    f"fieldset legend:has-text({quoted}) ~ * {tag}"
                )

        return contextual

    def fuzzy_patterns(self, element: Any) -> List[str]:
        tree = self.tree
        patterns: List[str] = []

        for attr_name in ("name", "id"):
            raw = tree.attribute(element, attr_name)
            if not raw:
                continue
            cleaned = clean_dynamic_parts(raw)
            if cleaned != raw:
                patterns.append(f"[{attr_name}*={css_string(cleaned)}]")
                patterns.append(f"[{attr_name}^={css_string(cleaned)}]")

        placeholder = tree.attribute(element, "placeholder")
        if placeholder:
            patterns.append(f"[placeholder={css_string(placeholder)}]")
            patterns.append(f"[placeholder*={css_string(placeholder[:PLACEHOLDER_PREFIX_LENGTH])}]")

        for name in tree.classes(element):
            if not is_dynamic(name):
                patterns.append(f".{css_identifier(name)}")
            else:
                cleaned = clean_dynamic_parts(name)
                if cleaned:
                    patterns.append(f"[class*={css_string(cleaned)}]")

        return list(dict.fromkeys(patterns))

    def fallback_attributes(self, element: Any, *, label: Optional[Any] = None) -> FallbackAttributes:
        tree = self.tree
        placeholder = tree.attribute(element, "placeholder")

        owned = label is None
        if owned:
            label = find_associated_label(tree, element)
        label_text = tree.text(label).strip().lower() if label is not None else ""
        if owned and label is not None:
            tree.release(label)

        return FallbackAttributes(
            tag=tree.tag(element),
            type=tree.field_type(element),
            placeholder_pattern=placeholder_pattern(placeholder) if placeholder else None,
            label_text=label_text or None,
            aria_label=tree.attribute(element, "aria-label") or None,
            autocomplete=tree.attribute(element, "autocomplete") or None,
            required=tree.is_required(element),
            position_hint=self._position_hint(element),
        )

    def _position_hint(self, element: Any) -> Optional[str]:
        try:
            fields = self.tree.select(FIELD_SELECTOR, self.tree.document(element))
        except SelectorSyntaxError:  # pragma: no cover - constant selector
            return None
        index = next((i for i, node in enumerate(fields) if self.tree.same(node, element)), -1)
        for node in fields:
            self.tree.release(node)
        return position_hint(index, len(fields))
