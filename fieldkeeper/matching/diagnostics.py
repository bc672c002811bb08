"""Near-miss reporting for descriptors that failed to resolve.

Purely informational: the ranking here never feeds back into resolution, it
only tells a user which live fields look most like the one that was lost.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from rapidfuzz import fuzz

from ..dom.tree import FIELD_SELECTOR, TreeAccess, find_associated_label, is_field
from .models import FallbackAttributes, FieldDescriptor


@dataclass(slots=True)
class NearMiss:
    """A live field ranked by textual resemblance to a stored snapshot."""

    element: Any
    score: float
    summary: str


def _normalize(value: Optional[str]) -> str:
    return " ".join((value or "").replace("|", " ").replace("_", " ").replace("-", " ").split()).lower()


def snapshot_text(attributes: FallbackAttributes) -> str:
    """Flatten the human-readable parts of a snapshot into one string."""

    parts = [attributes.label_text, attributes.aria_label, attributes.placeholder_pattern, attributes.autocomplete]
    return " ".join(_normalize(part) for part in parts if part)


def describe_element(tree: TreeAccess, element: Any) -> str:
    """Short ``tag[attr=...]`` style description used in reports."""

    parts = [tree.tag(element)]
    for attr_name in ("type", "name", "id", "placeholder", "aria-label"):
        value = tree.attribute(element, attr_name)
        if value:
            if len(value) > 24:
                value = value[:21] + "..."
            parts.append(f'[{attr_name}="{value}"]')
    return "".join(parts)


def element_text(tree: TreeAccess, element: Any) -> str:
    label = find_associated_label(tree, element)
    parts = [tree.text(label) if label is not None else None]
    if label is not None:
        tree.release(label)
    for attr_name in ("aria-label", "placeholder", "name", "id", "autocomplete"):
        parts.append(tree.attribute(element, attr_name))
    return " ".join(_normalize(part) for part in parts if part)


def nearest_fields(
    tree: TreeAccess,
    descriptor: FieldDescriptor,
    scope: Any,
    *,
    limit: int = 3,
    score_cutoff: float = 50.0,
) -> List[NearMiss]:
    """Rank live fields by RapidFuzz ``WRatio`` against the descriptor's snapshot."""

    reference = snapshot_text(descriptor.selectors.fallback_attributes)
    if not reference:
        return []

    misses: List[NearMiss] = []
    for element in tree.select(FIELD_SELECTOR, scope):
        if not is_field(tree, element):
            continue
        candidate = element_text(tree, element)
        if not candidate:
            continue
        score = float(fuzz.WRatio(reference, candidate))
        if score >= score_cutoff:
            misses.append(NearMiss(element=element, score=score / 100.0, summary=describe_element(tree, element)))

    misses.sort(key=lambda item: item.score, reverse=True)
    return misses[:limit]
