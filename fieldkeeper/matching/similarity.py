"""Resolution-time comparison of a live element with a stored snapshot."""
from __future__ import annotations

import logging
from typing import Any

from ..dom.tree import TreeAccess, find_associated_label
from .models import FallbackAttributes

logger = logging.getLogger(__name__)


class SimilarityScorer:
    """Scores how closely a live element matches :class:`FallbackAttributes`.

    Each check only counts when the stored snapshot carries the attribute it
    compares; the ``required`` flag is always compared, so the result is the
    fraction of applicable checks that agree, in ``[0, 1]``.
    """

    def __init__(self, tree: TreeAccess) -> None:
        self.tree = tree

    def score(self, element: Any, attributes: FallbackAttributes) -> float:
        matched = 0
        considered = 0

        if attributes.type:
            considered += 1
            if self.tree.field_type(element) == attributes.type:
                matched += 1

        placeholder = self.tree.attribute(element, "placeholder")
        if attributes.placeholder_pattern and placeholder:
            considered += 1
            lowered = placeholder.lower()
            if any(segment in lowered for segment in attributes.placeholder_pattern.split("|")):
                matched += 1

        if attributes.label_text:
            considered += 1
            label = find_associated_label(self.tree, element)
            if label is not None:
                if attributes.label_text in self.tree.text(label).lower():
                    matched += 1
                self.tree.release(label)

        if attributes.aria_label:
            considered += 1
            if self.tree.attribute(element, "aria-label") == attributes.aria_label:
                matched += 1

        considered += 1
        if self.tree.is_required(element) == attributes.required:
            matched += 1

        score = matched / considered
        logger.debug("Similarity %d/%d for <%s>", matched, considered, self.tree.tag(element))
        return score
