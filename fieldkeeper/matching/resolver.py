"""Tiered re-identification of stored fields in a live tree.

Tiers are tried in strict priority order and the first accepted match wins:

=======================  ==========  =============================================
Tier                     Confidence  Acceptance
=======================  ==========  =============================================
primary                  0.95        exactly one element matches
primary_disambiguated    0.85        several match; best similarity score > 0.7
structural               0.80        first match is a field
contextual               0.75        a candidate yields exactly one field
fuzzy                    <= 0.70     best similarity over all pattern hits > 0.5
=======================  ==========  =============================================

A selector that fails to parse only disqualifies its own tier (or candidate).
No match is a normal outcome and is reported as ``None``.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

from ..dom.tree import SelectorSyntaxError, TreeAccess, is_field
from .models import FieldDescriptor, MatchResult
from .similarity import SimilarityScorer

logger = logging.getLogger(__name__)

PRIMARY_CONFIDENCE = 0.95
DISAMBIGUATED_CONFIDENCE = 0.85
STRUCTURAL_CONFIDENCE = 0.80
CONTEXTUAL_CONFIDENCE = 0.75
FUZZY_CONFIDENCE_CAP = 0.70

DISAMBIGUATION_THRESHOLD = 0.7
FUZZY_THRESHOLD = 0.5


class FieldResolver:
    """Locates the live element that best matches a stored descriptor."""

    def __init__(self, tree: TreeAccess, scorer: Optional[SimilarityScorer] = None) -> None:
        self.tree = tree
        self.scorer = scorer or SimilarityScorer(tree)

    def resolve(self, descriptor: FieldDescriptor, scope: Any) -> Optional[MatchResult]:
        for tier in (self._primary, self._structural, self._contextual, self._fuzzy):
            result = tier(descriptor, scope)
            if result is not None:
                logger.debug(
                    "Resolved %s via %s (confidence %.2f)",
                    descriptor.hash,
                    result.method,
                    result.confidence,
                )
                return result
        logger.debug("No match for %s", descriptor.hash)
        return None

    def resolve_all(self, descriptors: Iterable[FieldDescriptor], scope: Any) -> List[MatchResult]:
        """Resolve a batch, isolating failures, sorted by confidence (highest first)."""

        results: List[MatchResult] = []
        for descriptor in descriptors:
            try:
                result = self.resolve(descriptor, scope)
            except Exception:
                logger.exception("Failed to resolve descriptor %s", getattr(descriptor, "hash", descriptor))
                continue
            if result is not None:
                results.append(result)
        results.sort(key=lambda item: item.confidence, reverse=True)
        return results

    def _query(self, selector: str, scope: Any, tier: str) -> List[Any]:
        if not selector:
            return []
        try:
            return self.tree.select(selector, scope)
        except SelectorSyntaxError as exc:
            logger.warning("%s selector failed: %s", tier.capitalize(), exc)
            return []

    def _fields(self, elements: Sequence[Any]) -> List[Any]:
        return [element for element in elements if is_field(self.tree, element)]

    def _primary(self, descriptor: FieldDescriptor, scope: Any) -> Optional[MatchResult]:
        elements = self._query(descriptor.selectors.primary, scope, "primary")
        if len(elements) == 1:
            return MatchResult(elements[0], PRIMARY_CONFIDENCE, "primary", descriptor)
        if len(elements) > 1:
            best = self._disambiguate(elements, descriptor)
            if best is not None:
                return MatchResult(best, DISAMBIGUATED_CONFIDENCE, "primary_disambiguated", descriptor)
        return None

    def _disambiguate(self, elements: Sequence[Any], descriptor: FieldDescriptor) -> Optional[Any]:
        attributes = descriptor.selectors.fallback_attributes
        best_element, best_score = None, -1.0
        for element in elements:
            score = self.scorer.score(element, attributes)
            if score > best_score:
                best_element, best_score = element, score
        return best_element if best_score > DISAMBIGUATION_THRESHOLD else None

    def _structural(self, descriptor: FieldDescriptor, scope: Any) -> Optional[MatchResult]:
        elements = self._query(descriptor.selectors.structural, scope, "structural")
        if elements and is_field(self.tree, elements[0]):
            return MatchResult(elements[0], STRUCTURAL_CONFIDENCE, "structural", descriptor)
        return None

    def _contextual(self, descriptor: FieldDescriptor, scope: Any) -> Optional[MatchResult]:
        for selector in descriptor.selectors.contextual:
            candidates = self._fields(self._query(selector, scope, "contextual"))
            if len(candidates) == 1:
                return MatchResult(candidates[0], CONTEXTUAL_CONFIDENCE, "contextual", descriptor)
        return None

    def _fuzzy(self, descriptor: FieldDescriptor, scope: Any) -> Optional[MatchResult]:
        candidates: List[Any] = []
        for pattern in descriptor.selectors.fuzzy_patterns:
            for element in self._fields(self._query(pattern, scope, "fuzzy")):
                if not any(self.tree.same(element, seen) for seen in candidates):
                    candidates.append(element)
        if not candidates:
            return None

        attributes = descriptor.selectors.fallback_attributes
        scored = [(self.scorer.score(element, attributes), element) for element in candidates]
        best_score, best_element = max(scored, key=lambda item: item[0])
        if best_score > FUZZY_THRESHOLD:
            return MatchResult(best_element, min(FUZZY_CONFIDENCE_CAP, best_score), "fuzzy", descriptor)
        return None
