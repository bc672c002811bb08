"""Apply remembered values to the fields of a page.

The orchestrator sits between the matching engine and the field store: it
resolves every stored descriptor for a page in one batch, applies values only
above a confidence threshold, and falls back to legacy string entries for
fields that are still empty afterwards. Callers that watch the page for new
fields simply call :meth:`Autofiller.apply` again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .dom.tree import TreeAccess
from .matching.models import FieldDescriptor, MatchMethod
from .matching.resolver import FieldResolver
from .matching.synthesizer import SelectorSynthesizer
from .storage.field_store import FieldStore
from .storage.legacy import legacy_field_id, legacy_fields

logger = logging.getLogger(__name__)

FILLED_CLASS = "fields-autofill-filled"
DEFAULT_MIN_CONFIDENCE = 0.5


@dataclass(slots=True)
class FillAction:
    """A value that should be written into one element."""

    element: Any
    value: str
    method: MatchMethod
    confidence: float
    hash: Optional[str] = None


@dataclass(slots=True)
class AutofillReport:
    """Outcome of one :meth:`Autofiller.apply` pass."""

    filled: List[FillAction] = field(default_factory=list)
    skipped_low_confidence: int = 0
    skipped_not_empty: int = 0

    @property
    def filled_count(self) -> int:
        return len(self.filled)


class Autofiller:
    """Resolves stored descriptors for a page and fills matching fields."""

    def __init__(
        self,
        tree: TreeAccess,
        store: FieldStore,
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        resolver: Optional[FieldResolver] = None,
    ) -> None:
        self.tree = tree
        self.store = store
        self.min_confidence = min_confidence
        self.resolver = resolver or FieldResolver(tree)
        self.synthesizer = SelectorSynthesizer(tree)

    def _is_empty(self, element: Any) -> bool:
        return not self.tree.value(element) and not self.tree.has_class(element, FILLED_CLASS)

    def plan(self, page_key: str, scope: Any, report: Optional[AutofillReport] = None) -> List[FillAction]:
        report = report if report is not None else AutofillReport()
        page = self.store.get(page_key)
        actions: List[FillAction] = []

        for match in self.resolver.resolve_all(self.store.descriptors(page_key), scope):
            if any(self.tree.same(match.element, planned.element) for planned in actions):
                continue
            if not self._is_empty(match.element):
                report.skipped_not_empty += 1
                continue
            if match.confidence < self.min_confidence:
                logger.info(
                    "Skipping low confidence match (%.0f%%) for %s",
                    match.confidence * 100,
                    match.hash,
                )
                report.skipped_low_confidence += 1
                continue
            record = page.get(match.hash) or {}
            actions.append(
                FillAction(
                    element=match.element,
                    value=str(record.get("value", "")),
                    method=match.method,
                    confidence=match.confidence,
                    hash=match.hash,
                )
            )
        return actions

    def _fill(self, action: FillAction) -> None:
        tree = self.tree
        tree.set_value(action.element, action.value)
        tree.add_class(action.element, FILLED_CLASS)
        tree.set_data(action.element, "autofill-method", action.method)
        if action.hash:
            tree.set_data(action.element, "autofill-hash", action.hash)
            tree.set_data(action.element, "autofill-confidence", f"{action.confidence:.2f}")

    def apply(self, page_key: str, scope: Any) -> AutofillReport:
        report = AutofillReport()
        for action in self.plan(page_key, scope, report):
            self._fill(action)
            if action.hash:
                self.store.record_usage(page_key, action.hash)
            report.filled.append(action)
            logger.info(
                "Auto-filled field [%s, %.0f%%] %s",
                action.method,
                action.confidence * 100,
                action.hash,
            )

        report.filled.extend(self._apply_legacy(page_key, scope))
        if report.filled:
            logger.info("Auto-filled %d fields on %s", report.filled_count, page_key)
        return report

    def _apply_legacy(self, page_key: str, scope: Any) -> List[FillAction]:
        saved = self.store.legacy_values(page_key)
        if not saved:
            return []

        filled: List[FillAction] = []
        for element in legacy_fields(self.tree, scope):
            if self.tree.has_class(element, FILLED_CLASS) or self.tree.value(element):
                continue
            value = saved.get(legacy_field_id(self.tree, element))
            if not value:
                continue
            action = FillAction(element=element, value=value, method="legacy", confidence=0.0)
            self._fill(action)
            filled.append(action)
        return filled

    def remember(self, page_key: str, element: Any, value: str, scope: Any = None) -> Optional[str]:
        """Save *value* for *element*; an empty value forgets the field instead.

        Returns the descriptor hash that was saved or removed, if any.
        """

        if not value.strip():
            existing = self._current_match(page_key, element, scope)
            if existing is not None:
                self.store.delete(page_key, existing)
            return existing

        descriptor: FieldDescriptor = self.synthesizer.synthesize(element)
        return self.store.save_field(page_key, descriptor, value)

    def _current_match(self, page_key: str, element: Any, scope: Any) -> Optional[str]:
        scope = scope if scope is not None else self.tree.document(element)
        for match in self.resolver.resolve_all(self.store.descriptors(page_key), scope):
            if self.tree.same(match.element, element):
                return match.hash
        return None
