"""Remember form values and re-identify their fields across page reloads."""

from .autofill import AutofillReport, Autofiller, FillAction
from .dom import HtmlTree, SelectorSyntaxError, TreeAccess
from .matching import (
    FallbackAttributes,
    FieldDescriptor,
    FieldResolver,
    MatchResult,
    SelectorSet,
    SelectorSynthesizer,
    SimilarityScorer,
    descriptor_hash,
    estimate_confidence,
    is_dynamic,
)
from .storage import FieldStore, FieldStoreError, page_key

__all__ = [
    "AutofillReport",
    "Autofiller",
    "FallbackAttributes",
    "FieldDescriptor",
    "FieldResolver",
    "FieldStore",
    "FieldStoreError",
    "FillAction",
    "HtmlTree",
    "MatchResult",
    "SelectorSet",
    "SelectorSynthesizer",
    "SelectorSyntaxError",
    "SimilarityScorer",
    "TreeAccess",
    "descriptor_hash",
    "estimate_confidence",
    "is_dynamic",
    "page_key",
]
