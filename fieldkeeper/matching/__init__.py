"""Field identity and matching engine."""

from .confidence import estimate_confidence
from .diagnostics import NearMiss, nearest_fields
from .hashing import canonicalize, descriptor_hash
from .models import FallbackAttributes, FieldDescriptor, MatchMethod, MatchResult, SelectorSet
from .resolver import FieldResolver
from .similarity import SimilarityScorer
from .stability import clean_dynamic_parts, is_dynamic, stable_classes
from .synthesizer import SelectorSynthesizer, placeholder_pattern, position_hint

__all__ = [
    "FallbackAttributes",
    "FieldDescriptor",
    "FieldResolver",
    "MatchMethod",
    "MatchResult",
    "NearMiss",
    "SelectorSet",
    "SelectorSynthesizer",
    "SimilarityScorer",
    "canonicalize",
    "clean_dynamic_parts",
    "descriptor_hash",
    "estimate_confidence",
    "is_dynamic",
    "nearest_fields",
    "placeholder_pattern",
    "position_hint",
    "stable_classes",
]
