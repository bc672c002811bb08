"""Dataclass model for field descriptors and resolution results."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional

MatchMethod = Literal[
    "primary",
    "primary_disambiguated",
    "structural",
    "contextual",
    "fuzzy",
    "legacy",  # Only produced by the autofill orchestrator for legacy entries
]


def _now_ms() -> int:
    """Return the current time as milliseconds since the epoch."""

    return int(time.time() * 1000)


@dataclass(slots=True)
class FallbackAttributes:
    """Semantic snapshot of a field, used for scoring but never for querying."""

    tag: str
    type: Optional[str] = None
    placeholder_pattern: Optional[str] = None
    label_text: Optional[str] = None
    aria_label: Optional[str] = None
    autocomplete: Optional[str] = None
    required: bool = False
    position_hint: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FallbackAttributes":
        return cls(
            tag=str(payload.get("tag") or ""),
            type=payload.get("type"),
            placeholder_pattern=payload.get("placeholder_pattern"),
            label_text=payload.get("label_text"),
            aria_label=payload.get("aria_label"),
            autocomplete=payload.get("autocomplete"),
            required=bool(payload.get("required", False)),
            position_hint=payload.get("position_hint"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SelectorSet:
    """Every selector tier synthesized for one field."""

    primary: str
    structural: str = ""
    contextual: List[str] = field(default_factory=list)
    fuzzy_patterns: List[str] = field(default_factory=list)
    fallback_attributes: FallbackAttributes = field(default_factory=lambda: FallbackAttributes(tag=""))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SelectorSet":
        if "primary" not in payload:
            raise ValueError("Selector payload must include a 'primary' selector")
        return cls(
            primary=str(payload["primary"]),
            structural=str(payload.get("structural") or ""),
            contextual=[str(item) for item in payload.get("contextual") or []],
            fuzzy_patterns=[str(item) for item in payload.get("fuzzy_patterns") or []],
            fallback_attributes=FallbackAttributes.from_dict(payload.get("fallback_attributes") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary,
            "structural": self.structural,
            "contextual": list(self.contextual),
            "fuzzy_patterns": list(self.fuzzy_patterns),
            "fallback_attributes": self.fallback_attributes.to_dict(),
        }


@dataclass(slots=True)
class FieldDescriptor:
    """Persisted identity of a field, keyed by its content hash."""

    hash: str
    selectors: SelectorSet
    confidence: float
    created: int = field(default_factory=_now_ms)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, hash: Optional[str] = None) -> "FieldDescriptor":
        """Build a descriptor from a stored record.

        Stored records do not repeat their hash (it is the record's key), so
        callers pass it explicitly via *hash*.
        """

        field_hash = hash if hash is not None else payload.get("hash")
        if not field_hash:
            raise ValueError("Descriptor payload must include a 'hash'")
        selectors = payload.get("selectors")
        if not isinstance(selectors, Mapping):
            raise ValueError("Descriptor payload must include a 'selectors' mapping")
        try:
            confidence = float(payload.get("confidence", 0.5))
        except (TypeError, ValueError) as exc:
            raise ValueError("confidence must be numeric") from exc
        created = payload.get("created")
        return cls(
            hash=str(field_hash),
            selectors=SelectorSet.from_dict(selectors),
            confidence=confidence,
            created=int(created) if created is not None else _now_ms(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "selectors": self.selectors.to_dict(),
            "confidence": self.confidence,
            "created": self.created,
        }


@dataclass(slots=True)
class MatchResult:
    """Outcome of resolving one descriptor against a live tree. Never persisted."""

    element: Any
    confidence: float
    method: MatchMethod
    descriptor: Optional[FieldDescriptor] = None

    @property
    def hash(self) -> Optional[str]:
        return self.descriptor.hash if self.descriptor is not None else None
