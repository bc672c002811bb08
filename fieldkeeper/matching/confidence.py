"""Synthesis-time reliability estimate for a selector set."""
from __future__ import annotations

from .models import SelectorSet

BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95

# Substring of the primary selector -> bonus
_PRIMARY_BONUSES = (
    ("[name=", 0.2),
    ("[aria-label=", 0.15),
    ("[data-", 0.1),
)
_CONTEXTUAL_BONUS = 0.05


def estimate_confidence(selectors: SelectorSet) -> float:
    """Score how reliably *selectors* should re-identify their field.

    Independent of any later resolution-time confidence.
    """

    confidence = BASE_CONFIDENCE
    primary = selectors.primary or ""
    for clause, bonus in _PRIMARY_BONUSES:
        if clause in primary:
            confidence += bonus
    if selectors.contextual:
        confidence += _CONTEXTUAL_BONUS
    return round(min(confidence, MAX_CONFIDENCE), 2)
