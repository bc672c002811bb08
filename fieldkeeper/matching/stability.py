"""Heuristics for telling author-assigned tokens from generated ones.

Frameworks commonly append build hashes, counters or timestamps to otherwise
meaningful names (``email_1699999999``, ``input-8f3a9c2d1e``). Such tokens are
useless as selectors across reloads, but the part left after stripping the
generated run usually survives and works as a substring anchor.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

_DYNAMIC_RE = re.compile(r"\d{4,}|[a-f0-9]{8,}|uuid|guid|timestamp|random", re.IGNORECASE)
_LONG_DIGITS_RE = re.compile(r"\d{4,}")
_HEX_RUN_RE = re.compile(r"[a-f0-9]{8,}")
_LEADING_SEPARATORS_RE = re.compile(r"^[-_]+")
_TRAILING_SEPARATORS_RE = re.compile(r"[-_]+$")


def is_dynamic(token: Optional[str]) -> bool:
    """Return ``True`` when *token* looks machine-generated."""

    if not token:
        return False
    return _DYNAMIC_RE.search(token) is not None


def clean_dynamic_parts(token: str) -> str:
    """Strip generated runs from *token* and trim leftover separators."""

    cleaned = _LONG_DIGITS_RE.sub("", token)
    cleaned = _HEX_RUN_RE.sub("", cleaned)
    cleaned = _TRAILING_SEPARATORS_RE.sub("", cleaned)
    cleaned = _LEADING_SEPARATORS_RE.sub("", cleaned)
    return cleaned.strip()


def stable_classes(classes: Iterable[str]) -> List[str]:
    """Return the classes worth keeping in a selector, in their original order."""

    return [name for name in classes if len(name) > 2 and not is_dynamic(name)]
