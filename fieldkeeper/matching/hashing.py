"""Deterministic content-derived identifiers for selector sets.

The hash is a persisted key: stored values are looked up by it, so the
canonical form and the hash function must never change silently. Both follow
the format of the identifiers already present in existing stores:

* the selector mapping is serialized as compact JSON whose object keys are
  restricted, at every depth, to the sorted list of top-level keys. Nested
  snapshots such as ``fallback_attributes`` therefore serialize as ``{}``;
* a 32-bit ``h * 31 + unit`` rolling hash runs over the UTF-16 code units of
  that string, and its absolute value is rendered in base 36.

Collisions are possible and are not detected.
"""
from __future__ import annotations

import json
from typing import Any, Mapping, Sequence, Union

from .models import SelectorSet

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_UINT32_MASK = 0xFFFFFFFF


def _filter_keys(value: Any, keys: Sequence[str]) -> Any:
    if isinstance(value, Mapping):
        return {key: _filter_keys(value[key], keys) for key in keys if key in value}
    if isinstance(value, (list, tuple)):
        return [_filter_keys(item, keys) for item in value]
    return value


def canonicalize(selectors: Union[SelectorSet, Mapping[str, Any]]) -> str:
    """Return the canonical string the hash is computed over."""

    payload = selectors.to_dict() if isinstance(selectors, SelectorSet) else dict(selectors)
    keys = sorted(payload)
    return json.dumps(_filter_keys(payload, keys), ensure_ascii=False, separators=(",", ":"))


def rolling_hash(text: str) -> int:
    """Return the absolute value of the signed 32-bit rolling hash of *text*."""

    encoded = text.encode("utf-16-le", "surrogatepass")
    accumulator = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        accumulator = (accumulator * 31 + unit) & _UINT32_MASK
    if accumulator & 0x80000000:
        accumulator -= 1 << 32
    return abs(accumulator)


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def descriptor_hash(selectors: Union[SelectorSet, Mapping[str, Any]]) -> str:
    """Return the persisted identifier for *selectors*."""

    return to_base36(rolling_hash(canonicalize(selectors)))
