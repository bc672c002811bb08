"""Persistence for remembered field values."""

from .field_store import STORAGE_VERSION, VERSION_KEY, FieldStore, FieldStoreError, page_key
from .legacy import legacy_field_id, legacy_fields

__all__ = [
    "FieldStore",
    "FieldStoreError",
    "STORAGE_VERSION",
    "VERSION_KEY",
    "legacy_field_id",
    "legacy_fields",
    "page_key",
]
