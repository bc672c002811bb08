"""JSON-file persistence for remembered field values.

Layout of the store file::

    {
        "_storage_version": 2,
        "https://example.com/signup": {
            "1x9k2f": {
                "value": "ada@example.com",
                "selectors": {...},
                "confidence": 0.7,
                "created": 1700000000000,
                "last_used": 1700000000000,
                "use_count": 1
            },
            "input_email_pos0": "legacy string value"
        }
    }

Pages are keyed by origin plus path. Advanced-format records are keyed by
descriptor hash; legacy records are bare strings keyed by a legacy field id.
"""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from ..matching.models import FieldDescriptor

logger = logging.getLogger(__name__)

VERSION_KEY = "_storage_version"
STORAGE_VERSION = 2


class FieldStoreError(RuntimeError):
    """Raised when the store file cannot be read or has an unexpected shape."""


def page_key(url: str) -> str:
    """Return the origin + path identity of *url*."""

    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{parts.path or '/'}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_advanced_record(record: Any) -> bool:
    return isinstance(record, dict) and "value" in record and isinstance(record.get("selectors"), dict)


class FieldStore:
    """Keyed store mapping page keys to ``{hash: record}`` dictionaries."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise FieldStoreError(f"Could not read field store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise FieldStoreError(f"Field store {self.path} must contain a JSON object")
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Dict[str, Any]:
        page = self._load().get(key)
        return dict(page) if isinstance(page, dict) else {}

    def set(self, key: str, page_data: Dict[str, Any]) -> None:
        data = self._load()
        data[key] = page_data
        self._save(data)

    def delete(self, key: str, field_hash: str) -> bool:
        data = self._load()
        page = data.get(key)
        if not isinstance(page, dict) or field_hash not in page:
            return False
        del page[field_hash]
        self._save(data)
        logger.info("Removed field %s on %s", field_hash, key)
        return True

    def all_pages(self) -> Dict[str, Dict[str, Any]]:
        return {key: value for key, value in self._load().items() if key != VERSION_KEY and isinstance(value, dict)}

    def clear_page(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
            logger.info("Cleared all data for %s", key)

    def clear_all(self) -> None:
        data = self._load()
        version = data.get(VERSION_KEY)
        self._save({VERSION_KEY: version} if version is not None else {})
        logger.info("Cleared all stored fields")

    def save_field(self, key: str, descriptor: FieldDescriptor, value: str) -> str:
        page = self.get(key)
        now = _now_ms()
        existing = page.get(descriptor.hash)
        selectors = descriptor.selectors.to_dict()
        page[descriptor.hash] = {
            "value": value,
            "selectors": selectors,
            "confidence": descriptor.confidence,
            "created": existing.get("created", descriptor.created) if is_advanced_record(existing) else descriptor.created,
            "last_used": now,
            "use_count": existing.get("use_count", 0) if is_advanced_record(existing) else 0,
        }
        self.set(key, page)
        logger.info("Saved field %s on %s", descriptor.hash, key)
        return descriptor.hash

    def record_usage(self, key: str, field_hash: str) -> None:
        page = self.get(key)
        record = page.get(field_hash)
        if not is_advanced_record(record):
            return
        record["last_used"] = _now_ms()
        record["use_count"] = int(record.get("use_count") or 0) + 1
        self.set(key, page)

    def descriptors(self, key: str) -> List[FieldDescriptor]:
        """Return descriptors of the page's advanced-format records.

        Records that fail to parse are skipped with a warning.
        """

        descriptors: List[FieldDescriptor] = []
        for field_hash, record in self.get(key).items():
            if not is_advanced_record(record):
                continue
            try:
                descriptors.append(FieldDescriptor.from_dict(record, hash=field_hash))
            except ValueError as exc:
                logger.warning("Skipping malformed record %s on %s: %s", field_hash, key, exc)
        return descriptors

    def value_for(self, key: str, field_hash: str) -> Optional[str]:
        record = self.get(key).get(field_hash)
        if is_advanced_record(record):
            return record["value"]
        return record if isinstance(record, str) else None

    def legacy_values(self, key: str) -> Dict[str, str]:
        return {field_id: value for field_id, value in self.get(key).items() if isinstance(value, str)}

    def storage_version(self) -> Optional[int]:
        return self._load().get(VERSION_KEY)

    def migrate_legacy(self) -> bool:
        """Mark the store as current-format.

        Only the version marker is written; legacy string entries are left in
        place and keep being served by the legacy fill pass. Returns ``True``
        when the marker was newly written.
        """

        data = self._load()
        if data.get(VERSION_KEY) == STORAGE_VERSION:
            return False
        data[VERSION_KEY] = STORAGE_VERSION
        self._save(data)
        logger.info("Field store %s marked as version %d", self.path, STORAGE_VERSION)
        return True
