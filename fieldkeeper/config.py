"""Environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Container for environment-driven settings."""

    store_path: str = os.getenv("FIELDKEEPER_STORE_PATH", "~/.fieldkeeper/fields.json")
    min_confidence: float = float(os.getenv("FIELDKEEPER_MIN_CONFIDENCE", "0.5"))
    log_level: str = os.getenv("FIELDKEEPER_LOG_LEVEL", "WARNING")
    headless: bool = _env_flag("FIELDKEEPER_HEADLESS", default=True)

    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
