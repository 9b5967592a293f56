"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Base directory for resolving relative paths.
BASE_DIR = Path.cwd()

DEFAULT_LOCALE = "zh_CN"
DEFAULT_RECENT_LIMIT = 10


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    # Normalize non-string inputs (e.g., int defaults) before parsing.
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str]) -> Optional[int]:
    """Safely parse an integer env var, returning None on failure."""
    if value is None:
        return None
    try:
        parsed = int(str(value).strip())
        return parsed
    except (TypeError, ValueError):
        return None


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    output_dir: Path = BASE_DIR / "reports"
    locale: str = DEFAULT_LOCALE
    insider_recent_limit: int = DEFAULT_RECENT_LIMIT
    log_level: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        output_dir = Path(os.getenv("OUTPUT_DIR", BASE_DIR / "reports"))
        recent_limit = _to_int(os.getenv("INSIDER_RECENT_LIMIT"))
        if recent_limit is None or recent_limit <= 0:
            recent_limit = DEFAULT_RECENT_LIMIT

        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            output_dir=output_dir,
            locale=os.getenv("ANALYTICS_LOCALE", DEFAULT_LOCALE).strip() or DEFAULT_LOCALE,
            insider_recent_limit=recent_limit,
            log_level=os.getenv("LOG_LEVEL") or None,
        )

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
