"""
src/shared.py
Shared utilities for all FirstDraft modules.
Exports: safe_dict, safe_list, utc_now, utc_now_iso, epoch_millis
"""

from datetime import datetime, timezone
from typing import Any


def safe_dict(value: Any) -> dict[str, Any]:
    """Return dict value or empty dict."""
    return value if isinstance(value, dict) else {}


def safe_list(value: Any) -> list[Any]:
    """Return list value or empty list."""
    return value if isinstance(value, list) else []


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()


def epoch_millis(moment: datetime | None = None) -> int:
    """Return milliseconds since the epoch for `moment` (defaults to now)."""
    return int((moment or utc_now()).timestamp() * 1000)
