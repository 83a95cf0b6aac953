"""Shared JSON serialization utilities for log records."""

from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, PurePath):
        return True, str(obj)
    if isinstance(obj, Enum):
        return True, obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return True, sorted(obj) if isinstance(obj, (set, frozenset)) else list(obj)
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    JSON serializer for values placed in log record extras.

    - datetime/date → ISO 8601 string
    - Path → string
    - Enum → value
    - set/tuple → list (sets sorted for stable output)
    - Everything else → string (fallback)

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    return str(obj)


__all__ = ["json_serializer"]
