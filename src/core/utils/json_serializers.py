"""Shared JSON serialization utilities for type-safe JSON encoding."""

import json
import math
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, UUID):
        return True, str(obj)
    if isinstance(obj, Path):
        return True, str(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return True, list(obj)
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Type-safe JSON serializer for Eventhouse compatibility.

    Keeps proper types instead of converting everything to strings:
    - datetime/date → ISO 8601 string
    - Decimal → float
    - UUID/Path → string
    - sets/tuples → list
    - Enums → value
    - Everything else → string (fallback)

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation with proper types
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    if hasattr(obj, "value"):
        return obj.value
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


def _replace_non_finite(obj: Any) -> Any:
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, Decimal) and not obj.is_finite():
        return None
    if isinstance(obj, dict):
        return {k: _replace_non_finite(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_replace_non_finite(v) for v in obj]
    return obj


def _dumps(obj: Any) -> str:
    return json.dumps(
        obj,
        default=json_serializer,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )


def dumps_canonical(obj: Any) -> str:
    """
    Compact JSON form used for both batch sizing and the request body.

    NaN and Infinity have no JSON spelling and are written as null.
    """
    try:
        return _dumps(obj)
    except ValueError:
        return _dumps(_replace_non_finite(obj))


def serialized_size(obj: Any) -> int:
    """UTF-8 byte length of the canonical JSON form."""
    return len(dumps_canonical(obj).encode("utf-8"))


__all__ = ["json_serializer", "dumps_canonical", "serialized_size"]
