"""
Identity normalization for authorization comparisons.

Entities reach the engine either as bare ids or as embedded (populated)
documents. Every identity comparison goes through ``normalize_id`` so the
two representations compare equal.
"""

from collections.abc import Mapping
from typing import Any, Optional

ID_CANDIDATE_KEYS = ("id", "_id", "value")


def _is_scalar_id(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _candidate(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return getattr(value, key, None)


def _scalar_str(value: Any) -> str:
    # 1.0 and 1 name the same id.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def normalize_id(value: Any) -> Optional[str]:
    """Return the canonical string form of an identity, or ``None``.

    Resolution order:
      1. ``None`` and ``""`` are absent.
      2. Strings and numbers are returned in string form (integral floats
         without the fraction).
      3. Mappings and objects are probed for ``id``, ``_id`` then ``value``;
         the first candidate that is a string or number wins.
      4. Objects with their own ``__str__`` (``uuid.UUID``, ``ObjectId``)
         use it; anything else falls back to ``str(value)``.
    """
    if value is None:
        return None

    if _is_scalar_id(value):
        return _scalar_str(value) or None

    for key in ID_CANDIDATE_KEYS:
        candidate = _candidate(value, key)
        if _is_scalar_id(candidate) and _scalar_str(candidate):
            return _scalar_str(candidate)

    # Custom __str__ (UUID, ObjectId) or the default object form.
    return str(value) or None


def ids_equal(left: Any, right: Any) -> bool:
    """Compare two identities; absent ids never match anything."""
    left_id = normalize_id(left)
    if left_id is None:
        return False
    return left_id == normalize_id(right)
