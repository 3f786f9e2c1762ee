"""
Ownership evaluation: is the acting user specifically tied to the target?
"""

from typing import Any, Iterable, Mapping, Optional

from ..identity import normalize_id
from .models import ARRAY_OWNERSHIP_FIELDS, OWNERSHIP_SELF, Target, User


def _contains_id(values: Any, user_id: str) -> bool:
    if not isinstance(values, (list, tuple)):
        return False
    return any(normalize_id(value) == user_id for value in values)


def _relation_holds(tag: str, user_id: str, target: Optional[Target],
                    params: Mapping[str, Any]) -> bool:
    if tag == OWNERSHIP_SELF:
        # An id named in the request path outranks the loaded target.
        param_user_id = normalize_id(params.get("userId"))
        if param_user_id is not None:
            return param_user_id == user_id
        return target is not None and normalize_id(target.id) == user_id

    if target is None:
        return False

    if tag in ARRAY_OWNERSHIP_FIELDS:
        return _contains_id(target.get(tag), user_id)

    return normalize_id(target.get(tag)) == user_id


def matches_ownership(ownership: Iterable[str], user: User, target: Optional[Target],
                      params: Optional[Mapping[str, Any]] = None) -> bool:
    """True when no relation is required or any listed relation holds."""
    ownership = tuple(ownership or ())
    if not ownership:
        return True

    user_id = normalize_id(user.id)
    if user_id is None:
        return False

    params = params or {}
    return any(_relation_holds(tag, user_id, target, params) for tag in ownership)
