"""
Organizational scope evaluation.

A target field that is absent is not a constraint: a target without an
organization satisfies ``ownOrg`` for everyone.
"""

from typing import Optional

from ..identity import ids_equal, normalize_id
from .models import Scope, Target, User


def _same(user_value, target_value) -> bool:
    return normalize_id(target_value) is None or ids_equal(user_value, target_value)


def matches_scope(scope: Optional[str], user: User, target: Optional[Target]) -> bool:
    """Whether the locality condition of ``scope`` holds for user and target."""
    if not scope or scope == Scope.ANY:
        return True

    target_org = target.organization if target is not None else None
    target_dept = target.department if target is not None else None

    if scope in (Scope.OWN_ORG, Scope.OWN_ORG_CROSS_DEPT):
        # crossDept documents intent only; department is not compared.
        return _same(user.organization, target_org)

    if scope == Scope.OWN_ORG_OWN_DEPT:
        return _same(user.organization, target_org) and _same(user.department, target_dept)

    if scope == Scope.CROSS_ORG:
        if not user.is_platform_org_user:
            return False
        target_org_id = normalize_id(target_org)
        if target_org_id is None:
            return True
        return normalize_id(user.organization) != target_org_id

    return False
