"""
Permission evaluation engine for the Authorization Service.
"""

import time
from typing import Any, Mapping, Optional, Union

from shared.logging import get_logger

from .matcher import select_rules
from .models import EvaluationResult, Target, User
from .ownership import matches_ownership
from .scope import matches_scope
from .table import RuleTable, get_rule_table

UserLike = Union[User, Mapping[str, Any], None]
TargetLike = Union[Target, Mapping[str, Any], None]


def _as_user(user: UserLike) -> Optional[User]:
    if user is None or isinstance(user, User):
        return user
    return User.from_mapping(user)


def _as_target(target: TargetLike) -> Optional[Target]:
    if target is None or isinstance(target, Target):
        return target
    return Target.from_mapping(target)


class PermissionEngine:
    """Decides whether a user may perform an operation on a resource.

    The decision is an OR across the rules registered for the
    resource/operation pair, each rule being an AND of role membership,
    requirement flags, resource type, scope and ownership. Absence of a
    satisfied rule is the only way to deny; the engine never raises.
    Rules are tried in table order and the first satisfied one wins, which
    cannot change the outcome of a pure disjunction.
    """

    def __init__(self, rule_table: Optional[RuleTable] = None):
        self.logger = get_logger("authorization.engine")
        self.rule_table = rule_table if rule_table is not None else get_rule_table()

    def has_rules(self, resource: str, operation: str) -> bool:
        return bool(self.rule_table.rules_for(resource, operation))

    def evaluate(
        self,
        user: UserLike,
        resource: str,
        operation: str,
        target: TargetLike = None,
        resource_type: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Return True iff some rule for ``resource.operation`` allows ``user``."""
        return self.explain(user, resource, operation, target, resource_type, params).allowed

    def explain(
        self,
        user: UserLike,
        resource: str,
        operation: str,
        target: TargetLike = None,
        resource_type: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> EvaluationResult:
        """Evaluate and report bookkeeping alongside the decision.

        The result is meant for logs and metrics; it must not be handed back
        to API callers.
        """
        start_time = time.perf_counter()
        allowed = False
        rules_evaluated = 0

        try:
            allowed, rules_evaluated = self._decide(
                _as_user(user), resource, operation, _as_target(target), resource_type, params
            )
        except Exception as e:
            self.logger.error(
                "Permission evaluation error",
                resource=resource,
                operation=operation,
                error=str(e)
            )
            allowed = False

        result = EvaluationResult(
            allowed=allowed,
            resource=resource,
            operation=operation,
            resource_type=resource_type,
            rules_evaluated=rules_evaluated,
            evaluation_time_ms=(time.perf_counter() - start_time) * 1000
        )

        self.logger.debug(
            "Permission evaluated",
            resource=resource,
            operation=operation,
            resource_type=resource_type,
            allowed=allowed,
            rules_evaluated=rules_evaluated
        )

        return result

    def _decide(self, user, resource, operation, target, resource_type, params):
        if user is None or not user.role:
            return False, 0

        rules = self.rule_table.rules_for(resource, operation)
        if not rules:
            return False, 0

        candidates = select_rules(rules, user, resource_type)

        for rule in candidates:
            if matches_scope(rule.scope, user, target) and \
                    matches_ownership(rule.ownership, user, target, params):
                return True, len(candidates)

        return False, len(candidates)


class PermissionChecker:
    """User-bound ``can``/``cannot`` helper for UI affordances.

    This check is advisory; the authoritative decision happens in the route
    guard before any mutation.
    """

    def __init__(self, user: UserLike, engine: Optional[PermissionEngine] = None):
        self.user = user
        self.engine = engine if engine is not None else get_permission_engine()

    def can(self, resource: str, operation: str, **options) -> bool:
        return self.engine.evaluate(self.user, resource, operation, **options)

    def cannot(self, resource: str, operation: str, **options) -> bool:
        return not self.can(resource, operation, **options)


_default_engine: Optional[PermissionEngine] = None


def get_permission_engine() -> PermissionEngine:
    """Engine bound to the process-wide rule table."""
    global _default_engine
    if _default_engine is None or _default_engine.rule_table is not get_rule_table():
        _default_engine = PermissionEngine(get_rule_table())
    return _default_engine


def evaluate(user: UserLike, resource: str, operation: str, **options) -> bool:
    """Evaluate against the process-wide rule table.

    Options: ``target``, ``resource_type``, ``params``.
    """
    return get_permission_engine().evaluate(user, resource, operation, **options)
