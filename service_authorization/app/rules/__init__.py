"""
Rules engine package.

Holds the declarative rule matrix and the pieces that evaluate it:

- models: User, Target, Rule and the request/response/result types.
- table: RuleTable, its load step and the process-wide default table.
- matcher: static filtering by role, requirement flags and resource type.
- scope: organizational/departmental locality checks.
- ownership: user-to-target relations (self, manager, assignees, ...).
- engine: PermissionEngine, which ORs the rules and ANDs each rule's checks.

Everything here is synchronous and side-effect free apart from logging,
so a single engine can be shared across requests and threads.
"""

from .engine import PermissionChecker, PermissionEngine, evaluate, get_permission_engine
from .models import Rule, Scope, Target, TaskType, User, UserRole
from .table import RuleTable, get_rule_table, reset_rule_table

__all__ = [
    "PermissionChecker",
    "PermissionEngine",
    "evaluate",
    "get_permission_engine",
    "Rule",
    "Scope",
    "Target",
    "TaskType",
    "User",
    "UserRole",
    "RuleTable",
    "get_rule_table",
    "reset_rule_table",
]
