"""
Static rule selection: role, requirement flags and resource type.
"""

from typing import Iterable, List, Optional

from .models import Rule, User


def requirements_met(requires: Iterable[str], user: User) -> bool:
    """Every ``flag`` must be truthy and every ``!flag`` falsy on the user."""
    for requirement in requires:
        if requirement.startswith("!"):
            if user.flag(requirement[1:]):
                return False
        elif not user.flag(requirement):
            return False
    return True


def is_candidate(rule: Rule, user: User, resource_type: Optional[str]) -> bool:
    """Static preconditions only; the target is not inspected."""
    if user.role not in rule.roles:
        return False

    if rule.resource_type is not None and rule.resource_type != resource_type:
        return False

    return requirements_met(rule.requires, user)


def select_rules(rules: Iterable[Rule], user: User, resource_type: Optional[str] = None) -> List[Rule]:
    """Rules whose role, flag and resource-type preconditions hold, in order."""
    return [rule for rule in rules if is_candidate(rule, user, resource_type)]
