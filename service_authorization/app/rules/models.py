"""
Rule data models for the Authorization Service.
"""

from types import MappingProxyType
from typing import Dict, Any, Optional, List, Mapping, Sequence, Tuple, FrozenSet
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Built-in user roles."""
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"


class TaskType(str, Enum):
    """Task resource-type discriminators."""
    PROJECT = "ProjectTask"
    ASSIGNED = "AssignedTask"
    ROUTINE = "RoutineTask"


class Scope(str, Enum):
    """Organizational locality a rule imposes between user and target."""
    ANY = "any"
    OWN_ORG = "ownOrg"
    OWN_ORG_OWN_DEPT = "ownOrg.ownDept"
    OWN_ORG_CROSS_DEPT = "ownOrg.crossDept"
    CROSS_ORG = "crossOrg"


KNOWN_SCOPES = frozenset(scope.value for scope in Scope)

OWNERSHIP_SELF = "self"

# Ownership tags whose target field holds a list of member ids.
ARRAY_OWNERSHIP_FIELDS = frozenset({"assignees", "watchers", "mentioned", "mentions"})

# Requirement names backed by a typed User field.
USER_ATTRIBUTES = {
    "id": "id",
    "_id": "id",
    "role": "role",
    "organization": "organization",
    "department": "department",
    "isPlatformOrgUser": "is_platform_org_user",
    "is_platform_org_user": "is_platform_org_user",
}

_USER_KEYS = frozenset({"flags"}) | frozenset(USER_ATTRIBUTES)

_TARGET_FIELDS = frozenset({
    "organization", "department", "type", "manager",
    "assignees", "watchers", "mentioned", "mentions",
})

_TARGET_KEYS = _TARGET_FIELDS | frozenset({"id", "_id"})


def _freeze(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


def _as_document(data: Any, keys: FrozenSet[str]) -> Mapping[str, Any]:
    """Mapping view of a document, or of an object carrying its fields as attributes.

    Public instance attributes are taken as-is; ``keys`` are also read with
    ``getattr`` so properties and lazily loaded columns are seen.
    """
    if isinstance(data, Mapping):
        return data
    if not hasattr(data, "__dict__") and not hasattr(data, "__slots__"):
        raise TypeError(f"Expected a mapping or an attribute object, got {type(data).__name__}")

    document = {
        key: value for key, value in getattr(data, "__dict__", {}).items()
        if not key.startswith("_") or key == "_id"
    }
    for key in keys:
        if key not in document and hasattr(data, key):
            document[key] = getattr(data, key)
    return document


@dataclass(frozen=True)
class User:
    """Acting user identity."""
    id: Any = None
    role: Optional[str] = None
    organization: Any = None
    department: Any = None
    is_platform_org_user: bool = False
    flags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "flags", _freeze(self.flags))

    def flag(self, name: str) -> bool:
        """Truthiness of a capability flag addressed by name."""
        attribute = USER_ATTRIBUTES.get(name)
        if attribute is not None:
            return bool(getattr(self, attribute))
        return bool(self.flags.get(name))

    @classmethod
    def from_mapping(cls, data: Any) -> "User":
        """Build a user from a session/JSON document or an attribute object.

        Unknown keys (``isHod``, ...) become capability flags.
        """
        data = _as_document(data, _USER_KEYS)
        flags = dict(data.get("flags") or {})
        flags.update({key: value for key, value in data.items() if key not in _USER_KEYS})

        platform = data.get("isPlatformOrgUser", data.get("is_platform_org_user", False))

        return cls(
            id=data.get("id") if data.get("id") is not None else data.get("_id"),
            role=data.get("role"),
            organization=data.get("organization"),
            department=data.get("department"),
            is_platform_org_user=bool(platform),
            flags=flags,
        )


@dataclass(frozen=True)
class Target:
    """Resource instance being acted upon. Read-only to the engine."""
    id: Any = None
    organization: Any = None
    department: Any = None
    type: Optional[str] = None
    manager: Any = None
    assignees: Optional[Sequence[Any]] = None
    watchers: Optional[Sequence[Any]] = None
    mentioned: Optional[Sequence[Any]] = None
    mentions: Optional[Sequence[Any]] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "attributes", _freeze(self.attributes))

    def get(self, name: str) -> Any:
        """Typed field when known, otherwise the open attribute bag."""
        if name in _TARGET_FIELDS:
            return getattr(self, name)
        return self.attributes.get(name)

    @classmethod
    def from_mapping(cls, data: Any) -> "Target":
        """Build a target from a loaded document (raw ids or populated refs) or model instance."""
        data = _as_document(data, _TARGET_KEYS)
        known = {key: data.get(key) for key in _TARGET_FIELDS}
        attributes = {
            key: value for key, value in data.items()
            if key not in _TARGET_FIELDS and key not in ("id", "_id")
        }

        return cls(
            id=data.get("_id") if data.get("_id") is not None else data.get("id"),
            attributes=attributes,
            **known,
        )


@dataclass(frozen=True)
class Rule:
    """Single authorization clause: eligible roles plus conditions."""
    roles: FrozenSet[str] = frozenset()
    requires: Tuple[str, ...] = ()
    resource_type: Optional[str] = None
    scope: str = Scope.ANY.value
    ownership: Tuple[str, ...] = ()


class RuleSpec(BaseModel):
    """Declarative shape of one rule in a matrix file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    roles: List[str] = Field(default_factory=list, description="Eligible roles")
    requires: List[str] = Field(default_factory=list, description="Flag conditions, '!flag' negates")
    resource_type: Optional[str] = Field(None, alias="resourceType", description="Resource sub-kind")
    scope: Optional[str] = Field(None, description="Organizational scope")
    ownership: List[str] = Field(default_factory=list, description="Ownership relations (any of)")
    description: Optional[str] = Field(None, description="Free-form note for rule authors")

    def to_rule(self) -> Rule:
        return Rule(
            roles=frozenset(self.roles),
            requires=tuple(self.requires),
            resource_type=self.resource_type,
            scope=self.scope or Scope.ANY.value,
            ownership=tuple(self.ownership),
        )


class PermissionCheckRequest(BaseModel):
    """Request model for a permission check."""

    model_config = ConfigDict(populate_by_name=True)

    user: Dict[str, Any] = Field(..., description="Acting user document")
    resource: str = Field(..., description="Resource name")
    operation: str = Field(..., description="Operation name")
    target: Optional[Dict[str, Any]] = Field(None, description="Target resource document")
    resource_type: Optional[str] = Field(None, alias="resourceType", description="Resource-type discriminator")
    params: Dict[str, Any] = Field(default_factory=dict, description="Call-site parameters")


class PermissionCheckResponse(BaseModel):
    """Response model for a permission check."""
    allowed: bool = Field(..., description="Whether the operation is allowed")


@dataclass(frozen=True)
class EvaluationResult:
    """Decision plus evaluation bookkeeping; internal use only."""
    allowed: bool
    resource: str
    operation: str
    resource_type: Optional[str] = None
    rules_evaluated: int = 0
    evaluation_time_ms: float = 0.0


@dataclass(frozen=True)
class AuthorizationContext:
    """Outcome attached to a request once a route guard lets it through."""
    resource: str
    operation: str
    resource_type: Optional[str]
    rules_evaluated: int
