"""
Route guard for FastAPI handlers.

Usage::

    @router.put("/tasks/{taskId}")
    async def update_task(
        taskId: str,
        authorization: AuthorizationContext = Depends(authorize("Task", "update", get_target=load_task)),
    ):
        ...

The authenticated user is expected on ``request.state.user`` (set by the
authentication middleware) as a ``User``, a mapping or a model object with the same attributes.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

from fastapi import Request

from shared.errors import AuthenticationError, AuthorizationError
from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector

from .identity import normalize_id
from .rules.engine import PermissionEngine, get_permission_engine
from .rules.models import AuthorizationContext, User

logger = get_logger("authorization.guards")

TargetResolver = Callable[[Request], Union[Any, Awaitable[Any]]]
ResourceTypeResolver = Callable[[Request, Any], Union[Optional[str], Awaitable[Optional[str]]]]

_BODY_METHODS = ("POST", "PUT", "PATCH")


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


async def _json_body(request: Request) -> Dict[str, Any]:
    if request.method not in _BODY_METHODS:
        return {}
    if "application/json" not in request.headers.get("content-type", ""):
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _user_context(user: Any) -> Tuple[Optional[str], Optional[str]]:
    """User and organization ids for log correlation."""
    if not isinstance(user, User):
        try:
            user = User.from_mapping(user)
        except (TypeError, AttributeError):
            return None, None
    return normalize_id(user.id), normalize_id(user.organization)


def _target_type(target: Any) -> Optional[str]:
    if isinstance(target, Mapping):
        return target.get("type")
    return getattr(target, "type", None)


async def resolve_resource_type(request: Request, target: Any,
                                get_resource_type: Optional[ResourceTypeResolver] = None) -> Optional[str]:
    """Custom resolver first, then body ``type``/``resourceType``, then the target's type."""
    if get_resource_type is not None:
        return await _maybe_await(get_resource_type(request, target))

    body = await _json_body(request)
    return body.get("type") or body.get("resourceType") or _target_type(target) or None


def authorize(
    resource: str,
    operation: str,
    get_target: Optional[TargetResolver] = None,
    get_resource_type: Optional[ResourceTypeResolver] = None,
    engine: Optional[PermissionEngine] = None,
    metrics: Optional[MetricsCollector] = None,
):
    """Build a dependency that enforces ``resource.operation`` for the request.

    Raises:
        AuthenticationError: no authenticated user on the request.
        AuthorizationError: no rules for the pair, or the engine denied.
    """

    async def dependency(request: Request) -> AuthorizationContext:
        permission_engine = engine if engine is not None else get_permission_engine()

        user = getattr(request.state, "user", None)
        if user is None:
            raise AuthenticationError()

        if not permission_engine.has_rules(resource, operation):
            raise AuthorizationError(f"No authorization rules found for {resource}.{operation}")

        if get_target is not None:
            target = await _maybe_await(get_target(request))
        else:
            target = getattr(request.state, "authorization_target", None)

        resource_type = await resolve_resource_type(request, target, get_resource_type)

        result = permission_engine.explain(
            user,
            resource,
            operation,
            target=target,
            resource_type=resource_type,
            params=request.path_params,
        )

        if metrics is not None:
            metrics.record_authorization_decision(
                resource, operation, result.allowed, result.evaluation_time_ms / 1000
            )

        user_id, organization_id = _user_context(user)
        set_user_context(user_id=user_id, organization_id=organization_id)

        if not result.allowed:
            logger.warning(
                "Request denied",
                resource=resource,
                operation=operation,
                resource_type=resource_type,
                rules_evaluated=result.rules_evaluated
            )
            raise AuthorizationError()

        context = AuthorizationContext(
            resource=resource,
            operation=operation,
            resource_type=resource_type,
            rules_evaluated=result.rules_evaluated,
        )
        request.state.authorization = context
        return context

    return dependency
