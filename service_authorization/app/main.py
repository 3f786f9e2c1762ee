"""
Authorization service for the Access Layer.
"""

from typing import Optional

from shared.base_service import BaseService

from .rules.engine import PermissionEngine
from .rules.models import PermissionCheckRequest, PermissionCheckResponse
from .rules.table import RuleTable, load_default_rule_table


class AuthorizationService(BaseService):
    """Authorization service implementation."""

    def __init__(self, rule_table: Optional[RuleTable] = None):
        super().__init__("authorization", 8013)

        if rule_table is None:
            rule_table = load_default_rule_table(self.config.authorization_matrix_path)

        self.engine = PermissionEngine(rule_table)

        self.logger.info(
            "Authorization service initialized",
            resources=len(rule_table.resources()),
            rules=len(rule_table)
        )

        self._setup_authorization_routes()

    def _setup_authorization_routes(self):
        """Set up authorization-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "authorization",
                "message": "Access Layer - Authorization Service",
                "version": "1.0.0",
                "capabilities": ["rule_matrix", "scope", "ownership"]
            }

        @self.app.post("/authorization/check", response_model=PermissionCheckResponse)
        async def check_permission(request: PermissionCheckRequest):
            """Advisory permission check, e.g. to show or hide UI actions."""
            result = self.engine.explain(
                request.user,
                request.resource,
                request.operation,
                target=request.target,
                resource_type=request.resource_type,
                params=request.params
            )

            self.metrics.record_authorization_decision(
                request.resource,
                request.operation,
                result.allowed,
                result.evaluation_time_ms / 1000
            )

            return PermissionCheckResponse(allowed=result.allowed)

    async def _check_dependencies(self):
        """Check authorization service dependencies."""
        return {
            "rule_table": "ok" if self.engine.rule_table.resources() else "empty"
        }


def create_app(rule_table: Optional[RuleTable] = None):
    """Create authorization service application."""
    service = AuthorizationService(rule_table)
    return service.app


if __name__ == "__main__":
    service = AuthorizationService()
    service.run()
