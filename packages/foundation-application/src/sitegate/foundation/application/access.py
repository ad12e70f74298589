"""Resource-level access decisions and audit logging.

:class:`AccessDecisionService` answers "may this principal touch that row?"
for projects and blockers, and records best-effort audit events. Every
check returns ``False`` on doubt: a missing row, a fetch failure or a
company mismatch all deny. Only configuration faults raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from sitegate.foundation.application.context import get_optional_context
from sitegate.foundation.domain.access_value_objects import AuditEntry
from sitegate.foundation.domain.exceptions import (
    AuthenticationError,
    TenancyConfigurationError,
)
from sitegate.foundation.domain.roles import Role, has_role_at_least

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from typing import Any

    from sitegate.foundation.domain.ports import AuditSinkPort, ResourceStorePort
    from sitegate.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Company staff at or above this role see every project of their company.
PROJECT_OVERSIGHT_ROLE = Role.COMPANY_ADMIN


@dataclass(frozen=True, slots=True)
class CompanyScope:
    """Tenant scope handed to operations run in company context.

    Attributes:
        user_id: Acting principal id.
        company_id: Principal's company (None only for platform operators).
        role: Principal's role.
        is_super_admin: True for the platform operator tier.
    """

    user_id: str
    company_id: str | None
    role: Role | None
    is_super_admin: bool


class AccessDecisionService:
    """Row-level access checks backed by the resource store.

    Args:
        resource_store: Reads project/blocker access metadata.
        audit_sink: Destination for audit entries.
    """

    def __init__(self, resource_store: ResourceStorePort, audit_sink: AuditSinkPort) -> None:
        self._resources = resource_store
        self._audit = audit_sink

    @staticmethod
    def belongs_to_company(principal: Principal | None, company_id: str | None) -> bool:
        """Check whether a record of ``company_id`` is within the principal's tenant.

        A missing id on either side never matches.
        """
        if principal is None:
            return False
        if principal.is_platform_operator:
            return True
        if principal.company_id is None or company_id is None:
            return False
        return str(company_id) == principal.company_id

    async def can_access_project(self, principal: Principal | None, project_id: str) -> bool:
        """Check project access.

        Company admins and above see every project in their company; other
        roles must be on the project team.

        Args:
            principal: The acting principal.
            project_id: Project to check.

        Returns:
            True if access is granted. Never raises on data problems.
        """
        if principal is None:
            return False
        if principal.is_platform_operator:
            return True

        try:
            project = await self._resources.get_project(project_id)
        except Exception:
            logger.exception(
                "project_access_fetch_failed",
                extra={"project_id": project_id, "user_id": principal.id},
            )
            return False

        if project is None:
            logger.info(
                "project_access_not_found",
                extra={"project_id": project_id, "user_id": principal.id},
            )
            return False

        if not self.belongs_to_company(principal, project.company_id):
            logger.warning(
                "cross_company_project_access_denied",
                extra={
                    "project_id": project_id,
                    "user_id": principal.id,
                    "company_id": principal.company_id,
                },
            )
            return False

        if has_role_at_least(principal.role, PROJECT_OVERSIGHT_ROLE):
            return True

        return principal.id in project.team_members

    async def can_access_blocker(self, principal: Principal | None, blocker_id: str) -> bool:
        """Check blocker access.

        A blocker attached to a project inherits that project's rule; a
        blocker without one is visible to its whole company.
        """
        if principal is None:
            return False
        if principal.is_platform_operator:
            return True

        try:
            blocker = await self._resources.get_blocker(blocker_id)
        except Exception:
            logger.exception(
                "blocker_access_fetch_failed",
                extra={"blocker_id": blocker_id, "user_id": principal.id},
            )
            return False

        if blocker is None:
            return False

        if not self.belongs_to_company(principal, blocker.company_id):
            logger.warning(
                "cross_company_blocker_access_denied",
                extra={
                    "blocker_id": blocker_id,
                    "user_id": principal.id,
                    "company_id": principal.company_id,
                },
            )
            return False

        if blocker.project_id is not None:
            return await self.can_access_project(principal, blocker.project_id)

        return True

    async def log_audit_event(
        self,
        principal: Principal | None,
        action: str,
        resource_type: str,
        resource_id: str,
        old_values: Mapping[str, Any] | None = None,
        new_values: Mapping[str, Any] | None = None,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> bool:
        """Record an audit entry tagged with the principal's company.

        Best effort: sink failures are logged and swallowed. Client address
        and user agent default to the current request context.

        Returns:
            True if the entry was written.
        """
        if principal is None:
            return False

        try:
            request = get_optional_context()
            entry = AuditEntry(
                company_id=principal.company_id,
                user_id=principal.id,
                action=action,
                resource_type=resource_type,
                resource_id=str(resource_id),
                old_values=dict(old_values) if old_values is not None else None,
                new_values=dict(new_values) if new_values is not None else None,
                ip_address=ip_address or (request.ip_address if request else None),
                user_agent=user_agent or (request.user_agent if request else None),
            )
            await self._audit.record(entry)
        except Exception:
            logger.exception(
                "audit_write_failed",
                extra={
                    "action": action,
                    "resource_type": resource_type,
                    "resource_id": resource_id,
                    "company_id": principal.company_id,
                },
            )
            return False
        return True

    @staticmethod
    async def run_in_company_context(
        principal: Principal | None,
        operation: Callable[[CompanyScope], Awaitable[T]],
    ) -> T:
        """Run ``operation`` with the principal's tenant scope.

        Raises:
            AuthenticationError: Without a principal.
            TenancyConfigurationError: If a non-operator principal has no
                company.
        """
        if principal is None:
            raise AuthenticationError("User not authenticated", error_code="NOT_AUTHENTICATED")
        if not principal.is_platform_operator and principal.company_id is None:
            raise TenancyConfigurationError(
                "No company context available",
                user_id=principal.id,
                role=principal.role,
            )
        scope = CompanyScope(
            user_id=principal.id,
            company_id=principal.company_id,
            role=principal.role,
            is_super_admin=principal.is_platform_operator,
        )
        return await operation(scope)
