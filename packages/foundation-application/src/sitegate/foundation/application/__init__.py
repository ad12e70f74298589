"""Sitegate Foundation Application -- authorization services.

Session loading, entitlement resolution, resource access decisions and the
request-scoped principal context.
"""

from sitegate.foundation.application.access import AccessDecisionService, CompanyScope
from sitegate.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_principal_context,
    clear_request_context,
    get_current_context,
    get_current_principal,
    get_optional_context,
    get_optional_principal,
    set_principal_context,
    set_request_context,
)
from sitegate.foundation.application.entitlements import (
    PERMISSION_REQUIREMENTS,
    Permission,
    PermissionSet,
    UsageLimit,
    check_usage_limit,
    enforce_usage_limit,
    has_feature_access,
    resolve_permissions,
)
from sitegate.foundation.application.session import (
    CompanyContext,
    CurrentUser,
    PrincipalResolver,
    SessionLoader,
    SessionState,
    company_context_for,
)

__all__ = [
    "PERMISSION_REQUIREMENTS",
    "AccessDecisionService",
    "CompanyContext",
    "CompanyScope",
    "CurrentUser",
    "NoRequestContextError",
    "Permission",
    "PermissionSet",
    "PrincipalResolver",
    "RequestContext",
    "SessionLoader",
    "SessionState",
    "UsageLimit",
    "check_usage_limit",
    "clear_principal_context",
    "clear_request_context",
    "company_context_for",
    "enforce_usage_limit",
    "get_current_context",
    "get_current_principal",
    "get_optional_context",
    "get_optional_principal",
    "has_feature_access",
    "resolve_permissions",
    "set_principal_context",
    "set_request_context",
]
