"""Entitlement resolution: role rank + subscription verdict + plan maps.

Three query functions answer every entitlement question the presentation
and HTTP layers ask:

* :func:`resolve_permissions` -> the full :class:`PermissionSet`.
* :func:`has_feature_access` -> whether a plan feature is enabled.
* :func:`check_usage_limit` -> the :class:`UsageLimit` for a plan limit.

None of them raise on missing data; absence always reads as "deny". The
platform operator tier short-circuits to "allowed" in all three because it
sits outside tenant billing.

:func:`enforce_usage_limit` is the raising variant used in front of create
operations.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sitegate.foundation.domain.company_value_objects import SubscriptionStatus, is_unlimited
from sitegate.foundation.domain.exceptions import UsageLimitExceededError
from sitegate.foundation.domain.roles import Role, has_role_at_least
from sitegate.foundation.domain.subscription import validate_subscription

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from sitegate.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)

REASON_NO_COMPANY_CONTEXT = "No company context"
REASON_NOT_IN_PLAN = "Not available in current plan"


class Permission(StrEnum):
    """Named permission flags; values match the PermissionSet fields."""

    CREATE_PROJECTS = "can_create_projects"
    MANAGE_USERS = "can_manage_users"
    MANAGE_CONTRACTORS = "can_manage_contractors"
    UPLOAD_DRAWINGS = "can_upload_drawings"
    CREATE_BLOCKERS = "can_create_blockers"
    ASSIGN_BLOCKERS = "can_assign_blockers"
    RESOLVE_BLOCKERS = "can_resolve_blockers"
    VIEW_ANALYTICS = "can_view_analytics"
    MANAGE_COMPANY = "can_manage_company"


# Minimum role per flag; None means any known role with a valid subscription.
PERMISSION_REQUIREMENTS: Mapping[Permission, Role | None] = MappingProxyType(
    {
        Permission.CREATE_PROJECTS: Role.COMPANY_ADMIN,
        Permission.MANAGE_USERS: Role.COMPANY_ADMIN,
        Permission.MANAGE_CONTRACTORS: Role.COMPANY_ADMIN,
        Permission.UPLOAD_DRAWINGS: Role.SUPERVISOR,
        Permission.CREATE_BLOCKERS: None,
        Permission.ASSIGN_BLOCKERS: Role.SUPERVISOR,
        Permission.RESOLVE_BLOCKERS: None,
        Permission.VIEW_ANALYTICS: Role.PROJECT_MANAGER,
        Permission.MANAGE_COMPANY: Role.COMPANY_OWNER,
    }
)


@dataclass(frozen=True, slots=True)
class PermissionSet:
    """Derived permission flags for a principal. Never persisted.

    Attributes:
        is_super_admin: True for the platform operator tier.
        subscription_valid: Verdict of the subscription rules.
        subscription_type: trial/active/past_due for valid subscriptions.
        subscription_warning: Non-blocking notice (e.g. overdue payment).
        subscription_reason: Why the subscription is invalid.
    """

    can_create_projects: bool = False
    can_manage_users: bool = False
    can_manage_contractors: bool = False
    can_upload_drawings: bool = False
    can_create_blockers: bool = False
    can_assign_blockers: bool = False
    can_resolve_blockers: bool = False
    can_view_analytics: bool = False
    can_manage_company: bool = False
    is_super_admin: bool = False
    subscription_valid: bool = False
    subscription_type: SubscriptionStatus | None = None
    subscription_warning: str | None = None
    subscription_reason: str | None = None

    def allows(self, permission: Permission) -> bool:
        return bool(getattr(self, permission.value))

    def granted(self) -> frozenset[Permission]:
        """The set of permissions whose flag is True."""
        return frozenset(p for p in Permission if self.allows(p))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class UsageLimit:
    """Answer to a plan usage-limit question.

    Attributes:
        allowed: Whether the company may use the resource at all.
        limit: Positive maximum count, when finite.
        unlimited: True when there is no maximum.
        reason: Why the resource is not allowed.
    """

    allowed: bool
    limit: int | float | None = None
    unlimited: bool = False
    reason: str | None = None


def resolve_permissions(
    principal: Principal | None,
    *,
    now: datetime | None = None,
) -> PermissionSet:
    """Compute the permission flags for a principal.

    Each flag is ``subscription valid AND role >= required role``. The
    platform operator tier gets every flag regardless of subscription; no
    principal gets none.

    Args:
        principal: The principal, or None when signed out.
        now: Evaluation time for the trial window (defaults to now).

    Returns:
        PermissionSet. Never raises.
    """
    if principal is None:
        return PermissionSet()

    if principal.is_platform_operator:
        return PermissionSet(
            **{p.value: True for p in Permission},
            is_super_admin=True,
            subscription_valid=True,
        )

    verdict = validate_subscription(principal.company, now=now)
    role = principal.role
    flags = {
        permission.value: verdict.valid and _meets(role, required)
        for permission, required in PERMISSION_REQUIREMENTS.items()
    }
    return PermissionSet(
        **flags,
        subscription_valid=verdict.valid,
        subscription_type=verdict.type,
        subscription_warning=verdict.warning,
        subscription_reason=verdict.reason,
    )


def has_feature_access(principal: Principal | None, feature_key: str) -> bool:
    """Check whether the principal's plan includes a feature.

    Denied without a company, when the company is inactive or suspended,
    or when the subscription is cancelled or suspended. Otherwise the plan's
    feature value must be ``True`` or a number greater than zero.

    An expired trial does not remove feature access on its own; the
    permission flags already deny every subscription-gated action.
    """
    if principal is None:
        return False
    if principal.is_platform_operator:
        return True

    company = principal.company
    if company is None or not company.is_active or company.is_suspended:
        return False
    if company.status in (SubscriptionStatus.CANCELLED, SubscriptionStatus.SUSPENDED):
        return False

    plan = company.subscription_plan
    if plan is None:
        return False
    return plan.feature_enabled(feature_key)


def check_usage_limit(principal: Principal | None, limit_key: str) -> UsageLimit:
    """Look up a plan usage limit for the principal's company.

    The plan's limit map is read under ``limit_key`` and then under
    ``max_<limit_key>``. The UNLIMITED sentinel yields ``unlimited``; a
    positive finite number yields ``limit``; anything else is not allowed.

    Args:
        principal: The principal, or None.
        limit_key: Resource name, e.g. "projects" or "max_projects".

    Returns:
        UsageLimit. Never raises.
    """
    if principal is not None and principal.is_platform_operator:
        return UsageLimit(allowed=True, unlimited=True)

    company = principal.company if principal is not None else None
    if company is None:
        return UsageLimit(allowed=False, reason=REASON_NO_COMPANY_CONTEXT)

    limits = company.subscription_plan.limits if company.subscription_plan else {}
    value = _lookup_limit(limits, limit_key)

    if is_unlimited(value):
        return UsageLimit(allowed=True, unlimited=True)
    limit = _positive_limit(value)
    if limit is not None:
        return UsageLimit(allowed=True, limit=limit)
    return UsageLimit(allowed=False, reason=REASON_NOT_IN_PLAN)


def enforce_usage_limit(
    principal: Principal | None,
    limit_key: str,
    current_count: int,
    increment: int = 1,
) -> UsageLimit:
    """Check that adding ``increment`` resources stays within the plan.

    Args:
        principal: The acting principal.
        limit_key: Resource name (see check_usage_limit).
        current_count: Current usage count.
        increment: Number of resources the operation would add.

    Returns:
        The UsageLimit that permitted the operation.

    Raises:
        UsageLimitExceededError: If the plan does not include the resource
            or the operation would exceed the limit.
    """
    usage = check_usage_limit(principal, limit_key)
    company_id = principal.company_id if principal is not None else None

    if not usage.allowed:
        logger.warning(
            "usage_limit_not_in_plan",
            extra={"company_id": company_id, "limit_key": limit_key, "reason": usage.reason},
        )
        raise UsageLimitExceededError(
            limit_key,
            limit=0,
            current=current_count,
            reason=usage.reason,
            company_id=company_id,
        )

    if usage.unlimited or usage.limit is None:
        return usage

    if current_count + increment > usage.limit:
        logger.warning(
            "usage_limit_exceeded",
            extra={
                "company_id": company_id,
                "limit_key": limit_key,
                "limit": usage.limit,
                "current": current_count,
                "attempted_increment": increment,
            },
        )
        raise UsageLimitExceededError(
            limit_key,
            limit=usage.limit,
            current=current_count,
            company_id=company_id,
        )

    logger.debug(
        "usage_limit_checked",
        extra={
            "company_id": company_id,
            "limit_key": limit_key,
            "limit": usage.limit,
            "remaining": usage.limit - current_count - increment,
        },
    )
    return usage


def _meets(role: Role | None, required: Role | None) -> bool:
    if role is None:
        return False
    if required is None:
        return True
    return has_role_at_least(role, required)


def _lookup_limit(limits: Mapping[str, Any], limit_key: str) -> Any:
    if limit_key in limits:
        return limits[limit_key]
    return limits.get(f"max_{limit_key}")


def _positive_limit(value: Any) -> int | float | None:
    """Return a usable finite limit, or None. Whole floats become ints."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
