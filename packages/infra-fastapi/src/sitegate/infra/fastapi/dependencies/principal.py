"""FastAPI dependencies for the authenticated principal and its permissions.

Usage in endpoint::

    from sitegate.infra.fastapi.dependencies import CurrentPrincipal, require_permission

    @router.post("/projects", status_code=201)
    async def create_project(
        principal: CurrentPrincipal,
        _: Annotated[None, Depends(require_permission(Permission.CREATE_PROJECTS))],
    ):
        ...
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI dependency injection needs runtime-evaluable type annotations
# on the inner functions to resolve parameters.
# PEP 563 deferred evaluation breaks this under pytest --import-mode=importlib.

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends

from sitegate.foundation.application.context import get_optional_principal
from sitegate.foundation.application.entitlements import Permission, resolve_permissions
from sitegate.foundation.domain.exceptions import AuthenticationError, AuthorizationError
from sitegate.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


async def get_principal() -> Principal:
    """Return the principal set by PrincipalAuthMiddleware.

    Raises:
        AuthenticationError: If the request carries no authenticated principal.
    """
    principal = get_optional_principal()
    if principal is None:
        raise AuthenticationError("Authentication required", error_code="MISSING_TOKEN")
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]


def require_permission(permission: Permission) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires a named permission flag.

    The flag is resolved from role rank and subscription validity. A denial
    carries the subscription reason so clients can tell "your role is too
    low" from "your company's subscription lapsed".

    Args:
        permission: The permission the endpoint requires.

    Returns:
        Async dependency returning None or raising AuthorizationError (-> 403).
    """

    async def _check_permission(principal: CurrentPrincipal) -> None:
        permissions = resolve_permissions(principal)
        if permissions.allows(permission):
            return
        logger.info(
            "permission_denied",
            extra={
                "user_id": principal.id,
                "company_id": principal.company_id,
                "permission": permission.value,
                "subscription_valid": permissions.subscription_valid,
            },
        )
        context = {"permission": permission.value}
        if permissions.subscription_reason:
            context["subscription_reason"] = permissions.subscription_reason
        raise AuthorizationError(f"Permission '{permission.value}' is required", context)

    _check_permission.__qualname__ = f"require_permission({permission.value!r})._check_permission"

    return _check_permission
