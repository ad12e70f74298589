"""FastAPI dependencies for plan feature gating and usage-limit enforcement.

Usage in endpoint::

    from sitegate.infra.fastapi.dependencies import require_feature, require_usage_limit

    @router.get("/analytics")
    async def analytics(
        _: Annotated[None, Depends(require_feature("advanced_analytics"))],
    ):
        ...

    @router.post("/projects", status_code=201)
    async def create_project(
        usage: Annotated[UsageLimit, Depends(require_usage_limit("projects", usage_counter=count))],
    ):
        ...
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI dependency injection needs runtime-evaluable type annotations
# on the inner functions (``request: Request``) to resolve parameters.
# PEP 563 deferred evaluation breaks this under pytest --import-mode=importlib.

import inspect
import logging
from collections.abc import Awaitable, Callable

from fastapi import Request

from sitegate.foundation.application.entitlements import (
    UsageLimit,
    enforce_usage_limit,
    has_feature_access,
)
from sitegate.foundation.domain.exceptions import FeatureDisabledError
from sitegate.foundation.domain.principal import Principal
from sitegate.infra.fastapi.dependencies.principal import CurrentPrincipal

logger = logging.getLogger(__name__)

UsageCounter = Callable[[Request, Principal, str], "int | Awaitable[int]"]


def require_feature(feature_key: str) -> Callable[..., Awaitable[None]]:
    """Create a dependency that gates an endpoint on a plan feature.

    Args:
        feature_key: Key in the subscription plan's feature map.

    Returns:
        Async dependency returning None or raising FeatureDisabledError (-> 403).
    """

    async def _check_feature(principal: CurrentPrincipal) -> None:
        if not has_feature_access(principal, feature_key):
            raise FeatureDisabledError(feature_key, principal.company_id)

    _check_feature.__qualname__ = f"require_feature({feature_key!r})._check_feature"

    return _check_feature


def require_usage_limit(
    limit_key: str,
    *,
    usage_counter: UsageCounter | None = None,
    increment: int = 1,
) -> Callable[..., Awaitable[UsageLimit]]:
    """Create a dependency that enforces a plan usage limit before a create.

    Returns a dependency function that:
    1. Reads the principal from request context
    2. Counts current usage via ``usage_counter`` (sync or async)
    3. Raises UsageLimitExceededError (-> 429) if the plan excludes the
       resource or the create would exceed the limit
    4. Returns the UsageLimit that permitted the operation

    Args:
        limit_key: Plan limit name (e.g. "projects").
        usage_counter: Callable ``(request, principal, limit_key) -> int``.
            If None, usage is assumed to be 0.
        increment: Number of resources the operation adds.

    Returns:
        Async dependency returning UsageLimit.
    """

    async def _check_limit(request: Request, principal: CurrentPrincipal) -> UsageLimit:
        current = 0
        if usage_counter is not None:
            counted = usage_counter(request, principal, limit_key)
            current = await counted if inspect.isawaitable(counted) else counted
        return enforce_usage_limit(principal, limit_key, current, increment)

    _check_limit.__qualname__ = f"require_usage_limit({limit_key!r})._check_limit"
    _check_limit._limit_key = limit_key  # type: ignore[attr-defined]

    return _check_limit
