"""Request context management for cross-cutting concerns.

Provides a ContextVar-based mechanism for propagating request-scoped data
(company ID, user ID, correlation ID) across the call stack without explicit
parameter passing. Audit writes and the PostgreSQL tenant-context hook read
from here.

Principal context: A separate ContextVar for the authenticated principal,
managed by PrincipalAuthMiddleware. Each request (each asyncio task) sees its
own principal; there is no process-wide "current user".

Usage:
    # In handlers/services
    from sitegate.foundation.application.context import get_current_principal

    principal = get_current_principal()  # Raises if no principal context
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from sitegate.foundation.domain.principal import Principal


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable container for request-scoped context data.

    Attributes:
        company_id: The principal's company (None for platform operators).
        user_id: The authenticated user performing the action.
        correlation_id: Unique ID for distributed tracing.
        ip_address: Client address, when known.
        user_agent: Client user agent, when known.
    """

    company_id: str | None
    user_id: str
    correlation_id: str
    ip_address: str | None = None
    user_agent: str | None = None


# ContextVar for request-scoped data - None when no request is active
request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is accessed outside of a request."""

    def __init__(self) -> None:
        super().__init__(
            "No request context available. "
            "Ensure this code is called within an HTTP request with auth middleware."
        )


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_optional_context() -> RequestContext | None:
    return request_context.get()


def set_request_context(
    company_id: str | None,
    user_id: str,
    correlation_id: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Token[RequestContext | None]:
    """Set the request context for the current async task.

    Args:
        company_id: The principal's company id.
        user_id: The authenticated user's id.
        correlation_id: The correlation ID for tracing.
        ip_address: Client address.
        user_agent: Client user agent.

    Returns:
        Token for resetting the context via clear_request_context().
    """
    ctx = RequestContext(
        company_id=company_id,
        user_id=user_id,
        correlation_id=correlation_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return request_context.set(ctx)


def clear_request_context(token: Token[RequestContext | None]) -> None:
    """Reset the request context using the provided token."""
    request_context.reset(token)


# ---------------------------------------------------------------------------
# Principal context
# ---------------------------------------------------------------------------

_principal_context: ContextVar[Principal | None] = ContextVar("principal_context", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    """Set the authenticated principal for the current request.

    Args:
        principal: Principal resolved from the verified identity.

    Returns:
        Token for resetting the context.
    """
    return _principal_context.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    """Reset the principal context using the provided token.

    Called in middleware finally block after request completes.
    """
    _principal_context.reset(token)


def get_current_principal() -> Principal:
    """Get the authenticated principal from request context.

    Raises:
        NoRequestContextError: If called outside authenticated request.
    """
    principal = _principal_context.get()
    if principal is None:
        raise NoRequestContextError()
    return principal


def get_optional_principal() -> Principal | None:
    """Get the authenticated principal if available, or None."""
    return _principal_context.get()
