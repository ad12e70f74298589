"""Domain exception hierarchy for type-safe error handling.

Every error raised by the authorization layer carries a machine-readable
error code and structured context so the HTTP layer can render it
consistently and logs stay searchable.

Authorization *denials* are not exceptions: ``resolve_permissions`` and the
access helpers return ``False`` or a structured verdict. The exceptions
below are raised only at the edges (HTTP dependencies) or for
configuration faults that must never be silently tolerated.

Example:
    >>> from sitegate.foundation.domain.exceptions import TenancyConfigurationError
    >>> raise TenancyConfigurationError("Principal has no company", user_id="u-1")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "DomainError",
    "FeatureDisabledError",
    "NotFoundError",
    "TenancyConfigurationError",
    "UsageLimitExceededError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (ids, keys).

    Example:
        >>> raise DomainError("Operation failed", context={"company_id": "c-1"})
        DomainError: Operation failed (company_id=c-1)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str, **extra_context: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class AuthenticationError(DomainError):
    """Raised when no authenticated principal is available.

    Maps to HTTP 401 Unauthorized. All 401 responses carry a
    ``WWW-Authenticate`` header per RFC 6750.

    Attributes:
        error_code: Machine-readable error code (e.g., "TOKEN_EXPIRED").
        auth_error: RFC 6750 error code for the WWW-Authenticate header.

    Example:
        >>> raise AuthenticationError("Token has expired", auth_error="invalid_token",
        ...     error_code="TOKEN_EXPIRED")
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)


class AuthorizationError(DomainError):
    """Raised when an authenticated principal is denied an operation.

    Maps to HTTP 403 Forbidden. Only the HTTP dependencies raise this; core
    checks return ``False`` instead.
    """

    error_code: str = "AUTHORIZATION_ERROR"


class FeatureDisabledError(DomainError):
    """Raised when the company's plan does not include a feature.

    Maps to HTTP 403 Forbidden.

    Attributes:
        feature_key: The plan feature key that was checked.
        company_id: The company for which the feature is unavailable.

    Example:
        >>> raise FeatureDisabledError("advanced_reports", "c-1")
        FeatureDisabledError: Feature 'advanced_reports' is not available for company 'c-1'
    """

    error_code: str = "FEATURE_DISABLED"

    def __init__(self, feature_key: str, company_id: str | None) -> None:
        self.feature_key = feature_key
        self.company_id = company_id
        message = f"Feature '{feature_key}' is not available for company '{company_id}'"
        super().__init__(message, {"feature_key": feature_key, "company_id": company_id})


class UsageLimitExceededError(DomainError):
    """Raised when an operation would exceed a plan usage limit.

    Maps to HTTP 429 Too Many Requests. ``limit`` is ``0`` when the plan
    does not include the resource at all.

    Attributes:
        limit_key: Plan limit key (e.g., "projects").
        limit: Maximum allowed count.
        current: Usage count at the time of the check.
        reason: Human-readable reason from the usage-limit check.

    Example:
        >>> raise UsageLimitExceededError("projects", limit=5, current=5)
        UsageLimitExceededError: Company has reached limit of 5 projects
    """

    error_code: str = "USAGE_LIMIT_EXCEEDED"

    def __init__(
        self,
        limit_key: str,
        limit: int | float,
        current: int,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        self.limit_key = limit_key
        self.limit = limit
        self.current = current
        self.reason = reason
        message = reason or f"Company has reached limit of {limit} {limit_key}"
        context = {
            "limit_key": limit_key,
            "limit": limit,
            "current": current,
            **extra_context,
        }
        super().__init__(message, context)


class TenancyConfigurationError(DomainError):
    """Raised when a tenant-scoped operation cannot be scoped safely.

    Typical cause: a non-platform principal without a company id reaching
    the tenancy filter. This error is fatal to the calling operation and
    must propagate; continuing would issue an unscoped, cross-tenant query.
    Maps to HTTP 500 with a sanitized body.

    Example:
        >>> raise TenancyConfigurationError(
        ...     "No company context available", user_id="u-1", role="field_worker"
        ... )
    """

    error_code: str = "TENANCY_CONFIGURATION_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, context)
