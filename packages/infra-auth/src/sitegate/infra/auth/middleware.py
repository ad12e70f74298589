"""Principal authentication middleware.

Validates the Bearer token, resolves the Principal (identity + profile +
company + plan) and makes it available to the request:

- ``set_principal_context`` for handlers and dependencies
- ``set_request_context`` for audit attribution and the RLS hook
- structlog contextvars so every log line is tenant-attributed

Error flow:
- Missing header -> 401 (missing_token)
- Malformed header -> 401 (invalid_format)
- Invalid/expired token -> 401 (error code from the verifier)
- No resolvable profile -> 403 (profile_not_found)

All 401 responses include ``WWW-Authenticate: Bearer`` per RFC 6750.

Returns JSONResponse directly for auth errors (not raise HTTPException)
because BaseHTTPMiddleware dispatch cannot propagate exceptions through
the ASGI stack.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from sitegate.foundation.application.context import (
    clear_principal_context,
    clear_request_context,
    set_principal_context,
    set_request_context,
)
from sitegate.foundation.domain.exceptions import AuthenticationError
from sitegate.infra.observability.logging import (
    bind_principal_context,
    clear_principal_log_context,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

    from sitegate.foundation.application.session import PrincipalResolver
    from sitegate.foundation.domain.ports import IdentityVerifierPort

logger = logging.getLogger(__name__)

_DEFAULT_EXCLUDED_PREFIXES = ("/health", "/docs", "/openapi.json", "/redoc")

_PROBLEM_MEDIA_TYPE = "application/problem+json"

_TITLE_MAP = {
    401: "Unauthorized",
    403: "Forbidden",
    503: "Service Unavailable",
}


class PrincipalAuthMiddleware(BaseHTTPMiddleware):
    """Bearer-token authentication that resolves a full Principal.

    Request flow:
    1. Check if path is excluded -> skip auth
    2. Extract Authorization: Bearer <token> header
    3. Verify the token -> Identity
    4. Resolve the Principal via the profile store
    5. Set principal context, request context and log context
    6. Call next middleware/handler, then reset all three
    """

    def __init__(
        self,
        app: Any,
        verifier: IdentityVerifierPort | None = None,
        resolver: PrincipalResolver | None = None,
        excluded_prefixes: tuple[str, ...] | None = None,
    ) -> None:
        """Initialize authentication middleware.

        Args:
            app: ASGI application (passed by Starlette).
            verifier: Token verifier. None means authentication is not
                configured and protected paths answer 503.
            resolver: Builds Principals from verified identities.
            excluded_prefixes: Path prefixes to skip auth on.
        """
        super().__init__(app)
        self._verifier = verifier
        self._resolver = resolver
        self._excluded_prefixes = (
            excluded_prefixes if excluded_prefixes is not None else _DEFAULT_EXCLUDED_PREFIXES
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in self._excluded_prefixes):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return self._auth_error(request, 401, "missing_token", "Authorization header is required")

        if not auth_header.startswith("Bearer "):
            return self._auth_error(
                request, 401, "invalid_format", "Authorization header must use Bearer scheme"
            )

        token = auth_header[7:].strip()
        if not token:
            return self._auth_error(request, 401, "invalid_format", "Bearer token is empty")

        if self._verifier is None or self._resolver is None:
            return self._auth_error(
                request, 503, "service_unavailable", "Authentication service not configured"
            )

        try:
            identity = self._verifier.verify(token)
        except AuthenticationError as exc:
            return self._auth_error(request, 401, exc.error_code.lower(), exc.message)

        principal = await self._resolver.resolve(identity)
        if principal is None:
            return self._auth_error(
                request, 403, "profile_not_found", "No profile is associated with this account"
            )

        correlation_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        principal_token = set_principal_context(principal)
        request_token = set_request_context(
            principal.company_id,
            principal.id,
            correlation_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
        )
        bind_principal_context(principal)
        try:
            return await call_next(request)
        finally:
            clear_principal_log_context()
            clear_request_context(request_token)
            clear_principal_context(principal_token)

    def _auth_error(
        self,
        request: Request,
        status_code: int,
        error_code: str,
        message: str,
    ) -> JSONResponse:
        """Build RFC 7807 + RFC 6750 compliant error response."""
        logger.info(
            "auth_validation_failed",
            extra={
                "error_code": error_code,
                "path": request.url.path,
                "method": request.method,
            },
        )

        headers: dict[str, str] = {}
        if status_code == 401:
            headers["WWW-Authenticate"] = (
                f'Bearer realm="API", error="{error_code}", error_description="{message}"'
            )

        return JSONResponse(
            status_code=status_code,
            content={
                "type": f"/errors/{error_code.replace('_', '-')}",
                "title": _TITLE_MAP.get(status_code, "Error"),
                "status": status_code,
                "detail": message,
                "error_code": error_code.upper(),
                "instance": str(request.url.path),
            },
            media_type=_PROBLEM_MEDIA_TYPE,
            headers=headers,
        )
