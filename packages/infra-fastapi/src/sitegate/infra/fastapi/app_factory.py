"""FastAPI application factory.

Provides :func:`create_app`, which wires CORS, principal authentication,
RFC 7807 error handlers, lifespan hooks and routers into one application.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from sitegate.infra.auth.middleware import PrincipalAuthMiddleware
from sitegate.infra.fastapi._health import router as health_router
from sitegate.infra.fastapi.error_handlers import register_exception_handlers
from sitegate.infra.fastapi.lifespan import LifespanHook, compose_lifespan
from sitegate.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

    from sitegate.foundation.application.session import PrincipalResolver
    from sitegate.foundation.domain.ports import IdentityVerifierPort
    from sitegate.infra.persistence.database import DatabaseManager

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    verifier: IdentityVerifierPort | None = None,
    resolver: PrincipalResolver | None = None,
    database_manager: DatabaseManager | None = None,
    routers: list[APIRouter] | None = None,
    lifespan_hooks: list[LifespanHook] | None = None,
    excluded_paths: tuple[str, ...] | None = None,
) -> FastAPI:
    """Create a FastAPI application guarded by principal authentication.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        verifier: Bearer-token verifier. Without one, protected paths
            answer 503.
        resolver: Builds Principals from verified identities.
        database_manager: Exposed on ``app.state`` for the health check and
            request handlers.
        routers: Routers to include.
        lifespan_hooks: Startup/shutdown hooks, ordered by priority.
        excluded_paths: Path prefixes that skip authentication.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(list(lifespan_hooks or [])),
    )
    app.state.database_manager = database_manager

    # Starlette runs the last-added middleware first, so CORS wraps auth.
    app.add_middleware(
        PrincipalAuthMiddleware,
        verifier=verifier,
        resolver=resolver,
        excluded_prefixes=excluded_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )
    if verifier is None:
        logger.warning("create_app: no token verifier configured; protected routes answer 503")

    register_exception_handlers(app)

    app.include_router(health_router)
    for router in routers or []:
        app.include_router(router)
        logger.info("Included router: %r", router)

    return app
