"""Blocker Board application factory.

Demonstrates the consumer pattern: wire the SQL stores, the token verifier
and the principal resolver into ``create_app`` and bring a domain router.

Usage::

    from examples.blocker_board.app import create_blocker_board_app

    app = create_blocker_board_app(database_url="sqlite://", jwt_secret="dev-secret")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sitegate.foundation.application import AccessDecisionService, PrincipalResolver
from sitegate.infra.auth import JWTIdentityVerifier, get_auth_settings
from sitegate.infra.fastapi import AppSettings, LifespanHook, create_app
from sitegate.infra.observability import observability_lifespan
from sitegate.infra.persistence import (
    DatabaseManager,
    DatabaseSettings,
    SqlAuditSink,
    SqlProfileStore,
    SqlResourceStore,
    metadata,
    persistence_lifespan,
)

from .router import router as blocker_router

if TYPE_CHECKING:
    from fastapi import FastAPI


def create_blocker_board_app(
    *,
    database_url: str | None = None,
    jwt_secret: str | None = None,
    create_schema: bool = True,
) -> FastAPI:
    """Create a Blocker Board app backed by sitegate.

    Args:
        database_url: Connection URL. Defaults to ``DATABASE_*`` settings.
        jwt_secret: Token verification secret. Defaults to ``AUTH_JWT_SECRET``.
        create_schema: Create missing tables on build (for SQLite demos).
    """
    manager = DatabaseManager(
        DatabaseSettings(url=database_url) if database_url else DatabaseSettings()
    )
    if create_schema:
        metadata.create_all(manager.get_engine())
    session_factory = manager.get_session_factory()

    auth_settings = get_auth_settings()
    if jwt_secret:
        auth_settings = auth_settings.model_copy(update={"jwt_secret": jwt_secret})
    verifier = (
        JWTIdentityVerifier.from_settings(auth_settings) if auth_settings.is_configured() else None
    )

    app = create_app(
        AppSettings(title="Blocker Board", version="0.1.0"),
        verifier=verifier,
        resolver=PrincipalResolver(SqlProfileStore(session_factory)),
        database_manager=manager,
        routers=[blocker_router],
        lifespan_hooks=[
            LifespanHook(hook=observability_lifespan, priority=100),
            LifespanHook(hook=persistence_lifespan(manager), priority=200),
        ],
        excluded_paths=auth_settings.excluded_paths,
    )

    resource_store = SqlResourceStore(session_factory)
    app.state.resource_store = resource_store
    app.state.access = AccessDecisionService(resource_store, SqlAuditSink(session_factory))
    return app
