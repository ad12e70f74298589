"""Persistence lifespan hook for startup/shutdown resource management.

Handles:
- Tenant context handler registration (RLS activation)
- Database health check on startup (SELECT 1)
- Engine disposal on shutdown
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from sitegate.infra.persistence.tenancy_filter import get_tenancy_settings
from sitegate.infra.persistence.tenant_context import register_tenant_context_handler

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sitegate.infra.persistence.database import DatabaseManager

logger = logging.getLogger(__name__)


def persistence_lifespan(
    manager: DatabaseManager,
) -> Callable[[Any], Any]:
    """Build a lifespan context manager bound to ``manager``.

    Args:
        manager: The database manager whose engine is checked and disposed.

    Returns:
        An async context manager factory suitable for FastAPI's ``lifespan``.
    """

    @asynccontextmanager
    async def _lifespan(app: Any) -> AsyncIterator[None]:
        if get_tenancy_settings().apply_rls_context:
            register_tenant_context_handler()

        await asyncio.to_thread(_health_check, manager)
        logger.info("persistence_lifespan: database health check passed")

        try:
            yield
        finally:
            manager.dispose()
            logger.info("persistence_lifespan: database engine disposed")

    return _lifespan


def _health_check(manager: DatabaseManager) -> None:
    with manager.get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
