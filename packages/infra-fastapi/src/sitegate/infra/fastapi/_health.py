"""Health check endpoint.

Reports database connectivity when the app carries a database manager on
``app.state.database_manager``; otherwise reports the process as up.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from sitegate.infra.persistence.database import DatabaseManager

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


def _ping(manager: DatabaseManager) -> None:
    with manager.get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))


async def _check_database(manager: DatabaseManager) -> dict[str, str]:
    try:
        await asyncio.to_thread(_ping, manager)
    except SQLAlchemyError as exc:
        logger.warning("health_check: database unhealthy: %s", type(exc).__name__)
        return {"status": "error", "detail": type(exc).__name__}
    return {"status": "ok"}


@router.get("/health")
async def health(request: Request) -> Any:
    """Aggregated health check endpoint.

    Returns HTTP 200 when all subsystems are healthy, HTTP 503 otherwise.
    """
    checks: dict[str, dict[str, str]] = {}

    manager = getattr(request.app.state, "database_manager", None)
    if manager is not None:
        checks["database"] = await _check_database(manager)

    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
        status_code=200 if all_ok else 503,
    )
