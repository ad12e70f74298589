"""Sitegate Infra Observability -- structlog logging with tenant attribution."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sitegate.infra.observability.logging import (
    LoggingSettings,
    SensitiveDataProcessor,
    bind_principal_context,
    clear_principal_log_context,
    configure_logging,
    get_logger,
    get_logging_settings,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def observability_lifespan(app: Any) -> AsyncIterator[None]:
    """Lifespan hook that configures logging on startup."""
    configure_logging()
    yield


__all__ = [
    "LoggingSettings",
    "SensitiveDataProcessor",
    "bind_principal_context",
    "clear_principal_log_context",
    "configure_logging",
    "get_logger",
    "get_logging_settings",
    "observability_lifespan",
]
