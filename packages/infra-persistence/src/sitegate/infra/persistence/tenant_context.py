"""SQLAlchemy session event handler for company context propagation.

Bridges the request-scoped principal ContextVar (set by middleware) to
PostgreSQL session variables consumed by RLS policies:

- ``app.current_company``: the principal's company id
- ``app.platform_operator``: ``'true'`` for platform operators

Uses ``set_config(..., true)`` for transaction-scoped safety in
connection-pooled environments. Other dialects (SQLite in tests) have no
session variables and are skipped; the Tenancy Filter remains the primary
control either way.

Registration: Called once during application lifespan startup.
"""

from __future__ import annotations

import logging

from sqlalchemy import event, text
from sqlalchemy.orm import Session

from sitegate.foundation.application.context import get_optional_principal

logger = logging.getLogger(__name__)


def _set_company_context_on_begin(
    session: Session,
    transaction: object,
    connection: object,
) -> None:
    """Set the RLS session variables after ``Session.begin()``.

    Args:
        session: The SQLAlchemy Session.
        transaction: The SessionTransaction (unused).
        connection: The Connection to execute ``set_config`` on.
    """
    principal = get_optional_principal()
    if principal is None:
        # Migrations, health checks, background tasks: RLS default-deny.
        logger.debug("company_context_skipped: no_principal")
        return

    dialect = getattr(getattr(connection, "dialect", None), "name", None)
    if dialect != "postgresql":
        logger.debug("company_context_skipped: dialect=%s", dialect)
        return

    connection.execute(  # type: ignore[attr-defined]
        text(
            "SELECT set_config('app.current_company', :company, true), "
            "set_config('app.platform_operator', :operator, true)"
        ),
        {
            "company": principal.company_id or "",
            "operator": "true" if principal.is_platform_operator else "false",
        },
    )
    logger.debug("company_context_set: company_id=%s", principal.company_id)


def register_tenant_context_handler() -> None:
    """Register the after_begin event handler on the Session class.

    Idempotent: SQLAlchemy deduplicates identical listener registrations.
    """
    event.listen(Session, "after_begin", _set_company_context_on_begin)
    logger.info("tenant_context_handler_registered")
