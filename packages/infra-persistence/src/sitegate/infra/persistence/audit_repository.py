"""SQL-backed audit sink writing to ``audit_logs``."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sqlalchemy import insert

from sitegate.infra.persistence.tables import audit_logs

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

    from sitegate.foundation.domain.access_value_objects import AuditEntry


class SqlAuditSink:
    """AuditSinkPort implementation. Raises on write failure; callers decide."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def record(self, entry: AuditEntry) -> None:
        await asyncio.to_thread(self._record_sync, entry)

    def _record_sync(self, entry: AuditEntry) -> None:
        with self._session_factory() as session, session.begin():
            session.execute(
                insert(audit_logs).values(
                    company_id=entry.company_id,
                    user_id=entry.user_id,
                    action=entry.action,
                    resource_type=entry.resource_type,
                    resource_id=entry.resource_id,
                    old_values=entry.old_values,
                    new_values=entry.new_values,
                    ip_address=entry.ip_address,
                    user_agent=entry.user_agent,
                )
            )
