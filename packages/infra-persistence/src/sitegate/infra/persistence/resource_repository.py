"""SQL-backed resource store for projects and blockers.

Lookups by id (``get_project``/``get_blocker``) return access metadata
only; the access-decision service compares the owning company itself.
Every list, count and write goes through the Tenancy Filter.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from sitegate.foundation.domain.access_value_objects import (
    BlockerAccessRecord,
    ProjectAccessRecord,
)
from sitegate.foundation.domain.exceptions import NotFoundError, TenancyConfigurationError
from sitegate.infra.persistence.tables import blockers, projects
from sitegate.infra.persistence.tenancy_filter import require_company_id, scope_query

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session, sessionmaker

    from sitegate.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


class SqlResourceStore:
    """ResourceStorePort implementation plus tenant-scoped reads and writes.

    Args:
        session_factory: Sync session factory; queries run in a worker thread.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # -- ResourceStorePort ----------------------------------------------------

    async def get_project(self, project_id: str) -> ProjectAccessRecord | None:
        row = await asyncio.to_thread(
            self._first,
            select(projects.c.id, projects.c.company_id, projects.c.team_members).where(
                projects.c.id == project_id
            ),
        )
        if row is None:
            return None
        return ProjectAccessRecord(
            id=row["id"],
            company_id=row["company_id"],
            team_members=tuple(str(m) for m in row["team_members"] or ()),
        )

    async def get_blocker(self, blocker_id: str) -> BlockerAccessRecord | None:
        row = await asyncio.to_thread(
            self._first,
            select(
                blockers.c.id,
                blockers.c.company_id,
                blockers.c.project_id,
                blockers.c.created_by,
            ).where(blockers.c.id == blocker_id),
        )
        if row is None:
            return None
        return BlockerAccessRecord(
            id=row["id"],
            company_id=row["company_id"],
            project_id=row["project_id"],
            created_by=row["created_by"],
        )

    # -- Tenant-scoped reads --------------------------------------------------

    async def list_projects(
        self,
        principal: Principal | None,
        *,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """List the projects visible to the principal's company."""
        stmt = select(projects).order_by(projects.c.name)
        if status is not None:
            stmt = stmt.where(projects.c.status == status)
        stmt = scope_query(stmt, principal)
        return await asyncio.to_thread(self._all, stmt)

    async def list_blockers(
        self,
        principal: Principal | None,
        *,
        project_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """List the blockers of the principal's company, optionally per project."""
        stmt = select(blockers).order_by(blockers.c.created_at, blockers.c.id)
        if project_id is not None:
            stmt = stmt.where(blockers.c.project_id == project_id)
        stmt = scope_query(stmt, principal)
        return await asyncio.to_thread(self._all, stmt)

    async def count_projects(self, principal: Principal | None) -> int:
        stmt = scope_query(select(func.count()).select_from(projects), principal, table=projects)
        return await asyncio.to_thread(self._scalar, stmt)

    # -- Tenant-scoped writes -------------------------------------------------

    async def create_project(
        self,
        principal: Principal | None,
        *,
        name: str,
        team_members: Sequence[str] = (),
        company_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a project in the principal's company.

        ``company_id`` is honoured only for platform operators, who have no
        company of their own.
        """
        owner = _owning_company(principal, company_id)
        values = {
            "id": str(uuid.uuid4()),
            "company_id": owner,
            "name": name,
            "status": "active",
            "team_members": list(team_members),
        }
        await asyncio.to_thread(self._execute, insert(projects).values(**values))
        logger.info("project_created", extra={"project_id": values["id"], "company_id": owner})
        return values

    async def create_blocker(
        self,
        principal: Principal,
        *,
        title: str,
        project_id: str | None = None,
        company_id: str | None = None,
    ) -> dict[str, Any]:
        owner = _owning_company(principal, company_id)
        values = {
            "id": str(uuid.uuid4()),
            "company_id": owner,
            "project_id": project_id,
            "title": title,
            "status": "open",
            "created_by": principal.id,
        }
        await asyncio.to_thread(self._execute, insert(blockers).values(**values))
        logger.info("blocker_created", extra={"blocker_id": values["id"], "company_id": owner})
        return values

    async def set_blocker_status(
        self,
        principal: Principal | None,
        blocker_id: str,
        status: str,
    ) -> tuple[str, str]:
        """Change a blocker's status within the principal's company.

        Returns:
            The (old, new) status pair.

        Raises:
            NotFoundError: If no such blocker exists in the principal's company.
        """
        lookup = scope_query(select(blockers.c.status).where(blockers.c.id == blocker_id), principal)
        change = scope_query(
            update(blockers).where(blockers.c.id == blocker_id).values(status=status), principal
        )
        old_status = await asyncio.to_thread(self._update_returning_old, lookup, change)
        if old_status is None:
            raise NotFoundError("blocker", blocker_id)
        return old_status, status

    # -- Sync helpers ---------------------------------------------------------

    def _first(self, stmt: Any) -> Any:
        with self._session_factory() as session:
            return session.execute(stmt).mappings().first()

    def _all(self, stmt: Any) -> list[dict[str, Any]]:
        with self._session_factory() as session:
            return [dict(row) for row in session.execute(stmt).mappings().all()]

    def _scalar(self, stmt: Any) -> int:
        with self._session_factory() as session:
            return int(session.execute(stmt).scalar_one())

    def _execute(self, stmt: Any) -> None:
        with self._session_factory() as session, session.begin():
            session.execute(stmt)

    def _update_returning_old(self, lookup: Any, change: Any) -> str | None:
        with self._session_factory() as session, session.begin():
            old_status = session.execute(lookup).scalar_one_or_none()
            if old_status is None:
                return None
            session.execute(change)
            return str(old_status)


def _owning_company(principal: Principal | None, company_id: str | None) -> str:
    owner = require_company_id(principal)
    if owner is None:
        owner = company_id
    if owner is None:
        raise TenancyConfigurationError(
            "Platform operator writes must name a company",
            user_id=principal.id if principal else None,
        )
    return owner
