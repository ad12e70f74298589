"""Shared fixtures: an in-memory SQLite database seeded with two companies."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert

from sitegate.foundation.domain.principal import Identity, Principal, Profile
from sitegate.foundation.domain.roles import Role
from sitegate.infra.persistence.database import DatabaseManager, DatabaseSettings
from sitegate.infra.persistence.tables import (
    blockers,
    companies,
    metadata,
    projects,
    subscription_plans,
    user_profiles,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.orm import Session, sessionmaker


@pytest.fixture
def db_manager() -> Iterator[DatabaseManager]:
    manager = DatabaseManager(DatabaseSettings(url="sqlite://"))
    metadata.create_all(manager.get_engine())
    _seed(manager)
    yield manager
    manager.dispose()


@pytest.fixture
def session_factory(db_manager: DatabaseManager) -> sessionmaker[Session]:
    return db_manager.get_session_factory()


def make_principal(
    user_id: str,
    role: Role,
    company_id: str | None,
) -> Principal:
    return Principal(
        identity=Identity(id=user_id),
        profile=Profile(user_id=user_id, role=role, company_id=company_id),
    )


@pytest.fixture
def worker_a() -> Principal:
    return make_principal("u-a-worker", Role.FIELD_WORKER, "c-a")


@pytest.fixture
def admin_b() -> Principal:
    return make_principal("u-b-admin", Role.COMPANY_ADMIN, "c-b")


@pytest.fixture
def operator() -> Principal:
    return make_principal("u-op", Role.SUPER_ADMIN, None)


@pytest.fixture
def orphan() -> Principal:
    return make_principal("u-orphan", Role.SUPERVISOR, None)


def _seed(manager: DatabaseManager) -> None:
    trial_end = datetime.now(UTC) + timedelta(days=14)
    with manager.get_session_factory()() as session, session.begin():
        session.execute(
            insert(subscription_plans),
            [
                {
                    "id": "plan-pro",
                    "name": "Professional",
                    "features": {"advanced_reports": True},
                    "limits": {"max_projects": 2, "max_users": -1},
                },
            ],
        )
        session.execute(
            insert(companies),
            [
                {
                    "id": "c-a",
                    "name": "Alpha Construction",
                    "slug": "alpha",
                    "subscription_status": "active",
                    "trial_ends_at": None,
                    "is_active": True,
                    "is_suspended": False,
                    "subscription_plan_id": "plan-pro",
                },
                {
                    "id": "c-b",
                    "name": "Bravo Builders",
                    "slug": "bravo",
                    "subscription_status": "trial",
                    "trial_ends_at": trial_end,
                    "is_active": True,
                    "is_suspended": False,
                    "subscription_plan_id": None,
                },
            ],
        )
        session.execute(
            insert(user_profiles),
            [
                {"id": "u-a-worker", "company_id": "c-a", "role": "field_worker",
                 "email": "worker@alpha.test", "first_name": "Ada", "last_name": "Lane"},
                {"id": "u-b-admin", "company_id": "c-b", "role": "company_admin",
                 "email": "admin@bravo.test", "first_name": "Ben", "last_name": None},
                {"id": "u-op", "company_id": None, "role": "super_admin",
                 "email": "ops@sitegate.test", "first_name": None, "last_name": None},
            ],
        )
        session.execute(
            insert(projects),
            [
                {"id": "p-a1", "company_id": "c-a", "name": "Alpha Tower",
                 "status": "active", "team_members": ["u-a-worker"]},
                {"id": "p-a2", "company_id": "c-a", "name": "Alpha Depot",
                 "status": "on_hold", "team_members": []},
                {"id": "p-b1", "company_id": "c-b", "name": "Bravo Bridge",
                 "status": "active", "team_members": ["u-b-admin"]},
            ],
        )
        session.execute(
            insert(blockers),
            [
                {"id": "b-a1", "company_id": "c-a", "project_id": "p-a1",
                 "title": "Rebar delivery late", "status": "open", "created_by": "u-a-worker"},
                {"id": "b-b1", "company_id": "c-b", "project_id": "p-b1",
                 "title": "Crane permit", "status": "open", "created_by": "u-b-admin"},
                {"id": "b-b2", "company_id": "c-b", "project_id": None,
                 "title": "Site fence", "status": "open", "created_by": "u-b-admin"},
            ],
        )
