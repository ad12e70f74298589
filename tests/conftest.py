"""Shared fixtures for integration tests: a seeded Blocker Board app."""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt as pyjwt
import pytest
from examples.blocker_board.app import create_blocker_board_app
from fastapi.testclient import TestClient
from sqlalchemy import insert

from sitegate.infra.persistence.tables import (
    blockers,
    companies,
    projects,
    subscription_plans,
    user_profiles,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from fastapi import FastAPI

    from sitegate.infra.persistence import DatabaseManager

JWT_SECRET = "integration-test-secret-0123456789"


@pytest.fixture()
def blocker_board_app() -> FastAPI:
    """Create a fresh Blocker Board app on an in-memory database."""
    app = create_blocker_board_app(database_url="sqlite://", jwt_secret=JWT_SECRET)
    _seed(app.state.database_manager)
    return app


@pytest.fixture()
def client(blocker_board_app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the Blocker Board app (lifespan hooks executed)."""
    with TestClient(blocker_board_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build Authorization headers carrying a token for ``user_id``."""

    def build(user_id: str) -> dict[str, str]:
        claims = {
            "sub": user_id,
            "aud": "authenticated",
            "email": f"{user_id}@example.com",
            "exp": int(time.time()) + 600,
        }
        token = pyjwt.encode(claims, JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}", "User-Agent": "site-tablet/2.1"}

    return build


def _seed(manager: DatabaseManager) -> None:
    trial_end = datetime.now(UTC) + timedelta(days=14)
    with manager.get_session_factory()() as session, session.begin():
        session.execute(
            insert(subscription_plans),
            [
                {
                    "id": "plan-pro",
                    "name": "Pro",
                    "features": {"advanced_analytics": True},
                    "limits": {"max_projects": 3, "max_users": -1},
                },
                {
                    "id": "plan-basic",
                    "name": "Basic",
                    "features": {"advanced_analytics": False},
                    "limits": {"max_projects": 1},
                },
            ],
        )
        session.execute(
            insert(companies),
            [
                {
                    "id": "c-alpha",
                    "name": "Alpha Construction",
                    "slug": "alpha",
                    "subscription_status": "active",
                    "trial_ends_at": None,
                    "is_active": True,
                    "is_suspended": False,
                    "subscription_plan_id": "plan-pro",
                },
                {
                    "id": "c-beta",
                    "name": "Beta Builders",
                    "slug": "beta",
                    "subscription_status": "trial",
                    "trial_ends_at": trial_end,
                    "is_active": True,
                    "is_suspended": False,
                    "subscription_plan_id": "plan-basic",
                },
                {
                    "id": "c-gamma",
                    "name": "Gamma Groundworks",
                    "slug": "gamma",
                    "subscription_status": "cancelled",
                    "trial_ends_at": None,
                    "is_active": True,
                    "is_suspended": False,
                    "subscription_plan_id": "plan-pro",
                },
            ],
        )
        session.execute(
            insert(user_profiles),
            [
                {"id": "u-alpha-owner", "company_id": "c-alpha", "role": "company_owner"},
                {"id": "u-alpha-worker", "company_id": "c-alpha", "role": "field_worker"},
                {"id": "u-beta-admin", "company_id": "c-beta", "role": "company_admin"},
                {"id": "u-gamma-owner", "company_id": "c-gamma", "role": "company_owner"},
                {"id": "u-op", "company_id": None, "role": "super_admin"},
                {"id": "u-orphan", "company_id": None, "role": "supervisor"},
            ],
        )
        session.execute(
            insert(projects),
            [
                {
                    "id": "p-alpha-1",
                    "company_id": "c-alpha",
                    "name": "Alpha Tower",
                    "status": "active",
                    "team_members": ["u-alpha-worker"],
                },
                {
                    "id": "p-alpha-2",
                    "company_id": "c-alpha",
                    "name": "Alpha Warehouse",
                    "status": "active",
                    "team_members": [],
                },
                {
                    "id": "p-beta-1",
                    "company_id": "c-beta",
                    "name": "Beta Bridge",
                    "status": "active",
                    "team_members": [],
                },
            ],
        )
        session.execute(
            insert(blockers),
            [
                {
                    "id": "b-alpha-1",
                    "company_id": "c-alpha",
                    "project_id": "p-alpha-1",
                    "title": "Crane permit missing",
                    "status": "open",
                    "created_by": "u-alpha-worker",
                },
                {
                    "id": "b-beta-1",
                    "company_id": "c-beta",
                    "project_id": "p-beta-1",
                    "title": "Rebar delivery late",
                    "status": "open",
                    "created_by": "u-beta-admin",
                },
            ],
        )
