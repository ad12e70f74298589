"""Unit tests for sitegate.infra.fastapi.dependencies."""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI Depends() + Annotated requires runtime-evaluable annotations.
# PEP 563 deferred evaluation breaks this under pytest --import-mode=importlib.

from typing import Annotated

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from sitegate.foundation.application.entitlements import Permission, UsageLimit
from sitegate.foundation.domain.principal import Principal
from sitegate.foundation.domain.roles import Role
from sitegate.infra.fastapi.dependencies import (
    CurrentPrincipal,
    get_principal,
    require_feature,
    require_permission,
    require_usage_limit,
)
from sitegate.infra.fastapi.error_handlers import register_exception_handlers


def _make_app(principal: Principal | None, *, project_count: int = 0) -> FastAPI:
    """Create a minimal app whose principal dependency is overridden."""
    app = FastAPI()
    register_exception_handlers(app)

    async def count_projects(request: Request, principal: Principal, limit_key: str) -> int:
        return project_count

    @app.get("/me")
    async def me(principal: CurrentPrincipal) -> dict[str, str]:
        return {"user_id": principal.id}

    @app.post("/projects")
    async def create_project(
        _: Annotated[None, Depends(require_permission(Permission.CREATE_PROJECTS))],
        usage: Annotated[
            UsageLimit, Depends(require_usage_limit("projects", usage_counter=count_projects))
        ],
    ) -> dict[str, object]:
        return {"limit": usage.limit, "unlimited": usage.unlimited}

    @app.get("/analytics")
    async def analytics(
        _: Annotated[None, Depends(require_feature("advanced_analytics"))],
    ) -> dict[str, str]:
        return {"status": "ok"}

    if principal is not None:
        app.dependency_overrides[get_principal] = lambda: principal
    return app


class TestGetPrincipal:
    @pytest.mark.unit
    def test_no_principal_is_401(self) -> None:
        client = TestClient(_make_app(None))
        resp = client.get("/me")
        assert resp.status_code == 401
        assert resp.json()["error_code"] == "MISSING_TOKEN"
        assert "WWW-Authenticate" in resp.headers

    @pytest.mark.unit
    def test_principal_is_injected(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal()))
        assert client.get("/me").json() == {"user_id": "user-1"}


class TestRequirePermission:
    @pytest.mark.unit
    def test_low_role_is_403(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(Role.SUPERVISOR)))
        resp = client.post("/projects")
        assert resp.status_code == 403
        body = resp.json()
        assert body["error_code"] == "AUTHORIZATION_ERROR"
        assert body["context"]["permission"] == "can_create_projects"

    @pytest.mark.unit
    def test_lapsed_subscription_carries_reason(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(Role.COMPANY_OWNER, status="cancelled")))
        resp = client.post("/projects")
        assert resp.status_code == 403
        assert resp.json()["context"]["subscription_reason"] == "Subscription cancelled"

    @pytest.mark.unit
    def test_admin_within_limit_passes(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(Role.COMPANY_ADMIN), project_count=1))
        resp = client.post("/projects")
        assert resp.status_code == 200
        assert resp.json() == {"limit": 2, "unlimited": False}


class TestRequireUsageLimit:
    @pytest.mark.unit
    def test_limit_reached_is_429(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(Role.COMPANY_ADMIN), project_count=2))
        resp = client.post("/projects")
        assert resp.status_code == 429
        assert resp.json()["error_code"] == "USAGE_LIMIT_EXCEEDED"
        assert resp.headers["X-RateLimit-Limit"] == "2"
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.unit
    def test_resource_not_in_plan_is_429(self, make_principal) -> None:
        principal = make_principal(Role.COMPANY_ADMIN, limits={})
        client = TestClient(_make_app(principal))
        resp = client.post("/projects")
        assert resp.status_code == 429
        assert resp.json()["detail"] == "Not available in current plan"

    @pytest.mark.unit
    def test_unlimited_plan_passes(self, make_principal) -> None:
        principal = make_principal(Role.COMPANY_ADMIN, limits={"max_projects": -1})
        client = TestClient(_make_app(principal, project_count=10_000))
        assert client.post("/projects").json() == {"limit": None, "unlimited": True}

    @pytest.mark.unit
    def test_sync_usage_counter_supported(self, make_principal) -> None:
        app = FastAPI()
        register_exception_handlers(app)
        principal = make_principal(Role.COMPANY_ADMIN)
        dep = require_usage_limit("projects", usage_counter=lambda request, p, key: 5)

        @app.post("/things")
        async def create(_: Annotated[UsageLimit, Depends(dep)]) -> dict[str, str]:
            return {"status": "created"}

        app.dependency_overrides[get_principal] = lambda: principal
        assert TestClient(app).post("/things").status_code == 429


class TestRequireFeature:
    @pytest.mark.unit
    def test_enabled_feature_passes(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal()))
        assert client.get("/analytics").status_code == 200

    @pytest.mark.unit
    def test_disabled_feature_is_403(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(features={})))
        resp = client.get("/analytics")
        assert resp.status_code == 403
        body = resp.json()
        assert body["error_code"] == "FEATURE_DISABLED"
        assert body["context"]["feature_key"] == "advanced_analytics"

    @pytest.mark.unit
    def test_super_admin_bypasses_plan(self, make_principal) -> None:
        client = TestClient(_make_app(make_principal(Role.SUPER_ADMIN, with_company=False)))
        assert client.get("/analytics").status_code == 200
