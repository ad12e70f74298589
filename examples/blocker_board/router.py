"""Blocker Board REST API router.

Every read goes through the tenancy filter, every row-level check through
the access-decision service, and every create through the permission and
usage-limit dependencies. List endpoints apply the same row-level checks as
the single-row endpoints, so a field worker only lists rows on projects
whose team they belong to.
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI Depends() + Annotated requires runtime-evaluable annotations.

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from sitegate.foundation.application import (
    AccessDecisionService,
    Permission,
    UsageLimit,
    company_context_for,
    resolve_permissions,
)
from sitegate.foundation.domain import NotFoundError, Principal
from sitegate.infra.fastapi.dependencies import (
    CurrentPrincipal,
    require_feature,
    require_permission,
    require_usage_limit,
)
from sitegate.infra.persistence import SqlResourceStore

router = APIRouter(tags=["blocker-board"])


def get_store(request: Request) -> SqlResourceStore:
    return request.app.state.resource_store  # type: ignore[no-any-return]


def get_access(request: Request) -> AccessDecisionService:
    return request.app.state.access  # type: ignore[no-any-return]


Store = Annotated[SqlResourceStore, Depends(get_store)]
Access = Annotated[AccessDecisionService, Depends(get_access)]


async def _count_projects(request: Request, principal: Principal, limit_key: str) -> int:
    return await get_store(request).count_projects(principal)


# -- Request / Response models ------------------------------------------------


class CreateProjectRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    team_members: list[str] = Field(default_factory=list)
    company_id: str | None = None


class CreateBlockerRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    project_id: str | None = None
    company_id: str | None = None


class CompanyResponse(BaseModel):
    id: str
    name: str
    slug: str
    subscription_status: str
    plan: str | None


class MeResponse(BaseModel):
    user_id: str
    email: str | None
    role: str | None
    company: CompanyResponse | None
    permissions: dict[str, Any]


# -- Endpoints ----------------------------------------------------------------


@router.get("/me")
async def me(principal: CurrentPrincipal) -> MeResponse:
    """Describe the signed-in principal, its company and permission flags."""
    company = company_context_for(principal)
    return MeResponse(
        user_id=principal.id,
        email=principal.identity.email or principal.profile.email,
        role=str(principal.role) if principal.role is not None else None,
        company=CompanyResponse(
            id=company.company_id,
            name=company.company_name,
            slug=company.company_slug,
            subscription_status=company.subscription_status,
            plan=company.subscription_plan.name if company.subscription_plan else None,
        )
        if company is not None
        else None,
        permissions=resolve_permissions(principal).to_dict(),
    )


@router.get("/projects")
async def list_projects(
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """List the company projects the principal may access."""
    rows = await store.list_projects(principal, status=status)
    return [row for row in rows if await access.can_access_project(principal, row["id"])]


@router.post("/projects", status_code=201)
async def create_project(
    body: CreateProjectRequest,
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
    _: Annotated[None, Depends(require_permission(Permission.CREATE_PROJECTS))],
    usage: Annotated[
        UsageLimit, Depends(require_usage_limit("projects", usage_counter=_count_projects))
    ],
) -> dict[str, Any]:
    """Create a project, subject to role, subscription and plan limit."""
    project = await store.create_project(
        principal,
        name=body.name,
        team_members=body.team_members,
        company_id=body.company_id,
    )
    await access.log_audit_event(
        principal, "project.created", "project", project["id"], new_values={"name": body.name}
    )
    return project


@router.get("/projects/{project_id}/blockers")
async def list_project_blockers(
    project_id: str,
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
) -> list[dict[str, Any]]:
    """List a project's blockers; unknown and foreign projects are 404."""
    if not await access.can_access_project(principal, project_id):
        raise NotFoundError("project", project_id)
    return await store.list_blockers(principal, project_id=project_id)


@router.get("/blockers")
async def list_blockers(
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
) -> list[dict[str, Any]]:
    """List the company blockers the principal may access."""
    rows = await store.list_blockers(principal)
    return [row for row in rows if await access.can_access_blocker(principal, row["id"])]


@router.post("/blockers", status_code=201)
async def create_blocker(
    body: CreateBlockerRequest,
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
    _: Annotated[None, Depends(require_permission(Permission.CREATE_BLOCKERS))],
) -> dict[str, Any]:
    """Report a blocker, optionally against a project the principal can see."""
    if body.project_id is not None and not await access.can_access_project(
        principal, body.project_id
    ):
        raise NotFoundError("project", body.project_id)
    blocker = await store.create_blocker(
        principal,
        title=body.title,
        project_id=body.project_id,
        company_id=body.company_id,
    )
    await access.log_audit_event(
        principal, "blocker.created", "blocker", blocker["id"], new_values={"title": body.title}
    )
    return blocker


@router.post("/blockers/{blocker_id}/resolve")
async def resolve_blocker(
    blocker_id: str,
    principal: CurrentPrincipal,
    store: Store,
    access: Access,
    _: Annotated[None, Depends(require_permission(Permission.RESOLVE_BLOCKERS))],
) -> dict[str, str]:
    """Mark a blocker resolved and audit the status change."""
    if not await access.can_access_blocker(principal, blocker_id):
        raise NotFoundError("blocker", blocker_id)
    old_status, new_status = await store.set_blocker_status(principal, blocker_id, "resolved")
    await access.log_audit_event(
        principal,
        "blocker.resolved",
        "blocker",
        blocker_id,
        old_values={"status": old_status},
        new_values={"status": new_status},
    )
    return {"id": blocker_id, "status": new_status}


@router.get("/analytics")
async def analytics(
    principal: CurrentPrincipal,
    store: Store,
    _feature: Annotated[None, Depends(require_feature("advanced_analytics"))],
    _permission: Annotated[None, Depends(require_permission(Permission.VIEW_ANALYTICS))],
) -> dict[str, int]:
    """Blocker counts by status for the principal's company."""
    counts: dict[str, int] = {}
    for blocker in await store.list_blockers(principal):
        counts[blocker["status"]] = counts.get(blocker["status"], 0) + 1
    return {"projects": await store.count_projects(principal), **counts}
