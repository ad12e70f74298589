"""Value objects read and written by resource-level access decisions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ProjectAccessRecord:
    """The parts of a project row an access decision needs.

    Attributes:
        id: Project id.
        company_id: Owning company.
        team_members: Profile ids assigned to the project team.
    """

    id: str
    company_id: str | None
    team_members: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BlockerAccessRecord:
    """The parts of a blocker row an access decision needs.

    Attributes:
        id: Blocker id.
        company_id: Owning company.
        project_id: Project the blocker belongs to, if any.
        created_by: Profile id of the reporter.
    """

    id: str
    company_id: str | None
    project_id: str | None = None
    created_by: str | None = None


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """A tenant-scoped audit record.

    Attributes:
        company_id: Company the action happened in (None for platform actions).
        user_id: Acting principal.
        action: Verb, e.g. "blocker.resolved".
        resource_type: Kind of resource touched.
        resource_id: Identifier of the resource.
        old_values: State before the change.
        new_values: State after the change.
        ip_address: Client address, when known.
        user_agent: Client user agent, when known.
    """

    company_id: str | None
    user_id: str
    action: str
    resource_type: str
    resource_id: str
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
