"""Port interfaces for the tenant-scoped relational store.

Adapters (SQL, hosted REST backends, in-memory fakes) live in
infrastructure packages. Fetch methods return None for a missing row and
raise on store failure; the application layer turns failures into denials.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sitegate.foundation.domain.access_value_objects import (
        AuditEntry,
        BlockerAccessRecord,
        ProjectAccessRecord,
    )
    from sitegate.foundation.domain.principal import Profile


@runtime_checkable
class ProfileStorePort(Protocol):
    """Reads a profile together with its company and subscription plan."""

    async def fetch_profile(self, user_id: str) -> Profile | None:
        """Fetch the profile for an identity id.

        Returns:
            Profile with embedded company and plan, or None if no row exists.
        """
        ...


@runtime_checkable
class ResourceStorePort(Protocol):
    """Row-fetch-by-id for resources that carry access metadata."""

    async def get_project(self, project_id: str) -> ProjectAccessRecord | None:
        """Fetch company id and team members of a project."""
        ...

    async def get_blocker(self, blocker_id: str) -> BlockerAccessRecord | None:
        """Fetch company id, project id and reporter of a blocker."""
        ...


@runtime_checkable
class AuditSinkPort(Protocol):
    """Destination for audit records."""

    async def record(self, entry: AuditEntry) -> None:
        """Persist an audit entry. May raise on failure."""
        ...
