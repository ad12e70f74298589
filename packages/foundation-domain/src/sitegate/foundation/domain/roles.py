"""Role hierarchy for company principals.

Roles form a closed, totally ordered enumeration. Every role comparison in
sitegate goes through :func:`has_role_at_least`; nothing else compares role
strings.

Ranking (highest first)::

    super_admin (100) > company_owner (80) > company_admin (60)
        > project_manager (50) > supervisor (40) > field_worker (20)

Anything outside the enumeration ranks 0, so a malformed role stored in a
profile never grants access.
"""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType


class Role(StrEnum):
    """Principal role within the platform.

    Uses StrEnum so values compare equal to the strings stored in
    ``user_profiles.role``.
    """

    SUPER_ADMIN = "super_admin"
    COMPANY_OWNER = "company_owner"
    COMPANY_ADMIN = "company_admin"
    PROJECT_MANAGER = "project_manager"
    SUPERVISOR = "supervisor"
    FIELD_WORKER = "field_worker"

    @classmethod
    def parse(cls, value: object) -> Role | None:
        """Parse a stored role value, returning None for anything unknown."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


ROLE_RANKS: MappingProxyType[Role, int] = MappingProxyType(
    {
        Role.SUPER_ADMIN: 100,
        Role.COMPANY_OWNER: 80,
        Role.COMPANY_ADMIN: 60,
        Role.PROJECT_MANAGER: 50,
        Role.SUPERVISOR: 40,
        Role.FIELD_WORKER: 20,
    }
)

UNKNOWN_ROLE_RANK = 0

PLATFORM_OPERATOR_ROLE = Role.SUPER_ADMIN


def role_rank(role: Role | str | None) -> int:
    """Return the numeric privilege rank of a role.

    Args:
        role: A Role, a raw role string, or None.

    Returns:
        The rank from ROLE_RANKS, or 0 for unknown/absent roles.
    """
    parsed = Role.parse(role)
    if parsed is None:
        return UNKNOWN_ROLE_RANK
    return ROLE_RANKS[parsed]


def has_role_at_least(actual: Role | str | None, required: Role | str | None) -> bool:
    """Check whether ``actual`` is at least as privileged as ``required``.

    An unknown actual role ranks 0 and therefore never satisfies a known
    requirement.

    Args:
        actual: The principal's role.
        required: The minimum role an operation needs.

    Returns:
        True if rank(actual) >= rank(required).
    """
    return role_rank(actual) >= role_rank(required)


def is_platform_operator(role: Role | str | None) -> bool:
    """Check whether a role is the top tier (platform operations staff)."""
    return Role.parse(role) is PLATFORM_OPERATOR_ROLE
