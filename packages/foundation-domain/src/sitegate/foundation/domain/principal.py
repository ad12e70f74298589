"""Identity, Profile and Principal value objects.

Pure domain objects with no external dependencies. All are frozen so a
Principal is only ever replaced wholesale, never partially mutated.

* Identity: what the identity provider vouches for (opaque id + raw record).
* Profile: the durable ``user_profiles`` row with its embedded company.
* Principal: identity + profile, the unit every authorization decision reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sitegate.foundation.domain.company_value_objects import Company
from sitegate.foundation.domain.roles import Role, is_platform_operator

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated identity issued by the identity provider.

    Attributes:
        id: Provider subject identifier (``sub``); equals user_profiles.id.
        email: Email address, if the provider supplied one.
        raw: The provider's raw identity record or token claims.
    """

    id: str
    email: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Profile:
    """A user profile with its embedded company.

    ``role`` is None when the stored role is outside the Role enumeration.
    ``company_id`` is None only for platform operators; a non-operator
    profile without one is kept (not rejected) so the tenancy filter can
    fail fast on it instead of the data silently vanishing.

    Attributes:
        user_id: Profile id (same as the identity id).
        role: Parsed role or None.
        company_id: Owning company id.
        company: Embedded company with plan, if loaded.
        email: Contact email.
        full_name: Display name.
    """

    user_id: str
    role: Role | None
    company_id: str | None = None
    company: Company | None = None
    email: str | None = None
    full_name: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Profile:
        """Build a profile from a ``user_profiles`` row with nested company."""
        company_record = record.get("company")
        company_id = record.get("company_id")
        first = record.get("first_name") or ""
        last = record.get("last_name") or ""
        full_name = record.get("full_name") or " ".join(p for p in (first, last) if p) or None
        return cls(
            user_id=str(record["id"]),
            role=Role.parse(record.get("role")),
            company_id=str(company_id) if company_id is not None else None,
            company=Company.from_record(
                company_record if isinstance(company_record, dict) else None
            ),
            email=record.get("email"),
            full_name=full_name,
        )

    @property
    def is_platform_operator(self) -> bool:
        return is_platform_operator(self.role)


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated principal performing an operation.

    Attributes:
        identity: Provider identity.
        profile: Durable profile with company and plan.
    """

    identity: Identity
    profile: Profile

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def role(self) -> Role | None:
        return self.profile.role

    @property
    def company_id(self) -> str | None:
        return self.profile.company_id

    @property
    def company(self) -> Company | None:
        return self.profile.company

    @property
    def is_platform_operator(self) -> bool:
        """True for the top tier, which bypasses tenant scoping."""
        return self.profile.is_platform_operator
