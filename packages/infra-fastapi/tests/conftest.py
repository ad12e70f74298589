"""Shared fixtures for infra-fastapi tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from sitegate.foundation.domain.company_value_objects import Company, SubscriptionPlan
from sitegate.foundation.domain.principal import Identity, Principal, Profile
from sitegate.foundation.domain.roles import Role

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def make_principal() -> Callable[..., Principal]:
    """Build principals in an active company on a small plan."""

    def build(
        role: Role | None = Role.FIELD_WORKER,
        *,
        status: str = "active",
        features: dict[str, Any] | None = None,
        limits: dict[str, Any] | None = None,
        with_company: bool = True,
    ) -> Principal:
        company = None
        if with_company:
            company = Company(
                id="company-a",
                name="Acme Builders",
                slug="acme",
                subscription_status=status,
                trial_ends_at=datetime.now(UTC) + timedelta(days=7),
                is_active=True,
                subscription_plan=SubscriptionPlan(
                    name="Pro",
                    features=features if features is not None else {"advanced_analytics": True},
                    limits=limits if limits is not None else {"max_projects": 2},
                ),
            )
        return Principal(
            identity=Identity(id="user-1"),
            profile=Profile(
                user_id="user-1",
                role=role,
                company_id="company-a" if with_company else None,
                company=company,
            ),
        )

    return build
