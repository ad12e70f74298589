"""SQL-backed profile store.

Reads a ``user_profiles`` row joined with its company and subscription
plan. This lookup is what establishes tenancy for a principal, so it is
keyed by the identity id and is deliberately not tenant-scoped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from sitegate.foundation.domain.principal import Profile
from sitegate.infra.persistence.tables import companies, subscription_plans, user_profiles

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


class SqlProfileStore:
    """ProfileStorePort implementation over SQLAlchemy.

    Args:
        session_factory: Sync session factory; queries run in a worker thread.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def fetch_profile(self, user_id: str) -> Profile | None:
        return await asyncio.to_thread(self._fetch_profile_sync, user_id)

    def _fetch_profile_sync(self, user_id: str) -> Profile | None:
        stmt = (
            select(
                user_profiles,
                companies.c.name.label("company_name"),
                companies.c.slug.label("company_slug"),
                companies.c.subscription_status,
                companies.c.trial_ends_at,
                companies.c.is_active,
                companies.c.is_suspended,
                subscription_plans.c.name.label("plan_name"),
                subscription_plans.c.features,
                subscription_plans.c.limits,
            )
            .select_from(
                user_profiles.outerjoin(
                    companies, user_profiles.c.company_id == companies.c.id
                ).outerjoin(
                    subscription_plans,
                    companies.c.subscription_plan_id == subscription_plans.c.id,
                )
            )
            .where(user_profiles.c.id == user_id)
        )
        with self._session_factory() as session:
            row = session.execute(stmt).mappings().first()

        if row is None:
            return None

        logger.debug("profile_fetched", extra={"user_id": user_id})
        return Profile.from_record(_profile_record(row))


def _profile_record(row: Any) -> dict[str, Any]:
    plan = None
    if row["plan_name"] is not None:
        plan = {"name": row["plan_name"], "features": row["features"], "limits": row["limits"]}
    company = None
    if row["company_id"] is not None and row["company_name"] is not None:
        company = {
            "id": row["company_id"],
            "name": row["company_name"],
            "slug": row["company_slug"],
            "subscription_status": row["subscription_status"],
            "trial_ends_at": row["trial_ends_at"],
            "is_active": row["is_active"],
            "is_suspended": row["is_suspended"],
            "subscription_plan": plan,
        }
    return {
        "id": row["id"],
        "role": row["role"],
        "company_id": row["company_id"],
        "email": row["email"],
        "first_name": row["first_name"],
        "last_name": row["last_name"],
        "company": company,
    }
