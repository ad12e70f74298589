"""Value objects for companies (tenants) and their subscription plans.

Immutable domain primitives built from store records. Construction never
raises on sparse records: absent fields fall back to the most restrictive
value so that missing data always reads as "deny".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

UNLIMITED = -1
"""Stored plan-limit value meaning "no limit"."""

UNLIMITED_ALIASES: frozenset[object] = frozenset({UNLIMITED, "unlimited"})


class SubscriptionStatus(StrEnum):
    """Known subscription states of a company.

    Unrecognised stored values are kept as raw strings on Company and
    treated as invalid by the subscription rules.
    """

    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


def is_unlimited(value: object) -> bool:
    """Check whether a plan limit value is the unlimited sentinel."""
    if isinstance(value, bool):
        return False
    try:
        return value in UNLIMITED_ALIASES
    except TypeError:
        return False


def parse_timestamp(value: object) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts datetimes and ISO 8601 strings (including a trailing ``Z``).
    Naive values are interpreted as UTC. Unparseable values yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class SubscriptionPlan:
    """A subscription plan's feature and limit maps.

    Attributes:
        name: Plan display name.
        features: feature key -> bool or numeric allowance.
        limits: limit key -> positive finite number, or UNLIMITED.
    """

    name: str
    features: Mapping[str, Any] = field(default_factory=dict)
    limits: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> SubscriptionPlan | None:
        """Build a plan from a store record; None stays None."""
        if not record:
            return None
        features = record.get("features")
        limits = record.get("limits")
        return cls(
            name=str(record.get("name") or ""),
            features=dict(features) if isinstance(features, dict) else {},
            limits=dict(limits) if isinstance(limits, dict) else {},
        )

    def feature_enabled(self, feature_key: str) -> bool:
        """True iff the feature is ``True`` or a number greater than zero."""
        value = self.features.get(feature_key)
        if value is True:
            return True
        if isinstance(value, bool):
            return False
        return isinstance(value, (int, float)) and value > 0


@dataclass(frozen=True, slots=True)
class Company:
    """A tenant organization as seen by the authorization layer.

    Attributes:
        id: Company identifier (the tenant key on every owned row).
        name: Display name.
        slug: URL-safe identifier.
        subscription_status: Raw status string (see SubscriptionStatus).
        trial_ends_at: End of the trial window (aware UTC), if any.
        is_active: False disables every entitlement.
        is_suspended: True disables every entitlement regardless of status.
        subscription_plan: Plan with feature/limit maps, if any.
    """

    id: str
    name: str = ""
    slug: str = ""
    subscription_status: str = ""
    trial_ends_at: datetime | None = None
    is_active: bool = False
    is_suspended: bool = False
    subscription_plan: SubscriptionPlan | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> Company | None:
        """Build a company from a store record.

        ``is_active`` defaults to False when the record omits it, so sparse
        data denies rather than grants.
        """
        if not record or record.get("id") is None:
            return None
        plan_record = record.get("subscription_plan")
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            slug=str(record.get("slug") or ""),
            subscription_status=str(record.get("subscription_status") or ""),
            trial_ends_at=parse_timestamp(record.get("trial_ends_at")),
            is_active=bool(record.get("is_active", False)),
            is_suspended=bool(record.get("is_suspended", False)),
            subscription_plan=SubscriptionPlan.from_record(
                plan_record if isinstance(plan_record, dict) else None
            ),
        )

    @property
    def status(self) -> SubscriptionStatus | None:
        """The status as an enum member, or None if unrecognised."""
        try:
            return SubscriptionStatus(self.subscription_status)
        except ValueError:
            return None
