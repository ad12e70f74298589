"""Sitegate Foundation Domain -- pure Python authorization primitives.

Roles and their ranking, company/plan value objects, subscription validity
rules, identity/profile/principal value objects, the exception hierarchy,
and port interfaces. No I/O.
"""

from sitegate.foundation.domain.access_value_objects import (
    AuditEntry,
    BlockerAccessRecord,
    ProjectAccessRecord,
)
from sitegate.foundation.domain.company_value_objects import (
    UNLIMITED,
    Company,
    SubscriptionPlan,
    SubscriptionStatus,
    is_unlimited,
)
from sitegate.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    FeatureDisabledError,
    NotFoundError,
    TenancyConfigurationError,
    UsageLimitExceededError,
)
from sitegate.foundation.domain.ports import (
    AuditSinkPort,
    AuthEvent,
    IdentityProviderPort,
    IdentityVerifierPort,
    ProfileStorePort,
    ResourceStorePort,
)
from sitegate.foundation.domain.principal import Identity, Principal, Profile
from sitegate.foundation.domain.roles import (
    ROLE_RANKS,
    Role,
    has_role_at_least,
    is_platform_operator,
    role_rank,
)
from sitegate.foundation.domain.subscription import (
    SubscriptionVerdict,
    validate_subscription,
)

__all__ = [
    "ROLE_RANKS",
    "UNLIMITED",
    "AuditEntry",
    "AuditSinkPort",
    "AuthEvent",
    "AuthenticationError",
    "AuthorizationError",
    "BlockerAccessRecord",
    "Company",
    "DomainError",
    "FeatureDisabledError",
    "Identity",
    "IdentityProviderPort",
    "IdentityVerifierPort",
    "NotFoundError",
    "Principal",
    "Profile",
    "ProfileStorePort",
    "ProjectAccessRecord",
    "ResourceStorePort",
    "Role",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "SubscriptionVerdict",
    "TenancyConfigurationError",
    "UsageLimitExceededError",
    "has_role_at_least",
    "is_platform_operator",
    "is_unlimited",
    "role_rank",
    "validate_subscription",
]
