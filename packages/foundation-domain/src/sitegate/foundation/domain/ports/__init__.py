"""Domain port interfaces for hexagonal architecture.

Ports define the interfaces the authorization layer uses to reach the
identity provider and the relational store. Implementations (adapters)
live in infrastructure packages.
"""

from sitegate.foundation.domain.ports.identity_provider import (
    AuthEvent,
    IdentityProviderPort,
    IdentityVerifierPort,
)
from sitegate.foundation.domain.ports.stores import (
    AuditSinkPort,
    ProfileStorePort,
    ResourceStorePort,
)

__all__ = [
    "AuditSinkPort",
    "AuthEvent",
    "IdentityProviderPort",
    "IdentityVerifierPort",
    "ProfileStorePort",
    "ResourceStorePort",
]
