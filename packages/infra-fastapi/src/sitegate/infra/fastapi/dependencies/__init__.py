"""FastAPI dependency factories for principal, permission, feature and limit checks."""

from sitegate.infra.fastapi.dependencies.entitlements import require_feature, require_usage_limit
from sitegate.infra.fastapi.dependencies.principal import (
    CurrentPrincipal,
    get_principal,
    require_permission,
)

__all__ = [
    "CurrentPrincipal",
    "get_principal",
    "require_feature",
    "require_permission",
    "require_usage_limit",
]
