"""Sitegate Infra Auth -- JWT verification and principal authentication middleware."""

from sitegate.infra.auth.jwt_verifier import JWTIdentityVerifier
from sitegate.infra.auth.middleware import PrincipalAuthMiddleware
from sitegate.infra.auth.settings import AuthSettings, get_auth_settings

__all__ = [
    "AuthSettings",
    "JWTIdentityVerifier",
    "PrincipalAuthMiddleware",
    "get_auth_settings",
]
