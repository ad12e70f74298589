"""Authentication configuration settings.

Loaded from environment variables with AUTH_ prefix.

Environment Variables:
    AUTH_JWT_SECRET: Shared secret for HS256 access tokens (hidden from repr)
    AUTH_AUDIENCE: Expected JWT audience claim
    AUTH_ISSUER: Expected JWT issuer claim (empty disables the check)
    AUTH_ALGORITHMS: Accepted signing algorithms
    AUTH_LEEWAY_SECONDS: Clock skew tolerance for exp/nbf/iat
    AUTH_EXCLUDED_PATHS: Path prefixes served without authentication
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Authentication configuration loaded from environment variables.

    Defaults match a hosted Postgres-backed identity provider issuing
    HS256 tokens with ``aud=authenticated`` and the user id in ``sub``.

    Example:
        >>> settings = AuthSettings(jwt_secret="dev-secret")
        >>> settings.audience
        'authenticated'
        >>> settings.is_configured()
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(
        default="",
        repr=False,  # Security: never log the signing secret
        description="Shared secret used to verify access tokens",
    )
    audience: str = Field(
        default="authenticated",
        description="Expected JWT audience claim",
    )
    issuer: str = Field(
        default="",
        description="Expected JWT issuer claim; empty skips issuer validation",
    )
    algorithms: list[str] = Field(
        default_factory=lambda: ["HS256"],
        description="Accepted JWT signing algorithms",
    )
    leeway_seconds: int = Field(
        default=0,
        ge=0,
        le=300,
        description="Clock skew tolerance in seconds",
    )
    excluded_paths: tuple[str, ...] = Field(
        default=("/health", "/docs", "/openapi.json", "/redoc"),
        description="Path prefixes that skip authentication",
    )

    def is_configured(self) -> bool:
        """Check if a verification secret is set (non-throwing)."""
        return bool(self.jwt_secret)


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get singleton AuthSettings instance.

    Clear cache with ``get_auth_settings.cache_clear()`` for testing.
    """
    return AuthSettings()
