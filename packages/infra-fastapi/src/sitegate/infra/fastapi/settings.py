"""Settings for the sitegate FastAPI app factory.

Browser clients (the office dashboard and the site tablets) call the API
cross-origin, so the CORS defaults allow the bearer ``Authorization``
header and expose the headers sitegate's error responses carry.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Headers a browser client must be able to read off sitegate responses.
EXPOSED_HEADERS = (
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "WWW-Authenticate",
)


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class CORSSettings(BaseSettings):
    """Cross-origin policy.

    Environment variables use the ``CORS_`` prefix; list values may be
    given as comma-separated strings (``CORS_ALLOW_ORIGINS=https://a,https://b``).
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: ["Authorization", "Content-Type", "X-Request-ID"]
    )
    allow_credentials: bool = False
    expose_headers: list[str] = Field(default_factory=lambda: list(EXPOSED_HEADERS))

    @field_validator(
        "allow_origins", "allow_methods", "allow_headers", "expose_headers", mode="before"
    )
    @classmethod
    def _parse_lists(cls, value: Any) -> Any:
        return _split_csv(value)

    @model_validator(mode="after")
    def _no_credentials_with_any_origin(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "CORS allow_credentials requires explicit allow_origins, not '*'"
            raise ValueError(msg)
        return self


def _package_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("sitegate")
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """App factory settings (``APP_`` prefix, e.g. ``APP_TITLE``).

    Setting ``APP_DOCS_URL`` or ``APP_OPENAPI_URL`` to an empty value
    hides the interactive docs in production.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = "Sitegate API"
    version: str = Field(default_factory=_package_version)
    description: str = "Tenant-isolated, plan-aware construction site API."
    docs_url: str | None = "/docs"
    redoc_url: str | None = None
    openapi_url: str | None = "/openapi.json"
    debug: bool = False
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("docs_url", "redoc_url", "openapi_url", mode="before")
    @classmethod
    def _blank_disables(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
