"""Sitegate Infra FastAPI -- app factory, RFC 7807 errors, and authorization dependencies."""

from sitegate.infra.fastapi.app_factory import create_app
from sitegate.infra.fastapi.dependencies import (
    CurrentPrincipal,
    get_principal,
    require_feature,
    require_permission,
    require_usage_limit,
)
from sitegate.infra.fastapi.error_handlers import ProblemDetail, register_exception_handlers
from sitegate.infra.fastapi.lifespan import LifespanHook, compose_lifespan
from sitegate.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "CurrentPrincipal",
    "LifespanHook",
    "ProblemDetail",
    "compose_lifespan",
    "create_app",
    "get_principal",
    "register_exception_handlers",
    "require_feature",
    "require_permission",
    "require_usage_limit",
]
