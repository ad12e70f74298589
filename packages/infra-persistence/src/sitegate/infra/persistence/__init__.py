"""Sitegate Infra Persistence -- schema, tenancy filter, SQL stores, RLS helpers."""

from sitegate.infra.persistence.audit_repository import SqlAuditSink
from sitegate.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
)
from sitegate.infra.persistence.lifespan import persistence_lifespan
from sitegate.infra.persistence.profile_repository import SqlProfileStore
from sitegate.infra.persistence.resource_repository import SqlResourceStore
from sitegate.infra.persistence.tables import metadata
from sitegate.infra.persistence.tenancy_filter import (
    TenancySettings,
    find_foreign_rows,
    get_tenancy_settings,
    require_company_id,
    scope_query,
)
from sitegate.infra.persistence.tenant_context import register_tenant_context_handler

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "SqlAuditSink",
    "SqlProfileStore",
    "SqlResourceStore",
    "TenancySettings",
    "find_foreign_rows",
    "get_database_manager",
    "get_tenancy_settings",
    "metadata",
    "persistence_lifespan",
    "register_tenant_context_handler",
    "require_company_id",
    "scope_query",
]
