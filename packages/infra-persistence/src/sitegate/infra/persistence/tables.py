"""SQLAlchemy Core table definitions for the multi-tenant schema.

Every tenant-owned table carries ``company_id``; the Tenancy Filter scopes
queries on that column. ``subscription_plans`` and ``companies`` are the
tenancy roots and are not themselves tenant-scoped.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    func,
)

metadata = MetaData()

subscription_plans = Table(
    "subscription_plans",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("features", JSON, nullable=False, default=dict),
    Column("limits", JSON, nullable=False, default=dict),
)

companies = Table(
    "companies",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("slug", String(100), nullable=False, unique=True),
    Column("subscription_status", String(32), nullable=False, default="trial"),
    Column("trial_ends_at", DateTime(timezone=True), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_suspended", Boolean, nullable=False, default=False),
    Column("subscription_plan_id", String(36), ForeignKey("subscription_plans.id")),
)

user_profiles = Table(
    "user_profiles",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("company_id", String(36), ForeignKey("companies.id"), nullable=True, index=True),
    Column("role", String(32), nullable=False),
    Column("email", String(255)),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
)

projects = Table(
    "projects",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("company_id", String(36), ForeignKey("companies.id"), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("status", String(32), nullable=False, default="active"),
    Column("team_members", JSON, nullable=False, default=list),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

blockers = Table(
    "blockers",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("company_id", String(36), ForeignKey("companies.id"), nullable=False, index=True),
    Column("project_id", String(36), ForeignKey("projects.id"), nullable=True),
    Column("title", String(200), nullable=False),
    Column("status", String(32), nullable=False, default="open"),
    Column("created_by", String(36), ForeignKey("user_profiles.id"), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("company_id", String(36), nullable=True, index=True),
    Column("user_id", String(36), nullable=False),
    Column("action", String(100), nullable=False),
    Column("resource_type", String(50), nullable=False),
    Column("resource_id", String(64), nullable=False),
    Column("old_values", JSON, nullable=True),
    Column("new_values", JSON, nullable=True),
    Column("ip_address", String(64), nullable=True),
    Column("user_agent", String(512), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

TENANT_TABLES: tuple[Table, ...] = (user_profiles, projects, blockers, audit_logs)
