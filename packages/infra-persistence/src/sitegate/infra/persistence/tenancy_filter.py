"""Tenancy Filter: the mandatory company constraint on tenant queries.

Every query a non-operator principal issues against a tenant-owned table
goes through :func:`scope_query`, which appends
``WHERE <table>.company_id = :principal_company``. Platform operators get
the query back unchanged.

A principal that should be scoped but cannot be (no principal, no company
id, no resolvable target table) raises :class:`TenancyConfigurationError`.
That error is never caught here: running the query unscoped would leak
other tenants' rows.

Example:
    >>> from sqlalchemy import select
    >>> from sitegate.infra.persistence.tables import projects
    >>> stmt = scope_query(select(projects), principal)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import Delete, Select, Update
from sqlalchemy.sql.selectable import Join

from sitegate.foundation.domain.exceptions import TenancyConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.sql.selectable import FromClause

    from sitegate.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)

StatementT = TypeVar("StatementT", Select[Any], Update, Delete)


class TenancySettings(BaseSettings):
    """Tenancy configuration from environment variables.

    - TENANCY_COMPANY_COLUMN: Tenant key column name (default: company_id)
    - TENANCY_APPLY_RLS_CONTEXT: Propagate the principal to PostgreSQL
      session variables for RLS policies (default: true)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    company_column: str = Field(default="company_id", description="Tenant key column")
    apply_rls_context: bool = Field(
        default=True, description="Set PostgreSQL RLS session variables per transaction"
    )


@lru_cache(maxsize=1)
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings. Call ``cache_clear()`` in tests."""
    return TenancySettings()


def require_company_id(principal: Principal | None) -> str | None:
    """Return the company id a principal's queries must be scoped to.

    Returns:
        The company id, or None for platform operators (no scoping).

    Raises:
        TenancyConfigurationError: If there is no principal, or a
            non-operator principal has no company id.
    """
    if principal is None:
        raise TenancyConfigurationError("No principal available to scope tenant query")
    if principal.is_platform_operator:
        return None
    if not principal.company_id:
        logger.error(
            "tenancy_scope_missing_company",
            extra={"user_id": principal.id, "role": principal.role},
        )
        raise TenancyConfigurationError(
            "No company context available",
            user_id=principal.id,
            role=principal.role,
        )
    return principal.company_id


def scope_query(
    query: StatementT,
    principal: Principal | None,
    *,
    table: FromClause | None = None,
    column: str | None = None,
) -> StatementT:
    """Constrain a statement to the principal's company.

    Args:
        query: A ``Select``, ``Update`` or ``Delete`` statement.
        principal: The acting principal.
        table: Table (or alias) carrying the tenant column. Required when
            the statement selects from a join or several tables.
        column: Tenant column name (defaults to TenancySettings).

    Returns:
        The scoped statement; the same statement for platform operators.

    Raises:
        TenancyConfigurationError: If the principal cannot be scoped, the
            target table is ambiguous, or it lacks the tenant column.
    """
    company_id = require_company_id(principal)
    if company_id is None:
        return query

    column_name = column or get_tenancy_settings().company_column
    target = table if table is not None else _target_table(query)
    if column_name not in target.c:
        raise TenancyConfigurationError(
            "Target table has no tenant column",
            table=getattr(target, "name", str(target)),
            column=column_name,
        )
    return query.where(target.c[column_name] == company_id)


def find_foreign_rows(
    rows: Iterable[Any],
    principal: Principal | None,
    *,
    column: str | None = None,
) -> list[Any]:
    """Return the rows that do not belong to the principal's company.

    Isolation check for tests and operational audits: for a correctly
    scoped result set this is always empty. Platform operators have no
    foreign rows.

    Rows may be mappings, SQLAlchemy ``Row`` objects, or objects with a
    company id attribute.
    """
    company_id = require_company_id(principal)
    if company_id is None:
        return []
    column_name = column or get_tenancy_settings().company_column
    return [row for row in rows if _row_company(row, column_name) != company_id]


def _target_table(query: Select[Any] | Update | Delete) -> FromClause:
    if isinstance(query, (Update, Delete)):
        return query.table
    froms = query.get_final_froms()
    if len(froms) != 1 or isinstance(froms[0], Join):
        raise TenancyConfigurationError(
            "Cannot determine tenant table for query; pass table= explicitly",
            from_count=len(froms),
        )
    return froms[0]


def _row_company(row: Any, column_name: str) -> str | None:
    if isinstance(row, Mapping):
        value = row.get(column_name)
    elif hasattr(row, "_mapping"):
        value = row._mapping.get(column_name)
    else:
        value = getattr(row, column_name, None)
    return str(value) if value is not None else None
