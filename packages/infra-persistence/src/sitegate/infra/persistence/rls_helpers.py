"""Reusable helpers for RLS migration operations.

Row-level security is defence in depth behind the Tenancy Filter, never a
replacement for it. Uses ``op.execute()`` with raw SQL because Alembic has
no native RLS support.

All SQL identifiers (table names, column names, policy names, cast types)
are validated against a strict allowlist pattern to prevent SQL injection.
"""

import re

from alembic import op

_IDENTIFIER_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


def _validate_identifier(name: str, label: str = "identifier") -> str:
    """Validate that a string is a safe SQL identifier.

    Raises:
        ValueError: If the identifier contains unsafe characters.
    """
    if not _IDENTIFIER_PATTERN.fullmatch(name):
        msg = (
            f"Invalid SQL {label}: {name!r}. "
            "Must match [a-z_][a-z0-9_]* (lowercase, no special characters)."
        )
        raise ValueError(msg)
    return name


def enable_rls(table_name: str, *, force: bool = False) -> None:
    """Enable Row-Level Security on a table.

    Args:
        table_name: PostgreSQL table name.
        force: If True, apply FORCE ROW LEVEL SECURITY (applies
               RLS even to table owners). Default False.
    """
    _validate_identifier(table_name, "table_name")
    op.execute(f"ALTER TABLE {table_name} ENABLE ROW LEVEL SECURITY")
    if force:
        op.execute(f"ALTER TABLE {table_name} FORCE ROW LEVEL SECURITY")


def disable_rls(table_name: str) -> None:
    _validate_identifier(table_name, "table_name")
    op.execute(f"ALTER TABLE {table_name} DISABLE ROW LEVEL SECURITY")


def create_company_isolation_policy(
    table_name: str,
    *,
    column: str = "company_id",
    cast_type: str | None = None,
    policy_name: str = "company_isolation_policy",
) -> None:
    """Create a company isolation RLS policy with a platform-operator bypass.

    Rows are visible when their tenant column equals
    ``app.current_company``, or when ``app.platform_operator`` is
    ``'true'``. Both variables are set per transaction by the tenant
    context handler.

    Args:
        table_name: PostgreSQL table name.
        column: Tenant key column (default: company_id).
        cast_type: PostgreSQL type to cast current_setting result to.
                   Use 'uuid' for UUID columns, None for text/varchar.
        policy_name: Policy name (default: company_isolation_policy).
    """
    _validate_identifier(table_name, "table_name")
    _validate_identifier(column, "column")
    _validate_identifier(policy_name, "policy_name")
    if cast_type is not None:
        _validate_identifier(cast_type, "cast_type")

    cast_expr = f"::{cast_type}" if cast_type else ""

    op.execute(f"""
        CREATE POLICY {policy_name} ON {table_name}
        FOR ALL
        USING (
            current_setting('app.platform_operator', true) = 'true'
            OR {column} = NULLIF(current_setting('app.current_company', true), ''){cast_expr}
        )
    """)


def drop_company_isolation_policy(
    table_name: str,
    *,
    policy_name: str = "company_isolation_policy",
) -> None:
    _validate_identifier(table_name, "table_name")
    _validate_identifier(policy_name, "policy_name")
    op.execute(f"DROP POLICY IF EXISTS {policy_name} ON {table_name}")
