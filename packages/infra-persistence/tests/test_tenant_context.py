"""Unit tests for sitegate.infra.persistence.tenant_context."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import Session

from sitegate.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from sitegate.foundation.domain.principal import Identity, Principal, Profile
from sitegate.foundation.domain.roles import Role
from sitegate.infra.persistence.tenant_context import (
    _set_company_context_on_begin,
    register_tenant_context_handler,
)


def _connection(dialect: str = "postgresql") -> MagicMock:
    connection = MagicMock()
    connection.dialect.name = dialect
    return connection


def _principal(role: Role, company_id: str | None) -> Principal:
    return Principal(Identity(id="u-1"), Profile(user_id="u-1", role=role, company_id=company_id))


class TestSetCompanyContextOnBegin:
    @pytest.mark.unit
    def test_sets_company_for_tenant_principal(self) -> None:
        token = set_principal_context(_principal(Role.SUPERVISOR, "c-1"))
        try:
            connection = _connection()
            _set_company_context_on_begin(
                session=MagicMock(spec=Session),
                transaction=MagicMock(),
                connection=connection,
            )
            connection.execute.assert_called_once()
            call_args = connection.execute.call_args
            assert "set_config" in str(call_args[0][0])
            assert call_args[0][1] == {"company": "c-1", "operator": "false"}
        finally:
            clear_principal_context(token)

    @pytest.mark.unit
    def test_operator_flag(self) -> None:
        token = set_principal_context(_principal(Role.SUPER_ADMIN, None))
        try:
            connection = _connection()
            _set_company_context_on_begin(MagicMock(spec=Session), MagicMock(), connection)
            assert connection.execute.call_args[0][1] == {"company": "", "operator": "true"}
        finally:
            clear_principal_context(token)

    @pytest.mark.unit
    def test_skips_without_principal(self) -> None:
        connection = _connection()
        _set_company_context_on_begin(MagicMock(spec=Session), MagicMock(), connection)
        connection.execute.assert_not_called()

    @pytest.mark.unit
    def test_skips_other_dialects(self) -> None:
        token = set_principal_context(_principal(Role.SUPERVISOR, "c-1"))
        try:
            connection = _connection("sqlite")
            _set_company_context_on_begin(MagicMock(spec=Session), MagicMock(), connection)
            connection.execute.assert_not_called()
        finally:
            clear_principal_context(token)


class TestRegisterTenantContextHandler:
    @pytest.mark.unit
    def test_registers_event_listener(self) -> None:
        with patch("sitegate.infra.persistence.tenant_context.event") as mock_event:
            register_tenant_context_handler()
            mock_event.listen.assert_called_once_with(
                Session, "after_begin", _set_company_context_on_begin
            )
