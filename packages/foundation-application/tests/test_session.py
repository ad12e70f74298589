"""Unit tests for sitegate.foundation.application.session."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest

from sitegate.foundation.application.session import (
    CurrentUser,
    PrincipalResolver,
    SessionLoader,
    SessionState,
    company_context_for,
)
from sitegate.foundation.domain.company_value_objects import Company, SubscriptionPlan
from sitegate.foundation.domain.ports import AuthEvent
from sitegate.foundation.domain.principal import Identity, Principal, Profile
from sitegate.foundation.domain.roles import Role

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


def _profile(user_id: str, company_id: str | None = "c-1", role: Role = Role.SUPERVISOR) -> Profile:
    company = (
        Company(
            id=company_id,
            name="Acme",
            slug="acme",
            subscription_status="active",
            is_active=True,
            subscription_plan=SubscriptionPlan(name="Pro"),
        )
        if company_id
        else None
    )
    return Profile(user_id=user_id, role=role, company_id=company_id, company=company)


class _FakeProvider:
    """In-memory identity provider."""

    def __init__(self, identity: Identity | None = None) -> None:
        self.identity = identity
        self.listeners: list[Callable[[AuthEvent, Identity | None], Awaitable[None]]] = []

    async def get_session(self) -> Identity | None:
        return self.identity

    def on_auth_state_change(
        self,
        listener: Callable[[AuthEvent, Identity | None], Awaitable[None]],
    ) -> Callable[[], None]:
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    async def emit(self, event: AuthEvent, identity: Identity | None) -> None:
        for listener in list(self.listeners):
            await listener(event, identity)


class _GatedProfileStore:
    """Profile store whose fetches block until released per user."""

    def __init__(self, profiles: dict[str, Profile]) -> None:
        self.profiles = profiles
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, user_id: str) -> asyncio.Event:
        return self.gates.setdefault(user_id, asyncio.Event())

    async def fetch_profile(self, user_id: str) -> Profile | None:
        if user_id in self.gates:
            await self.gates[user_id].wait()
        return self.profiles.get(user_id)


def _loader(
    profiles: dict[str, Profile] | None = None,
    identity: Identity | None = None,
) -> tuple[SessionLoader, _FakeProvider, _GatedProfileStore]:
    store = _GatedProfileStore(profiles or {})
    provider = _FakeProvider(identity)
    return SessionLoader(provider, PrincipalResolver(store)), provider, store


class TestPrincipalResolver:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resolves_principal(self) -> None:
        store = MagicMock()
        store.fetch_profile = AsyncMock(return_value=_profile("u-1"))
        principal = await PrincipalResolver(store).resolve(Identity(id="u-1"))
        assert principal is not None
        assert principal.company_id == "c-1"
        store.fetch_profile.assert_awaited_once_with("u-1")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_profile(self) -> None:
        store = MagicMock()
        store.fetch_profile = AsyncMock(return_value=None)
        assert await PrincipalResolver(store).resolve(Identity(id="u-1")) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_store_failure_yields_none(self) -> None:
        store = MagicMock()
        store.fetch_profile = AsyncMock(side_effect=ConnectionError("db down"))
        assert await PrincipalResolver(store).resolve(Identity(id="u-1")) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_profile_without_company_is_kept(self) -> None:
        store = MagicMock()
        store.fetch_profile = AsyncMock(return_value=_profile("u-1", company_id=None))
        principal = await PrincipalResolver(store).resolve(Identity(id="u-1"))
        assert principal is not None
        assert principal.company_id is None


class TestSessionLoaderInitialize:
    @pytest.mark.unit
    def test_starts_uninitialized(self) -> None:
        loader, _, _ = _loader()
        assert loader.state is SessionState.UNINITIALIZED
        assert loader.principal is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_loads_live_session(self) -> None:
        loader, provider, _ = _loader({"u-1": _profile("u-1")}, Identity(id="u-1"))
        assert await loader.initialize()
        assert loader.state is SessionState.READY
        assert loader.principal is not None
        assert loader.principal.id == "u-1"
        assert len(provider.listeners) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_session(self) -> None:
        loader, _, _ = _loader()
        assert await loader.initialize()
        assert loader.state is SessionState.READY
        assert loader.principal is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_subscribes_once(self) -> None:
        loader, provider, _ = _loader()
        await loader.initialize()
        await loader.initialize()
        assert len(provider.listeners) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_provider_failure(self) -> None:
        provider = MagicMock()
        provider.on_auth_state_change = MagicMock(return_value=lambda: None)
        provider.get_session = AsyncMock(side_effect=RuntimeError("network"))
        loader = SessionLoader(provider, PrincipalResolver(_GatedProfileStore({})))
        assert not await loader.initialize()
        assert loader.state is SessionState.READY
        assert loader.principal is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_close_unsubscribes(self) -> None:
        loader, provider, _ = _loader()
        await loader.initialize()
        loader.close()
        assert provider.listeners == []


class TestSessionLoaderLoad:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_load_empties_principal(self) -> None:
        loader, _, _ = _loader({"u-1": _profile("u-1")})
        assert await loader.load_context(Identity(id="u-1"))
        assert not await loader.load_context(Identity(id="u-missing"))
        assert loader.principal is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_state_loading_while_pending(self) -> None:
        loader, _, store = _loader({"u-1": _profile("u-1")})
        gate = store.gate("u-1")
        task = asyncio.create_task(loader.load_context(Identity(id="u-1")))
        await asyncio.sleep(0)
        assert loader.state is SessionState.LOADING
        gate.set()
        assert await task
        assert loader.state is SessionState.READY

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_last_completed_load_wins(self) -> None:
        loader, _, store = _loader({"u-1": _profile("u-1"), "u-2": _profile("u-2")})
        gate_1 = store.gate("u-1")
        gate_2 = store.gate("u-2")
        first = asyncio.create_task(loader.load_context(Identity(id="u-1")))
        second = asyncio.create_task(loader.load_context(Identity(id="u-2")))
        await asyncio.sleep(0)
        gate_2.set()
        await second
        gate_1.set()
        await first
        assert loader.principal is not None
        assert loader.principal.id == "u-1"


class TestSessionLoaderSignOut:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_clear_empties_principal(self) -> None:
        loader, _, _ = _loader({"u-1": _profile("u-1")})
        await loader.load_context(Identity(id="u-1"))
        loader.clear()
        assert loader.principal is None
        assert loader.get_current_user() == CurrentUser(None, None, None, False)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_load_does_not_resurrect_signed_out_user(self) -> None:
        loader, _, store = _loader({"u-1": _profile("u-1")})
        gate = store.gate("u-1")
        task = asyncio.create_task(loader.load_context(Identity(id="u-1")))
        await asyncio.sleep(0)
        loader.clear(Identity(id="u-1"))
        gate.set()
        assert not await task
        assert loader.principal is None
        assert loader.state is SessionState.READY

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_anonymous_sign_out_discards_every_pending_load(self) -> None:
        loader, _, store = _loader({"u-1": _profile("u-1")})
        gate = store.gate("u-1")
        task = asyncio.create_task(loader.load_context(Identity(id="u-1")))
        await asyncio.sleep(0)
        loader.clear()
        gate.set()
        assert not await task
        assert loader.principal is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sign_out_of_previous_user_keeps_pending_new_user(self) -> None:
        loader, provider, store = _loader(
            {"u-old": _profile("u-old"), "u-new": _profile("u-new", company_id="c-2")},
            Identity(id="u-old"),
        )
        await loader.initialize()
        gate = store.gate("u-new")

        sign_in = asyncio.create_task(provider.emit(AuthEvent.SIGNED_IN, Identity(id="u-new")))
        await asyncio.sleep(0)
        await provider.emit(AuthEvent.SIGNED_OUT, Identity(id="u-old"))
        gate.set()
        await sign_in

        assert loader.principal is not None
        assert loader.principal.id == "u-new"
        assert loader.principal.company_id == "c-2"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sign_out_of_other_identity_keeps_current(self) -> None:
        loader, _, _ = _loader({"u-1": _profile("u-1")})
        await loader.load_context(Identity(id="u-1"))
        loader.clear(Identity(id="u-other"))
        assert loader.principal is not None

    @pytest.mark.unit
    def test_idle_sign_outs_leave_no_marks(self) -> None:
        loader, _, _ = _loader()
        for n in range(100):
            loader.clear(Identity(id=f"u-{n}"))
        assert loader._invalid_through == {}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_marks_dropped_once_pending_loads_settle(self) -> None:
        loader, _, store = _loader({"u-1": _profile("u-1")})
        gate = store.gate("u-1")
        task = asyncio.create_task(loader.load_context(Identity(id="u-1")))
        await asyncio.sleep(0)
        loader.clear(Identity(id="u-1"))
        assert "u-1" in loader._invalid_through

        gate.set()
        assert not await task
        assert loader._invalid_through == {}
        assert await loader.load_context(Identity(id="u-1"))
        assert loader.principal is not None


class TestSessionLoaderCallbacks:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_callbacks_see_applied_transition(self) -> None:
        loader, provider, _ = _loader({"u-1": _profile("u-1")})
        await loader.initialize()
        seen: list[tuple[AuthEvent, str | None]] = []

        async def on_change(event: AuthEvent, principal: Principal | None) -> None:
            seen.append((event, principal.id if principal else None))

        loader.on_auth_state_change(on_change)
        await provider.emit(AuthEvent.SIGNED_IN, Identity(id="u-1"))
        await provider.emit(AuthEvent.SIGNED_OUT, Identity(id="u-1"))
        assert seen == [(AuthEvent.SIGNED_IN, "u-1"), (AuthEvent.SIGNED_OUT, None)]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_callback_does_not_block_others(self) -> None:
        loader, provider, _ = _loader()
        await loader.initialize()
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock(return_value=None)
        loader.on_auth_state_change(failing)
        loader.on_auth_state_change(healthy)
        await provider.emit(AuthEvent.SIGNED_OUT, None)
        failing.assert_called_once()
        healthy.assert_called_once_with(AuthEvent.SIGNED_OUT, None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        loader, provider, _ = _loader()
        await loader.initialize()
        callback = MagicMock(return_value=None)
        unsubscribe = loader.on_auth_state_change(callback)
        unsubscribe()
        unsubscribe()
        await provider.emit(AuthEvent.SIGNED_OUT, None)
        callback.assert_not_called()


class TestCurrentUser:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_snapshot(self) -> None:
        loader, _, _ = _loader({"u-1": _profile("u-1")})
        await loader.load_context(Identity(id="u-1", email="sam@acme.test"))
        user = loader.get_current_user()
        assert user.is_authenticated
        assert user.identity is not None
        assert user.identity.email == "sam@acme.test"
        assert user.company is not None
        assert user.company.id == "c-1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_company_context(self) -> None:
        loader, _, _ = _loader({"u-1": _profile("u-1")})
        assert loader.company_context() is None
        await loader.load_context(Identity(id="u-1"))
        ctx = loader.company_context()
        assert ctx is not None
        assert ctx.company_name == "Acme"
        assert ctx.company_slug == "acme"
        assert ctx.subscription_status == "active"

    @pytest.mark.unit
    def test_company_context_for_operator_without_company(self) -> None:
        principal = Principal(
            Identity(id="op"), Profile(user_id="op", role=Role.SUPER_ADMIN)
        )
        assert company_context_for(principal) is None
