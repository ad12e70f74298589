"""Session loading: from an authenticated identity to a Principal.

Two pieces live here:

* :class:`PrincipalResolver` turns an Identity into a Principal by fetching
  the profile (with embedded company and plan) from the profile store. It
  is shared by the client-side :class:`SessionLoader` and the HTTP
  middleware.
* :class:`SessionLoader` owns the current Principal of a long-lived client
  session and keeps it in step with the identity provider's sign-in and
  sign-out transitions.

Load versioning
---------------
Every ``load_context`` call takes a ticket from a monotonically increasing
counter. A sign-out also takes a ticket and invalidates every earlier load
for the identity being signed out (or every earlier load, when the sign-out
does not name an identity). A load commits only if its ticket is still
valid when it completes; among valid loads the last one to complete wins.

So a slow load for a signed-out user never resurrects them, while a
sign-out of the previous session does not discard a pending load for a
newly signed-in identity.
"""

from __future__ import annotations

import inspect
import itertools
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sitegate.foundation.domain.ports import AuthEvent
from sitegate.foundation.domain.principal import Principal

if TYPE_CHECKING:
    from collections.abc import Callable

    from sitegate.foundation.domain.company_value_objects import Company, SubscriptionPlan
    from sitegate.foundation.domain.ports import IdentityProviderPort, ProfileStorePort
    from sitegate.foundation.domain.principal import Identity, Profile

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    """Lifecycle of a SessionLoader."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Snapshot of the signed-in user for presentation code.

    Attributes:
        identity: Provider identity, or None when signed out.
        profile: Loaded profile, or None.
        company: The profile's company, or None.
        is_authenticated: True iff a complete Principal is loaded.
    """

    identity: Identity | None
    profile: Profile | None
    company: Company | None
    is_authenticated: bool


@dataclass(frozen=True, slots=True)
class CompanyContext:
    """Read-only company summary for presentation."""

    company_id: str
    company_name: str
    company_slug: str
    subscription_status: str
    subscription_plan: SubscriptionPlan | None


def company_context_for(principal: Principal | None) -> CompanyContext | None:
    """Summarize the principal's company, or None without one."""
    if principal is None or principal.company is None:
        return None
    company = principal.company
    return CompanyContext(
        company_id=company.id,
        company_name=company.name,
        company_slug=company.slug,
        subscription_status=company.subscription_status,
        subscription_plan=company.subscription_plan,
    )


class PrincipalResolver:
    """Resolves an Identity into a Principal via the profile store.

    Never raises: a store failure or a missing profile row yields None and
    is logged.

    Args:
        profile_store: Store that reads a profile with its company and plan.
    """

    def __init__(self, profile_store: ProfileStorePort) -> None:
        self._profile_store = profile_store

    async def resolve(self, identity: Identity) -> Principal | None:
        """Fetch the profile for ``identity`` and build the Principal.

        Args:
            identity: Authenticated identity from the provider.

        Returns:
            The Principal, or None if the profile cannot be loaded.
        """
        try:
            profile = await self._profile_store.fetch_profile(identity.id)
        except Exception:
            logger.exception("profile_fetch_failed", extra={"user_id": identity.id})
            return None

        if profile is None:
            logger.warning("profile_not_found", extra={"user_id": identity.id})
            return None

        if profile.role is None:
            logger.warning("profile_role_unknown", extra={"user_id": identity.id})
        if not profile.is_platform_operator and profile.company_id is None:
            # Kept so the tenancy filter fails loudly on first use.
            logger.warning(
                "profile_missing_company",
                extra={"user_id": identity.id, "role": profile.role},
            )

        return Principal(identity=identity, profile=profile)


class SessionLoader:
    """Owns the current Principal of a client session.

    The Principal is replaced wholesale on every successful load and emptied
    on sign-out or load failure; readers never observe a half-populated one.

    Args:
        identity_provider: Source of the live session and auth transitions.
        resolver: Builds Principals from identities.

    Example:
        >>> loader = SessionLoader(provider, PrincipalResolver(profile_store))
        >>> await loader.initialize()
        >>> user = loader.get_current_user()
    """

    def __init__(
        self,
        identity_provider: IdentityProviderPort,
        resolver: PrincipalResolver,
    ) -> None:
        self._provider = identity_provider
        self._resolver = resolver
        self._principal: Principal | None = None
        self._state = SessionState.UNINITIALIZED
        self._tickets = itertools.count(1)
        self._invalid_through_all = 0
        self._invalid_through: dict[str, int] = {}
        self._pending_loads = 0
        self._callbacks: list[Callable[[AuthEvent, Principal | None], Any]] = []
        self._provider_unsubscribe: Callable[[], None] | None = None

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def state(self) -> SessionState:
        return self._state

    async def initialize(self) -> bool:
        """Subscribe to the provider and load the live session, if any.

        Subscribes only once, even when called again.

        Returns:
            False if the provider or profile load failed, else True.
        """
        if self._provider_unsubscribe is None:
            self._provider_unsubscribe = self._provider.on_auth_state_change(
                self.handle_auth_event
            )

        self._state = SessionState.LOADING
        try:
            identity = await self._provider.get_session()
        except Exception:
            logger.exception("session_initialize_failed")
            self._settle()
            return False

        if identity is None:
            logger.debug("session_initialize_no_session")
            self._settle()
            return True

        return await self.load_context(identity)

    async def load_context(self, identity: Identity) -> bool:
        """Resolve ``identity`` and replace the current Principal.

        Args:
            identity: The identity to load.

        Returns:
            True if a Principal was committed, False on failure or when the
            load was superseded by a sign-out.
        """
        ticket = next(self._tickets)
        self._pending_loads += 1
        self._state = SessionState.LOADING
        try:
            principal = await self._resolver.resolve(identity)
        finally:
            self._pending_loads -= 1

        if not self._ticket_valid(ticket, identity.id):
            logger.info(
                "session_load_discarded",
                extra={"user_id": identity.id, "ticket": ticket},
            )
            self._settle()
            return False

        self._principal = principal
        self._settle()

        if principal is None:
            logger.warning("session_load_failed", extra={"user_id": identity.id})
            return False

        logger.info(
            "session_loaded",
            extra={
                "user_id": principal.id,
                "company_id": principal.company_id,
                "role": principal.role,
            },
        )
        return True

    def clear(self, identity: Identity | None = None) -> None:
        """Empty the Principal and invalidate in-flight loads.

        Args:
            identity: The identity being signed out. When given, only loads
                for that identity are invalidated and a Principal for a
                different identity is left in place. When None, everything
                is invalidated and emptied.
        """
        ticket = next(self._tickets)
        if identity is None:
            self._invalid_through_all = ticket
            self._invalid_through.clear()
            self._principal = None
        else:
            self._invalid_through[identity.id] = ticket
            if self._principal is not None and self._principal.id == identity.id:
                self._principal = None
        self._settle()
        logger.info(
            "session_cleared",
            extra={"user_id": identity.id if identity else None, "ticket": ticket},
        )

    async def handle_auth_event(self, event: AuthEvent, identity: Identity | None) -> None:
        """Apply an auth transition, then notify subscribers.

        Wired into the identity provider by :meth:`initialize`.
        """
        if event is AuthEvent.SIGNED_IN:
            if identity is None:
                logger.warning("auth_signed_in_without_identity")
            else:
                await self.load_context(identity)
        elif event is AuthEvent.SIGNED_OUT:
            self.clear(identity)
        else:
            logger.debug("auth_event_ignored", extra={"event": str(event)})
            return

        await self._notify(event)

    def on_auth_state_change(
        self,
        callback: Callable[[AuthEvent, Principal | None], Any],
    ) -> Callable[[], None]:
        """Subscribe to applied auth transitions.

        Callbacks receive the event and the Principal after the transition
        has been applied. They may be plain functions or coroutine
        functions.

        Returns:
            Callable that removes the subscription; calling it twice is a
            no-op.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def get_current_user(self) -> CurrentUser:
        principal = self._principal
        if principal is None:
            return CurrentUser(identity=None, profile=None, company=None, is_authenticated=False)
        return CurrentUser(
            identity=principal.identity,
            profile=principal.profile,
            company=principal.company,
            is_authenticated=True,
        )

    def company_context(self) -> CompanyContext | None:
        return company_context_for(self._principal)

    def close(self) -> None:
        """Detach from the identity provider."""
        if self._provider_unsubscribe is not None:
            self._provider_unsubscribe()
            self._provider_unsubscribe = None

    def _ticket_valid(self, ticket: int, user_id: str) -> bool:
        if ticket <= self._invalid_through_all:
            return False
        return ticket > self._invalid_through.get(user_id, 0)

    def _settle(self) -> None:
        if self._pending_loads == 0:
            self._state = SessionState.READY
            # Later loads draw higher tickets, so idle marks can never match.
            self._invalid_through.clear()

    async def _notify(self, event: AuthEvent) -> None:
        principal = self._principal
        for callback in list(self._callbacks):
            try:
                result = callback(event, principal)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "auth_state_callback_failed",
                    extra={"event": str(event)},
                )
