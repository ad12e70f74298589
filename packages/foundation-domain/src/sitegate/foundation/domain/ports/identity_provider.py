"""Port interfaces for the session/identity provider.

The identity provider is a capability, not a protocol: sitegate needs to ask
for the live session, to be told about sign-in/sign-out transitions, and (on
the server side) to turn a bearer token into an Identity.

Example:
    >>> from sitegate.foundation.domain.ports import IdentityProviderPort
    >>> async def current_identity(provider: IdentityProviderPort) -> str | None:
    ...     identity = await provider.get_session()
    ...     return identity.id if identity else None
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sitegate.foundation.domain.principal import Identity


class AuthEvent(StrEnum):
    """Authentication state transitions emitted by the identity provider."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@runtime_checkable
class IdentityProviderPort(Protocol):
    """Port for a client-side session provider (e.g. a hosted auth SDK)."""

    async def get_session(self) -> Identity | None:
        """Return the identity of the live session, or None when signed out."""
        ...

    def on_auth_state_change(
        self,
        listener: Callable[[AuthEvent, Identity | None], Awaitable[None]],
    ) -> Callable[[], None]:
        """Subscribe to auth transitions.

        Args:
            listener: Coroutine function called with the event kind and the
                identity it concerns (None if the provider does not say).

        Returns:
            Callable that removes the subscription.
        """
        ...


@runtime_checkable
class IdentityVerifierPort(Protocol):
    """Port for server-side token verification."""

    def verify(self, token: str) -> Identity:
        """Verify an access token and return the identity it asserts.

        Raises:
            AuthenticationError: If the token is missing, expired or invalid.
        """
        ...
