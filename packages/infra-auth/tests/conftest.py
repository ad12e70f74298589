"""Shared fixtures for infra-auth tests."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

_SECRET = "test-signing-secret-with-enough-length"


@pytest.fixture
def jwt_secret() -> str:
    return _SECRET


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Mint HS256 access tokens shaped like the identity provider's."""

    def mint(
        sub: str | None = "user-1",
        *,
        secret: str = _SECRET,
        audience: str | None = "authenticated",
        expires_in: int = 3600,
        **extra: Any,
    ) -> str:
        claims: dict[str, Any] = {"exp": int(time.time()) + expires_in, **extra}
        if sub is not None:
            claims["sub"] = sub
        if audience is not None:
            claims["aud"] = audience
        return pyjwt.encode(claims, secret, algorithm="HS256")

    return mint
