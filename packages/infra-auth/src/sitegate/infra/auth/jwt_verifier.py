"""Access-token verification with PyJWT.

Turns a bearer token into an :class:`Identity`. The identity id is the
``sub`` claim, which equals ``user_profiles.id``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jwt as pyjwt

from sitegate.foundation.domain.exceptions import AuthenticationError
from sitegate.foundation.domain.principal import Identity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sitegate.infra.auth.settings import AuthSettings

logger = logging.getLogger(__name__)


class JWTIdentityVerifier:
    """IdentityVerifierPort implementation for shared-secret JWTs.

    Error mapping (``AuthenticationError.error_code``):
    - Expired token -> TOKEN_EXPIRED
    - Wrong issuer/audience, missing claim -> INVALID_CLAIMS
    - Bad signature -> INVALID_SIGNATURE
    - Anything else -> INVALID_TOKEN

    Args:
        secret: Verification key.
        audience: Expected ``aud`` claim (None skips the check).
        issuer: Expected ``iss`` claim (None or empty skips the check).
        algorithms: Accepted algorithms.
        leeway_seconds: Clock skew tolerance.
    """

    def __init__(
        self,
        secret: str,
        *,
        audience: str | None = "authenticated",
        issuer: str | None = None,
        algorithms: Sequence[str] = ("HS256",),
        leeway_seconds: int = 0,
    ) -> None:
        if not secret:
            raise ValueError("JWT verification secret must not be empty")
        self._secret = secret
        self._audience = audience or None
        self._issuer = issuer or None
        self._algorithms = list(algorithms)
        self._leeway = leeway_seconds

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> JWTIdentityVerifier:
        return cls(
            settings.jwt_secret,
            audience=settings.audience,
            issuer=settings.issuer,
            algorithms=settings.algorithms,
            leeway_seconds=settings.leeway_seconds,
        )

    def verify(self, token: str) -> Identity:
        """Verify ``token`` and return the identity it asserts.

        Raises:
            AuthenticationError: If the token is missing, expired or invalid.
        """
        if not token:
            raise AuthenticationError("Bearer token is empty", error_code="INVALID_FORMAT")

        required = ["exp", "sub"]
        if self._audience:
            required.append("aud")
        if self._issuer:
            required.append("iss")

        try:
            claims: dict[str, Any] = pyjwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": required, "verify_aud": self._audience is not None},
            )
        except pyjwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired", error_code="TOKEN_EXPIRED") from None
        except pyjwt.InvalidIssuerError:
            raise AuthenticationError("Invalid issuer claim", error_code="INVALID_CLAIMS") from None
        except pyjwt.InvalidAudienceError:
            raise AuthenticationError(
                "Invalid audience claim", error_code="INVALID_CLAIMS"
            ) from None
        except pyjwt.MissingRequiredClaimError as exc:
            raise AuthenticationError(
                f"Missing required claim: {exc.claim}", error_code="INVALID_CLAIMS"
            ) from None
        except pyjwt.InvalidSignatureError:
            raise AuthenticationError(
                "Token signature verification failed", error_code="INVALID_SIGNATURE"
            ) from None
        except pyjwt.DecodeError:
            raise AuthenticationError("Token is malformed", error_code="INVALID_TOKEN") from None
        except pyjwt.InvalidTokenError:
            raise AuthenticationError(
                "Token validation failed", error_code="INVALID_TOKEN"
            ) from None

        return _identity_from_claims(claims)


def _identity_from_claims(claims: dict[str, Any]) -> Identity:
    sub = claims.get("sub")
    if not sub or not isinstance(sub, str):
        raise AuthenticationError("JWT 'sub' claim is missing or invalid", error_code="INVALID_CLAIMS")
    email = claims.get("email")
    return Identity(id=sub, email=str(email) if email is not None else None, raw=claims)
