"""
Potion API — Session Token Service
===================================

What:  Issues and verifies signed, expiring session tokens (JWT, HS256).
Why:   The token is the whole session: the server keeps no session state,
       so identity comes from a credential the client cannot forge.
How:   PyJWT signs `{id, name, iat, exp}` with the server secret. Expiry is
       checked against an injectable clock so tests can simulate time.
Who:   Built once by create_app() from the frozen Settings; used by the login
       route (issue) and the Auth Gate (verify).

Token validity:
    valid  ⇔  signature verifies with the server secret  AND  now < exp
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt

from potion_api.config import Settings
from potion_api.exceptions import TokenExpired, TokenMalformed

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionClaims:
    """Identity asserted by a verified session token."""

    id: str
    name: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Signs and verifies session tokens with a process-wide secret.

    The secret is taken from the Settings instance at construction and never
    from request data. The instance holds no mutable state, so it is safe to
    share between concurrent requests.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 86400,
        clock: Optional[Clock] = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl_seconds=settings.session_ttl_seconds,
            clock=clock,
        )

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, user_id: str, user_name: str) -> str:
        """
        Create a signed token asserting `{id: user_id, name: user_name}`.

        The token expires `ttl_seconds` (24h by default) after issuance.
        """
        issued_at = int(self._clock().timestamp())
        payload = {
            "id": str(user_id),
            "name": user_name,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify a token and return its claims.

        Raises:
            TokenExpired:   signature is valid but now >= exp
            TokenMalformed: bad signature, bad structure, or missing claims
        """
        try:
            # Time claims are checked below against self._clock, not by PyJWT
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "iat"],
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenMalformed(str(e)) from e

        user_id = payload.get("id")
        user_name = payload.get("name")
        if not isinstance(user_id, str) or not isinstance(user_name, str):
            raise TokenMalformed("Token is missing the identity claims")

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenMalformed("Token carries invalid timestamps") from e

        if self._clock() >= expires_at:
            raise TokenExpired(f"Token expired at {expires_at.isoformat()}")

        return SessionClaims(
            id=user_id,
            name=user_name,
            issued_at=issued_at,
            expires_at=expires_at,
        )
