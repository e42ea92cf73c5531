"""Self-contained bearer tokens (HS256 JWT)"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from ..models.token import TokenClaims
from ..utils.exceptions import InvalidToken

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Mints and verifies tokens with a symmetric key held in settings.

    Nothing is persisted: a token is valid while its signature checks out
    and its exp claim is later than the issuer clock.
    """

    def __init__(
        self,
        signing_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Optional[Clock] = None,
    ):
        if not signing_key:
            raise ValueError("Token signing key is required")
        self._signing_key = signing_key
        self.algorithm = algorithm
        self.ttl = ttl
        self.clock = clock or utc_now

    def mint(self, username: str) -> str:
        issued_at = self.clock()
        payload = {
            "sub": username,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._signing_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Check signature, then expiry against this issuer's clock; raise InvalidToken otherwise"""
        if not token:
            raise InvalidToken("Missing token")
        try:
            payload = jwt.decode(
                token,
                self._signing_key,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "iat", "sub"],
                    # Time claims are checked below with self.clock
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}") from e

        try:
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidToken("Invalid token: malformed iat/exp") from e
        if expires_at <= self.clock():
            raise InvalidToken("Token expired")

        return TokenClaims(username=payload["sub"], issued_at=issued_at, expires_at=expires_at)
