"""
Authentication service.

- Signup validates the candidate, then inserts through the credential
  store's atomic insert-if-absent so concurrent duplicates cannot both win
- Passwords are stored only as bcrypt hashes
- Login mints a self-contained bearer token; nothing is kept server-side
"""

from __future__ import annotations

import re

from ..models.account import Account, SignupRequest, USERNAME_PATTERN
from ..models.token import TokenClaims
from ..stores.base import CredentialStore
from ..utils.exceptions import (
    DuplicateAccount,
    InvalidCredentials,
    StoreUnavailable,
    ValidationError,
)
from ..utils.logger import get_logger
from .passwords import hash_password, verify_password
from .tokens import TokenIssuer

logger = get_logger(__name__)

_username_matches = re.compile(USERNAME_PATTERN).match


class AuthService:
    """Signup, login and token authorization over a credential store"""

    def __init__(
        self,
        credentials: CredentialStore,
        tokens: TokenIssuer,
        bcrypt_rounds: int = 12,
    ) -> None:
        self.credentials = credentials
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def signup(self, candidate: SignupRequest) -> Account:
        """
        Create a new account.

        Raises:
            ValidationError: empty username/password or username outside [a-z0-9_]
            DuplicateAccount: username already taken
            StoreUnavailable: credential store unreachable
        """
        if not candidate.username or not candidate.password:
            raise ValidationError("Empty password or username")
        if not _username_matches(candidate.username):
            raise ValidationError(
                "Username may only contain lowercase letters, digits and underscore"
            )

        if self.credentials.find(candidate.username) is not None:
            logger.info("Signup rejected, user exists", username=candidate.username)
            raise DuplicateAccount(candidate.username)

        account = Account(
            username=candidate.username,
            password_hash=hash_password(candidate.password, rounds=self.bcrypt_rounds),
            age=candidate.age,
            gender=candidate.gender,
        )
        if not self.credentials.insert_if_absent(account):
            # Lost the race against a concurrent signup for the same name
            logger.info("Signup rejected, user created concurrently", username=account.username)
            raise DuplicateAccount(account.username)

        logger.info("User added", username=account.username)
        return account

    def login(self, username: str, password: str) -> str:
        """
        Verify credentials and return a signed bearer token.

        Every failure surfaces as InvalidCredentials; the cause is only logged.
        """
        try:
            account = self.credentials.find(username) if username else None
        except StoreUnavailable as e:
            logger.error("Login failed", username=username, reason="store_unavailable", error=str(e))
            raise InvalidCredentials() from e

        if account is None:
            logger.info("Login failed", username=username, reason="unknown_user")
            raise InvalidCredentials()
        if account.username != username or not verify_password(password, account.password_hash):
            logger.info("Login failed", username=username, reason="bad_password")
            raise InvalidCredentials()

        logger.info("Login succeeded", username=username)
        return self.tokens.mint(username)

    def authorize(self, token: str) -> str:
        """Return the username a valid token was issued to; raise InvalidToken otherwise."""
        claims: TokenClaims = self.tokens.verify(token)
        return claims.username
