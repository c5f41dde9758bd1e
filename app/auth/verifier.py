"""
Bearer token verification.

Order of checks:
1. Signature (tamper detection)
2. Expiry, issuer, audience, token type
3. Revocation list and the user record, bounded by a timeout

A token never outlives account deactivation or a password change.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Sequence

from app.auth.jwt import TokenPayload, decode_token
from app.auth.store import CredentialStore, TokenStore
from app.core.config import Settings
from app.core.exceptions import (
    InvalidToken,
    UserInactive,
    CredentialLookupTimeout,
)
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The user a verified token resolved to, plus the token's claims."""
    user: User
    token: TokenPayload

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role


class TokenVerifier:
    """Validates presented tokens and re-resolves their user on every call."""

    def __init__(
        self,
        keys: Sequence[str],
        algorithm: str = "HS256",
        issuer: str = "portfolio-api",
        audience: str = "portfolio-client",
        lookup_timeout: float = 5.0,
    ):
        self._keys: List[str] = [key for key in keys if key]
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.lookup_timeout = lookup_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            keys=settings.verification_keys,
            algorithm=settings.jwt_algorithm,
            issuer=settings.token_issuer,
            audience=settings.token_audience,
            lookup_timeout=settings.credential_lookup_timeout_seconds,
        )

    def decode(self, value: str) -> TokenPayload:
        """Check signature and claims only. No store access."""
        return decode_token(
            value,
            self._keys,
            algorithm=self.algorithm,
            issuer=self.issuer,
            audience=self.audience,
        )

    async def verify(
        self,
        value: str,
        credentials: CredentialStore,
        tokens: TokenStore,
    ) -> AuthenticatedIdentity:
        """
        Verify a presented token and resolve its user.

        Raises:
            InvalidToken: Tampered, malformed, revoked, orphaned or stale token
            ExpiredToken: Validly signed token past its expiry
            UserInactive: The user was deactivated after issuance
            CredentialLookupTimeout: The store did not answer in time
        """
        payload = self.decode(value)

        try:
            user_id = payload.user_id
        except ValueError:
            raise InvalidToken("Token subject is not a user id")

        try:
            revoked, user = await asyncio.wait_for(
                self._lookup(payload.jti, user_id, credentials, tokens),
                timeout=self.lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Credential lookup exceeded %.1fs for user %s", self.lookup_timeout, user_id)
            raise CredentialLookupTimeout("Credential lookup timed out")

        if revoked:
            raise InvalidToken("Token has been revoked")

        if user is None:
            raise InvalidToken("Token user no longer exists")

        if not user.is_active:
            raise UserInactive("User account is disabled")

        if payload.ver != user.token_version:
            raise InvalidToken("Token predates the last password change")

        return AuthenticatedIdentity(user=user, token=payload)

    @staticmethod
    async def _lookup(
        jti: str,
        user_id: int,
        credentials: CredentialStore,
        tokens: TokenStore,
    ) -> tuple[bool, User | None]:
        revoked = await tokens.is_revoked(jti)
        if revoked:
            return True, None
        return False, await credentials.get_by_id(user_id)
