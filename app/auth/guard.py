"""
Access guard.

Per request:

    Unauthenticated --(valid token)--> Authenticated --(role check)--> Authorized
                                                                  +-> Forbidden

Only Authorized admits the request. Evaluation reads the stores but never
writes, so running it twice yields the same decision.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from app.auth.store import CredentialStore, TokenStore
from app.auth.verifier import AuthenticatedIdentity, TokenVerifier
from app.core.exceptions import AuthError, Forbidden, InvalidToken, TokenError
from app.models.user import UserRole

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer"


class AccessState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    AUTHORIZED = "authorized"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    identity: Optional[AuthenticatedIdentity] = None
    error: Optional[AuthError] = None

    @property
    def admitted(self) -> bool:
        return self.state == AccessState.AUTHORIZED

    def enforce(self) -> AuthenticatedIdentity:
        """Return the identity if admitted, otherwise raise the recorded error."""
        if self.admitted and self.identity is not None:
            return self.identity
        if self.error is not None:
            raise self.error
        raise InvalidToken("Request was not authorized")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an `Authorization: Bearer <token>` header value.

    Raises:
        InvalidToken: Header missing, wrong scheme, or empty token
    """
    if not authorization:
        raise InvalidToken("Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_PREFIX or not token or " " in token:
        raise InvalidToken("Malformed Authorization header")
    return token


class AccessGuard:
    """The one gate every protected route goes through."""

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier

    async def authenticate(
        self,
        authorization: Optional[str],
        credentials: CredentialStore,
        tokens: TokenStore,
    ) -> AccessDecision:
        try:
            token = extract_bearer_token(authorization)
            identity = await self.verifier.verify(token, credentials, tokens)
        except TokenError as e:
            return AccessDecision(state=AccessState.UNAUTHENTICATED, error=e)
        return AccessDecision(state=AccessState.AUTHENTICATED, identity=identity)

    @staticmethod
    def authorize(
        decision: AccessDecision,
        required_roles: Iterable[UserRole] = (),
    ) -> AccessDecision:
        if decision.state != AccessState.AUTHENTICATED or decision.identity is None:
            return decision

        allowed = set(required_roles)
        role = decision.identity.role
        if allowed and role not in allowed:
            return AccessDecision(
                state=AccessState.FORBIDDEN,
                identity=decision.identity,
                error=Forbidden(f"Role '{role.value}' not authorized for this action"),
            )
        return AccessDecision(state=AccessState.AUTHORIZED, identity=decision.identity)

    async def evaluate(
        self,
        authorization: Optional[str],
        credentials: CredentialStore,
        tokens: TokenStore,
        required_roles: Iterable[UserRole] = (),
        path: str = "",
    ) -> AccessDecision:
        """Run the full state machine for one request."""
        decision = self.authorize(
            await self.authenticate(authorization, credentials, tokens),
            required_roles,
        )
        if not decision.admitted and decision.error is not None:
            logger.info(
                "Access denied (%s: %s) path=%s",
                decision.error.kind,
                decision.error.message,
                path or "-",
            )
        return decision
