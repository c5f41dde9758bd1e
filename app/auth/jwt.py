"""
JWT session tokens.

Security measures:
- Fixed, configured lifetime (24h default), never unbounded
- Secret key from configuration, never sent to clients
- Token type, issuer and audience validation
- Unique jti per token so logout can revoke it server-side
- Token version claim so a password change retires every earlier token
- Previous secret keys keep verifying during a key rotation
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from pydantic import BaseModel
from jose import jwt, JWTError, ExpiredSignatureError
from jose.exceptions import JWTClaimsError

from app.core.config import Settings
from app.core.exceptions import ConfigurationError, InvalidToken, ExpiredToken
from app.models.user import User

ACCESS_TOKEN_TYPE = "access"


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    sub: str                          # User ID (subject)
    email: str                        # User email at issuance
    role: str                         # User role at issuance
    type: str                         # Always "access"
    iat: datetime                     # Issued at
    exp: datetime                     # Expiration
    iss: str                          # Issuer
    aud: str                          # Audience
    jti: str                          # Token ID (for revocation)
    ver: int                          # User token version at issuance

    @property
    def user_id(self) -> int:
        return int(self.sub)


class IssuedToken(BaseModel):
    """A freshly minted token and the facts the client may need about it."""
    value: str
    user_id: int
    token_id: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


class TokenIssuer:
    """Mints signed access tokens bound to a user id and an expiry."""

    def __init__(
        self,
        secret_key: str,
        expires_delta: timedelta,
        algorithm: str = "HS256",
        issuer: str = "portfolio-api",
        audience: str = "portfolio-client",
    ):
        if not secret_key:
            raise ConfigurationError("A signing secret is required")
        if expires_delta <= timedelta(0):
            raise ConfigurationError("Token lifetime must be positive")
        self._secret_key = secret_key
        self.expires_delta = expires_delta
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.jwt_secret_key,
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
            algorithm=settings.jwt_algorithm,
            issuer=settings.token_issuer,
            audience=settings.token_audience,
        )

    def issue(self, user: User, now: Optional[datetime] = None) -> IssuedToken:
        """
        Create an access token for a user.

        Args:
            user: The persisted user (must have an id)
            now: Issuance instant, defaults to the current time

        Returns:
            IssuedToken with the encoded JWT in `value`
        """
        # JWT timestamps are whole seconds
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        expires_at = issued_at + self.expires_delta
        token_id = secrets.token_urlsafe(16)

        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "type": ACCESS_TOKEN_TYPE,
            "iat": issued_at,
            "exp": expires_at,
            "iss": self.issuer,
            "aud": self.audience,
            "jti": token_id,
            "ver": user.token_version,
        }

        return IssuedToken(
            value=jwt.encode(payload, self._secret_key, algorithm=self.algorithm),
            user_id=user.id,
            token_id=token_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )


def decode_token(
    token: str,
    keys: Sequence[str],
    algorithm: str,
    issuer: str,
    audience: str,
) -> TokenPayload:
    """
    Verify signature, then expiry and claims, and decode a token.

    Keys are tried in order; the first one whose signature matches decides
    the outcome.

    Raises:
        ExpiredToken: Signature is valid but the token is past exp
        InvalidToken: Anything else (bad signature, malformed, wrong claims)
    """
    for key in keys:
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[algorithm],
                audience=audience,
                issuer=issuer,
            )
        except ExpiredSignatureError:
            # jose checks claims only after the signature matched
            raise ExpiredToken("Token has expired")
        except JWTClaimsError as e:
            raise InvalidToken(f"Invalid token claims: {e}")
        except JWTError:
            continue
        break
    else:
        raise InvalidToken("Token signature verification failed")

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidToken(f"Invalid token type: {payload.get('type')}")

    try:
        return TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            role=payload["role"],
            type=payload["type"],
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iss=payload["iss"],
            aud=payload["aud"],
            jti=payload["jti"],
            ver=payload["ver"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidToken(f"Malformed token payload: {e}")
