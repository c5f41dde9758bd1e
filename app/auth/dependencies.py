"""
FastAPI dependencies for authentication and authorization.

Provides:
- Accessors for the per-application components kept on app.state
- RoleChecker: the access guard as a dependency
- get_current_identity / require_admin / require_role shortcuts
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.database import get_db
from app.auth.guard import AccessGuard
from app.auth.jwt import TokenIssuer
from app.auth.password import PasswordHasher
from app.auth.store import CredentialStore, TokenStore
from app.auth.verifier import AuthenticatedIdentity
from app.models.user import UserRole


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_access_guard(request: Request) -> AccessGuard:
    return request.app.state.access_guard


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_token_store(db: AsyncSession = Depends(get_db)) -> TokenStore:
    return TokenStore(db)


class RoleChecker:
    """
    Class-based dependency running the access guard.

    An empty role list admits any authenticated user.

    Usage:
        admin_only = RoleChecker([UserRole.ADMIN])

        @router.get("/")
        async def endpoint(identity: AuthenticatedIdentity = Depends(admin_only)):
            ...
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = list(allowed_roles)

    async def __call__(
        self,
        request: Request,
        guard: AccessGuard = Depends(get_access_guard),
        credentials: CredentialStore = Depends(get_credential_store),
        tokens: TokenStore = Depends(get_token_store),
    ) -> AuthenticatedIdentity:
        decision = await guard.evaluate(
            request.headers.get("Authorization"),
            credentials,
            tokens,
            required_roles=self.allowed_roles,
            path=request.url.path,
        )
        return decision.enforce()


def require_role(*allowed_roles: UserRole) -> RoleChecker:
    """
    Dependency to require specific role(s).

    Usage:
        @router.get("/admin-only")
        async def admin_endpoint(
            identity: AuthenticatedIdentity = Depends(require_role(UserRole.ADMIN))
        ):
            ...
    """
    return RoleChecker(list(allowed_roles))


get_current_identity = RoleChecker([])
require_admin = RoleChecker([UserRole.ADMIN])


async def get_optional_identity(
    request: Request,
    guard: AccessGuard = Depends(get_access_guard),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenStore = Depends(get_token_store),
) -> Optional[AuthenticatedIdentity]:
    """
    Resolve the caller if a valid token is present, otherwise None.
    Useful for endpoints that work for anonymous users too.
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    decision = await guard.evaluate(authorization, credentials, tokens, path=request.url.path)
    return decision.identity if decision.admitted else None


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.
    Handles X-Forwarded-For header for proxied requests.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> str:
    """Extract user agent from request headers."""
    return request.headers.get("User-Agent", "unknown")[:500]  # Limit length


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)
