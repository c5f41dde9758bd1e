"""
Portfolio CMS authentication service.

FastAPI application factory with security hardening.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.api import api_router
from app.auth.bootstrap import ensure_admin_user
from app.auth.guard import AccessGuard
from app.auth.jwt import TokenIssuer
from app.auth.password import PasswordHasher
from app.auth.store import TokenStore
from app.auth.verifier import TokenVerifier
from app.core.config import Settings
from app.core.database import Database
from app.core.exceptions import AuthError, TokenError
from app.core.logging import configure_logging
from app.schemas.common import HealthResponse, error_body

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


# =============================================================================
# Security Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Tokens must never be cached by intermediaries
        if request.url.path.startswith("/api/auth"):
            response.headers["Cache-Control"] = "no-store"

        # Strict CSP for API endpoints; the docs UI loads its own assets
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for tracing."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


# =============================================================================
# Error Handlers
# =============================================================================

async def auth_error_handler(request: Request, exc: AuthError):
    """Map the auth taxonomy to {success: false, message}."""
    headers = None
    if isinstance(exc, TokenError):
        # Every token failure looks the same to the client
        message = TokenError.public_message
        headers = {"WWW-Authenticate": "Bearer"}
    else:
        message = exc.message

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are a 400."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", errors=errors),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception("[%s] Unhandled exception: %s", request_id, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("An internal error occurred", request_id=request_id),
    )


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Every stateful component is created here and kept on app.state; nothing
    is shared between application instances.
    """
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()

    configure_logging(settings.log_level)

    database = Database(settings.database_url, echo=settings.sql_debug)
    password_hasher = PasswordHasher.from_settings(settings)
    token_issuer = TokenIssuer.from_settings(settings)
    token_verifier = TokenVerifier.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown events."""
        logger.info("Starting portfolio auth service (%s)", settings.environment)

        await database.init()
        logger.info("Database initialized")

        async with database.session_maker() as session:
            purged = await TokenStore(session).purge_expired()
            await session.commit()
            if purged:
                logger.info("Purged %d expired token revocations", purged)

            if settings.seed_admin:
                await ensure_admin_user(session, settings, password_hasher)

        yield

        logger.info("Shutting down portfolio auth service")
        await database.close()

    app = FastAPI(
        title="Portfolio Auth API",
        version=VERSION,
        description="Authentication and session tokens for the portfolio CMS",
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.password_hasher = password_hasher
    app.state.token_issuer = token_issuer
    app.state.access_guard = AccessGuard(token_verifier)

    # Middleware (order matters - last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    if "*" not in settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        db_status = "connected"
        try:
            async with database.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Health check database failure: %s", e)
            db_status = "unavailable"

        return HealthResponse(
            status="healthy" if db_status == "connected" else "degraded",
            version=VERSION,
            database=db_status,
            timestamp=datetime.now(timezone.utc),
        )

    app.include_router(api_router, prefix="/api")

    return app


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=5000,
        reload=True,
        log_level="info",
    )
