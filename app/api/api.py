"""
API Router configuration.

Aggregates the endpoints with proper tagging and prefixes. Mounted at /api.
"""

from fastapi import APIRouter

from app.api.endpoints import auth, users

api_router = APIRouter()

# User management (admin only)
api_router.include_router(
    users.router,
    prefix="/auth/users",
    tags=["users"]
)

# Authentication (no auth required for login/register)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)
