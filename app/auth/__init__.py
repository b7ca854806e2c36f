# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication: users log in with cedula + password
# and receive a bearer token signed with SECRET_KEY.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    create_access_token,
    get_current_user,
    require_admin,
    require_roles,
)
from app.auth.models import AuthUser, LoginRequest, LoginResponse

__all__ = [
    "create_access_token",
    "get_current_user",
    "require_admin",
    "require_roles",
    "AuthUser",
    "LoginRequest",
    "LoginResponse",
]
