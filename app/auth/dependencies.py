# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Issues and verifies the API's own access tokens (JWT, signed with
# SECRET_KEY) and provides dependency injection for authentication and
# role checks.
#
# Usage:
#   from app.auth import get_current_user, require_admin, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
#
#   @router.delete("/admin-only", dependencies=[Depends(require_admin)])
#   async def admin_only(): ...
# =============================================================================

import logging
from datetime import timedelta
from typing import Any, Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload
from app.exceptions import PermissionDeniedError
from core.models.user import UserRole
from lib.utils import utc_now

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user: dict[str, Any]) -> str:
    """
    Sign an access token for a user row.

    The token carries the user id (sub), cedula, name and role, and expires
    after ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    issued_at = utc_now()
    expires_at = issued_at + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user["id"]),
        "cedula": user["cedula"],
        "name": user["name"],
        "role": user["role"],
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a token and return the user it was issued to.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed
    """
    try:
        payload = TokenPayload(**jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        ))

    except ExpiredSignatureError:
        logger.warning("Access token has expired")
        raise _unauthorized("Token has expired")

    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    except ValidationError:
        logger.warning("Access token is missing required claims")
        raise _unauthorized("Invalid token: missing claims")

    try:
        return AuthUser(
            id=UUID(payload.sub),
            cedula=payload.cedula,
            name=payload.name,
            role=UserRole(payload.role),
        )
    except ValueError:
        logger.warning(f"Malformed user in token: {payload.sub}")
        raise _unauthorized("Invalid token: malformed user")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate the user from the Bearer token.

    Returns:
        AuthUser: The authenticated user

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    user = decode_access_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id} ({user.role.value})")
    return user


def require_roles(*roles: UserRole) -> Callable[..., Any]:
    """
    Build a dependency that only lets users with one of roles through.

    Raises:
        PermissionDeniedError: 403 when the user's role is not allowed
    """
    allowed = [role.value for role in roles]

    async def dependency(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if user.role.value not in allowed:
            logger.warning(f"User {user.id} ({user.role.value}) denied; requires {allowed}")
            raise PermissionDeniedError(allowed)
        return user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
