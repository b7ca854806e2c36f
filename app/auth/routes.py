# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Login with cedula + password, and endpoints for reading the current user
# after authentication.
# =============================================================================

import logging
from fastapi import APIRouter, Depends

from app.auth.dependencies import create_access_token, get_current_user
from app.auth.models import AuthUser, LoginRequest, LoginResponse
from app.exceptions import InvalidCredentialsError
from core.models.user import UserResponse
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest) -> LoginResponse:
    """
    Exchange a cedula and password for an access token.

    Raises:
        401: If the credentials do not match an active user
    """
    user = UserService.verify_credentials(request.cedula, request.password)
    if user is None:
        logger.warning("Rejected login attempt")
        raise InvalidCredentialsError()

    logger.info(f"User {user['id']} logged in")
    return LoginResponse(
        access_token=create_access_token(user),
        user=AuthUser(
            id=user["id"],
            cedula=user["cedula"],
            name=user["name"],
            role=user["role"],
        ),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
):
    """
    Get the current authenticated user's profile.

    Raises:
        401: If not authenticated
        404: If the user was deleted after the token was issued
    """
    return UserService.get_user(str(user.id))


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "role": user.role.value,
    }
