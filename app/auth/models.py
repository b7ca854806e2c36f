# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from uuid import UUID

from core.models.user import UserRole


class AuthUser(BaseModel):
    """
    Authenticated user extracted from the access token.

    This is the minimal user info carried by the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    cedula: str
    name: str
    role: UserRole


class LoginRequest(BaseModel):
    cedula: str
    password: str


class LoginResponse(BaseModel):
    """Token issued after a successful login."""
    access_token: str
    token_type: str = "bearer"
    user: AuthUser


class TokenPayload(BaseModel):
    """
    Decoded access token payload.

    Standard JWT claims plus the user's cedula, name and role.
    """
    sub: str  # User ID
    cedula: str
    name: str
    role: str
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
