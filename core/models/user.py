# =============================================================================
# core/models/user.py - User Schemas
# =============================================================================
# API contract for user management:
# - UserRole: admin / supervisor / usuario (field collaborator)
# - UserCreate / UserUpdate: admin input
# - UserResponse: public user data (never includes the password hash)
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """
    Roles a user can hold.

    - admin: full access to the back office
    - supervisor: owns a workgroup and supervises stores
    - usuario: field collaborator who fills visit logs
    """
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    USUARIO = "usuario"


# Roles allowed to supervise stores, routes and workgroups
SUPERVISOR_ROLES = [UserRole.ADMIN.value, UserRole.SUPERVISOR.value]

# Roles that can be assigned to a route
ASSIGNEE_ROLES = [UserRole.USUARIO.value, UserRole.SUPERVISOR.value, UserRole.ADMIN.value]


class UserCreate(BaseModel):
    """
    Schema for creating a user.

    Example:
        {
            "cedula": "112345678",
            "name": "Ana Rojas",
            "email": "ana@example.com",
            "password": "secreto1",
            "role": "usuario"
        }
    """

    cedula: str = Field(..., description="National id, digits only (min 6)")
    name: str = Field(..., description="Full name")
    email: str | None = Field(default=None, description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone")
    password: str = Field(..., description="Plain password (min 6 characters)")
    role: UserRole = Field(..., description="User role")
    active: bool = Field(default=True, description="Whether the user can log in")


class UserUpdate(BaseModel):
    """Partial update; only fields sent are changed."""

    cedula: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    password: str | None = None
    role: UserRole | None = None
    active: bool | None = None


class UserResponse(BaseModel):
    """User data returned to clients."""

    id: UUID
    cedula: str
    name: str
    email: str | None = None
    phone: str | None = None
    role: UserRole
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
