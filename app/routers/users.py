# =============================================================================
# app/routers/users.py - User Management Endpoints
# =============================================================================
# Admin-only user CRUD, plus the "emergency stores" lookup used by field
# collaborators to find stores they may visit outside their routes.
# Responses go through UserResponse so password hashes never leave the API.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user, require_admin
from core.models.store import StoreResponse
from core.models.user import UserCreate, UserResponse, UserRole, UserUpdate
from core.services.store_service import StoreService
from core.services.user_service import UserService
from core.services.workgroup_service import WorkgroupService

router = APIRouter()


@router.get("", response_model=list[UserResponse])
async def list_users(
    user: AuthUser = Depends(require_admin),
    search: Annotated[str | None, Query(description="Match on cedula, name or email")] = None,
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    active: Annotated[bool | None, Query(description="Filter by active flag")] = None,
):
    """List users, newest first."""
    return UserService.list_users(search=search, role=role, active=active)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    user: AuthUser = Depends(require_admin),
):
    """
    Create a user.

    The password is stored as a bcrypt hash. Cedula, email and phone must
    be unique.
    """
    return UserService.create_user(request)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: Annotated[str, Path(description="User UUID")],
    user: AuthUser = Depends(require_admin),
):
    return UserService.get_user(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: Annotated[str, Path(description="User UUID")],
    request: UserUpdate,
    user: AuthUser = Depends(require_admin),
):
    """Partially update a user; send an empty email or phone to clear it."""
    return UserService.update_user(user_id, request)


@router.delete("/{user_id}")
async def delete_user(
    user_id: Annotated[str, Path(description="User UUID")],
    user: AuthUser = Depends(require_admin),
):
    UserService.delete_user(user_id)
    return {"user_id": user_id, "message": "User deleted successfully"}


@router.get("/{user_id}/emergency-stores", response_model=list[StoreResponse])
async def list_emergency_stores(
    user_id: Annotated[str, Path(description="User UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Stores supervised by any supervisor the user works for.

    Returns an empty list when the user belongs to no workgroup.
    """
    supervisor_ids = WorkgroupService.list_supervisor_ids_for_member(user_id)
    if not supervisor_ids:
        return []
    return StoreService.list_stores_by_supervisors(supervisor_ids)
