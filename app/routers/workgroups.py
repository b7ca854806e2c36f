# =============================================================================
# app/routers/workgroups.py - Workgroup Endpoints
# =============================================================================
# Supervisor workgroups can be edited from the supervisor side
# (/workgroups/{supervisor_id}) or the member side
# (/workgroups/members/{member_id}).
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user, require_admin
from core.models.workgroup import (
    MemberSupervisorsResponse,
    MemberSupervisorsUpdate,
    WorkgroupMembersUpdate,
    WorkgroupResponse,
)
from core.services.workgroup_service import WorkgroupService

router = APIRouter()


@router.get("", response_model=list[WorkgroupResponse])
async def list_workgroups(user: AuthUser = Depends(get_current_user)):
    return WorkgroupService.list_workgroups()


@router.get("/members/{member_id}", response_model=MemberSupervisorsResponse)
async def get_member_supervisors(
    member_id: Annotated[str, Path(description="Collaborator user UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return MemberSupervisorsResponse(
        member_id=member_id,
        supervisor_ids=WorkgroupService.list_supervisor_ids_for_member(member_id),
    )


@router.put("/members/{member_id}", response_model=MemberSupervisorsResponse)
async def set_member_supervisors(
    member_id: Annotated[str, Path(description="Collaborator user UUID")],
    request: MemberSupervisorsUpdate,
    user: AuthUser = Depends(require_admin),
):
    """Make the collaborator belong to exactly the listed supervisors' groups."""
    supervisor_ids = WorkgroupService.set_member_supervisors(member_id, request.supervisor_ids)
    return MemberSupervisorsResponse(member_id=member_id, supervisor_ids=supervisor_ids)


@router.get("/{supervisor_id}", response_model=WorkgroupResponse)
async def get_workgroup(
    supervisor_id: Annotated[str, Path(description="Supervisor user UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """A supervisor's workgroup; empty membership when none exists yet."""
    workgroup = WorkgroupService.get_by_supervisor(supervisor_id)
    return workgroup or WorkgroupResponse(supervisor_id=supervisor_id)


@router.put("/{supervisor_id}", response_model=WorkgroupResponse)
async def set_workgroup_members(
    supervisor_id: Annotated[str, Path(description="Supervisor user UUID")],
    request: WorkgroupMembersUpdate,
    user: AuthUser = Depends(require_admin),
):
    """Replace a supervisor's members, creating the workgroup if needed."""
    return WorkgroupService.set_members(supervisor_id, request.member_ids)
