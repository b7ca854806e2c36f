# =============================================================================
# core/models/workgroup.py - Workgroup Schemas
# =============================================================================
# A workgroup ties one supervisor to the field collaborators reporting to
# them. A collaborator may belong to several supervisors' groups.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, Field


class WorkgroupResponse(BaseModel):
    id: str | None = None
    supervisor_id: str
    member_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WorkgroupMembersUpdate(BaseModel):
    """Body of PUT /workgroups/{supervisor_id}."""

    member_ids: list[str] = Field(default_factory=list)


class MemberSupervisorsUpdate(BaseModel):
    """Body of PUT /workgroups/members/{member_id}."""

    supervisor_ids: list[str] = Field(default_factory=list)


class MemberSupervisorsResponse(BaseModel):
    member_id: str
    supervisor_ids: list[str] = Field(default_factory=list)
