# =============================================================================
# core/services/workgroup_service.py - Workgroup Business Logic
# =============================================================================
# A workgroup row links one supervisor (admin or supervisor role) to the
# field collaborators ("usuario" role) reporting to them. Membership can be
# edited from either side: a supervisor's member list, or a member's list
# of supervisors.
# =============================================================================

import logging
from typing import Any

from app.exceptions import ValidationFailedError
from core.models.user import SUPERVISOR_ROLES, UserRole
from lib.supabase_client import SupabaseClient
from lib.utils import dedupe, is_valid_uuid, sanitize_string, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "workgroups"
USERS_TABLE = "users"

MEMBER_ROLES = [UserRole.USUARIO.value]


def _ensure_user(user_id: str, roles: list[str], label: str) -> str:
    """Return the id of an active user holding one of roles."""
    user_id = sanitize_string(user_id)
    if not is_valid_uuid(user_id):
        raise ValidationFailedError(f"The selected {label} is not valid: {user_id}")

    user = SupabaseClient.fetch_first(
        USERS_TABLE,
        filters={"id": user_id},
        in_filters={"role": roles},
    )
    if not user or user.get("active") is False:
        raise ValidationFailedError(
            f"The selected {label} does not exist or is not active",
            details={"user_id": user_id, "allowed_roles": roles},
        )
    return user_id


def ensure_supervisor(supervisor_id: str) -> str:
    return _ensure_user(supervisor_id, SUPERVISOR_ROLES, "supervisor")


def ensure_member(member_id: str) -> str:
    return _ensure_user(member_id, MEMBER_ROLES, "collaborator")


def _unique_ids(ids: list[str] | None) -> list[str]:
    return dedupe([sanitize_string(value) for value in ids or [] if sanitize_string(value)])


class WorkgroupService:
    """Service for supervisor workgroups."""

    @staticmethod
    def list_workgroups() -> list[dict[str, Any]]:
        return SupabaseClient.fetch_rows(TABLE, order_by="created_at")

    @staticmethod
    def get_by_supervisor(supervisor_id: str) -> dict[str, Any] | None:
        if not is_valid_uuid(supervisor_id):
            return None
        return SupabaseClient.fetch_first(TABLE, filters={"supervisor_id": supervisor_id})

    @staticmethod
    def set_members(supervisor_id: str, member_ids: list[str]) -> dict[str, Any]:
        """
        Replace the members of a supervisor's workgroup, creating it if needed.

        Raises:
            ValidationFailedError: If the supervisor or any member is invalid,
                unknown, inactive or holds the wrong role
        """
        supervisor_id = ensure_supervisor(supervisor_id)
        members = [ensure_member(member_id) for member_id in _unique_ids(member_ids)]

        now = utc_now_iso()
        existing = WorkgroupService.get_by_supervisor(supervisor_id)
        workgroup = SupabaseClient.upsert_row(
            TABLE,
            {
                "supervisor_id": supervisor_id,
                "member_ids": members,
                "created_at": (existing or {}).get("created_at") or now,
                "updated_at": now,
            },
            on_conflict="supervisor_id",
        )
        logger.info(f"Workgroup of {supervisor_id} now has {len(members)} members")
        return workgroup

    @staticmethod
    def list_supervisor_ids_for_member(member_id: str) -> list[str]:
        if not is_valid_uuid(member_id):
            return []
        rows = SupabaseClient.fetch_rows(
            TABLE,
            contains={"member_ids": [sanitize_string(member_id)]},
            columns="supervisor_id",
        )
        return [str(row["supervisor_id"]) for row in rows]

    @staticmethod
    def set_member_supervisors(member_id: str, supervisor_ids: list[str]) -> list[str]:
        """
        Make member_id belong to exactly the given supervisors' workgroups.

        The member is removed from groups of supervisors not listed and added
        to the listed ones; missing groups are created.

        Returns:
            The supervisor ids the member now belongs to
        """
        member_id = ensure_member(member_id)
        selected = [ensure_supervisor(value) for value in _unique_ids(supervisor_ids)]
        now = utc_now_iso()

        current = SupabaseClient.fetch_rows(TABLE, contains={"member_ids": [member_id]})
        for workgroup in current:
            if str(workgroup["supervisor_id"]) in selected:
                continue
            remaining = [m for m in workgroup.get("member_ids") or [] if m != member_id]
            SupabaseClient.update_row(TABLE, workgroup["id"], {
                "member_ids": remaining,
                "updated_at": now,
            })

        for supervisor_id in selected:
            workgroup = WorkgroupService.get_by_supervisor(supervisor_id)
            if workgroup is None:
                SupabaseClient.insert_row(TABLE, {
                    "supervisor_id": supervisor_id,
                    "member_ids": [member_id],
                    "created_at": now,
                    "updated_at": now,
                })
                continue

            members = workgroup.get("member_ids") or []
            if member_id not in members:
                SupabaseClient.update_row(TABLE, workgroup["id"], {
                    "member_ids": [*members, member_id],
                    "updated_at": now,
                })

        logger.info(f"Member {member_id} now reports to {len(selected)} supervisors")
        return selected
