# =============================================================================
# core/services/user_service.py - User Business Logic
# =============================================================================
# Handles user CRUD, credential checks and role-filtered id resolution.
# Users log in with their cedula (national id) and a bcrypt-hashed password.
# =============================================================================

import logging
import re
from typing import Any

from app.exceptions import DuplicateError, UserNotFoundError, ValidationFailedError
from core.models.user import UserCreate, UserRole, UserUpdate
from lib.passwords import MAX_PASSWORD_BYTES, hash_password, verify_password
from lib.supabase_client import SupabaseClient
from lib.utils import dedupe, is_valid_uuid, sanitize_string, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "users"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"^[+\d]{6,20}$")
MIN_CEDULA_DIGITS = 6
MIN_PASSWORD_LENGTH = 6


# =============================================================================
# Field Normalization
# =============================================================================

def normalize_cedula(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_email(value: str | None) -> str | None:
    """Lower-case and validate an email; blank means no email."""
    email = sanitize_string(value).lower()
    if not email:
        return None
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailedError(f"Invalid email address: {email}")
    return email


def normalize_phone(value: str | None) -> str | None:
    """Drop spaces, dashes and parentheses; blank means no phone."""
    phone = re.sub(r"[\s()-]", "", value or "")
    if not phone:
        return None
    if not PHONE_PATTERN.match(phone):
        raise ValidationFailedError(
            f"Invalid phone number: {value}",
            suggestion="Use 6 to 20 digits, optionally starting with +",
        )
    return phone


def _validate_cedula(value: str) -> str:
    cedula = normalize_cedula(value)
    if len(cedula) < MIN_CEDULA_DIGITS:
        raise ValidationFailedError(f"The cedula must have at least {MIN_CEDULA_DIGITS} digits")
    return cedula


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"The password must have at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailedError(
            f"The password cannot be longer than {MAX_PASSWORD_BYTES} bytes",
            suggestion="Use a shorter password; accented letters count as two bytes",
        )


class UserService:
    """
    Service for user management operations.

    Rows returned by this service include password_hash; routers must
    serialize them through UserResponse.
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def list_users(
        search: str | None = None,
        role: UserRole | None = None,
        active: bool | None = None,
    ) -> list[dict[str, Any]]:
        """
        List users, newest first.

        Args:
            search: Case-insensitive match on cedula, name or email
            role: Only users with this role
            active: Only active (True) or inactive (False) users
        """
        users = SupabaseClient.fetch_rows(TABLE, order_by="created_at", desc=True)

        term = sanitize_string(search).lower()
        if term:
            users = [
                user for user in users
                if term in (user.get("cedula") or "").lower()
                or term in (user.get("name") or "").lower()
                or term in (user.get("email") or "").lower()
            ]
        if role is not None:
            users = [user for user in users if user.get("role") == role.value]
        if active is not None:
            users = [user for user in users if bool(user.get("active", True)) == active]

        return users

    @staticmethod
    def get_user(user_id: str) -> dict[str, Any]:
        """
        Get a user by id.

        Raises:
            UserNotFoundError: If the id is invalid or unknown
        """
        if not is_valid_uuid(user_id):
            raise UserNotFoundError(str(user_id))
        user = SupabaseClient.fetch_row(TABLE, user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    @staticmethod
    def resolve_user_ids(
        user_ids: list[str] | None,
        allowed_roles: list[str],
    ) -> list[str]:
        """
        Keep the ids of existing users holding one of allowed_roles.

        Blank, malformed and duplicate ids are dropped; input order is kept.
        """
        ids = dedupe([
            sanitize_string(user_id) for user_id in user_ids or []
            if is_valid_uuid(sanitize_string(user_id))
        ])
        if not ids:
            return []

        found = SupabaseClient.fetch_rows(
            TABLE,
            in_filters={"id": ids, "role": list(allowed_roles)},
            columns="id",
        )
        found_ids = {str(row["id"]) for row in found}
        return [user_id for user_id in ids if user_id in found_ids]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    def _ensure_unique(field: str, value: str | None, exclude_id: str | None = None) -> None:
        if not value:
            return
        existing = SupabaseClient.fetch_first(
            TABLE,
            filters={field: value},
            neq={"id": exclude_id} if exclude_id else None,
        )
        if existing:
            raise DuplicateError("user", field, value)

    @staticmethod
    def create_user(data: UserCreate) -> dict[str, Any]:
        """
        Create a user.

        Raises:
            ValidationFailedError: On malformed fields
            DuplicateError: If cedula, email or phone are taken
        """
        cedula = _validate_cedula(data.cedula)
        name = sanitize_string(data.name)
        if not name:
            raise ValidationFailedError("The name is required")
        email = normalize_email(data.email)
        phone = normalize_phone(data.phone)
        _validate_password(data.password)

        UserService._ensure_unique("cedula", cedula)
        UserService._ensure_unique("email", email)
        UserService._ensure_unique("phone", phone)

        now = utc_now_iso()
        user = SupabaseClient.insert_row(TABLE, {
            "cedula": cedula,
            "name": name,
            "email": email,
            "phone": phone,
            "role": data.role.value,
            "active": data.active,
            "password_hash": hash_password(data.password),
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created user {user['id']} with role {data.role.value}")
        return user

    @staticmethod
    def update_user(user_id: str, data: UserUpdate) -> dict[str, Any]:
        """
        Apply a partial update.

        Sending an empty email or phone clears it. Uniqueness checks ignore
        the user being updated.
        """
        UserService.get_user(user_id)
        fields = data.model_dump(exclude_unset=True)
        updates: dict[str, Any] = {}

        if "cedula" in fields and fields["cedula"] is not None:
            cedula = _validate_cedula(fields["cedula"])
            UserService._ensure_unique("cedula", cedula, exclude_id=user_id)
            updates["cedula"] = cedula

        if "email" in fields:
            email = normalize_email(fields["email"])
            UserService._ensure_unique("email", email, exclude_id=user_id)
            updates["email"] = email

        if "name" in fields and fields["name"] is not None:
            name = sanitize_string(fields["name"])
            if not name:
                raise ValidationFailedError("The name cannot be empty")
            updates["name"] = name

        if "phone" in fields:
            phone = normalize_phone(fields["phone"])
            UserService._ensure_unique("phone", phone, exclude_id=user_id)
            updates["phone"] = phone

        if fields.get("role") is not None:
            updates["role"] = UserRole(fields["role"]).value

        if fields.get("active") is not None:
            updates["active"] = fields["active"]

        if fields.get("password"):
            _validate_password(fields["password"])
            updates["password_hash"] = hash_password(fields["password"])

        updates["updated_at"] = utc_now_iso()
        user = SupabaseClient.update_row(TABLE, user_id, updates)
        if not user:
            raise UserNotFoundError(user_id)

        logger.info(f"Updated user {user_id}: {sorted(k for k in updates if k != 'password_hash')}")
        return user

    @staticmethod
    def delete_user(user_id: str) -> None:
        if not is_valid_uuid(user_id) or not SupabaseClient.delete_row(TABLE, user_id):
            raise UserNotFoundError(str(user_id))
        logger.info(f"Deleted user {user_id}")

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    @staticmethod
    def verify_credentials(cedula: str, password: str) -> dict[str, Any] | None:
        """
        Check a login attempt.

        Returns:
            The user row when an active user with that cedula has a matching
            password, otherwise None
        """
        user = SupabaseClient.fetch_first(TABLE, filters={"cedula": normalize_cedula(cedula)})
        if not user or user.get("active") is False or not user.get("password_hash"):
            return None
        if not verify_password(password, user["password_hash"]):
            return None
        return user
