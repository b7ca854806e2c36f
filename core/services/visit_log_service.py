# =============================================================================
# core/services/visit_log_service.py - Visit Log Business Logic
# =============================================================================
# Records the answers of a store visit against a form template.
#
# One log exists per store, template and UTC calendar day. Submitting again
# on the same day re-grades the answers, replaces them, and appends a history
# entry listing what changed (nothing is appended when nothing changed).
# =============================================================================

import logging
from typing import Any

from app.exceptions import ValidationFailedError
from core.models.visit_log import VisitLogCreate, VisitLogStatus
from core.services.form_service import FormService
from lib.compliance import diff_answers, evaluate_answers
from lib.supabase_client import SupabaseClient
from lib.utils import day_bounds, is_valid_uuid, parse_datetime, sanitize_string, utc_now

logger = logging.getLogger(__name__)

TABLE = "visit_logs"

DEFAULT_HISTORY_LIMIT = 20

NEWEST_FIRST = [("visit_date", True), ("updated_at", True)]


def _optional_id(value: str | None, label: str) -> str | None:
    """Blank means absent; anything else must be a UUID."""
    text = sanitize_string(value)
    if not text:
        return None
    if not is_valid_uuid(text):
        raise ValidationFailedError(f"Invalid {label} id: {text}")
    return text


class VisitLogService:
    """Service for visit log operations."""

    @staticmethod
    def record_visit_log(data: VisitLogCreate) -> dict[str, Any]:
        """
        Create or update the visit log for a store, template and day.

        Args:
            data: Submitted visit with its answers

        Returns:
            The stored visit log row

        Raises:
            ValidationFailedError: On missing/invalid ids or visit date
            FormTemplateNotFoundError: If the template does not exist
        """
        store_id = sanitize_string(data.store_id)
        form_template_id = sanitize_string(data.form_template_id)
        if not is_valid_uuid(store_id) or not is_valid_uuid(form_template_id):
            raise ValidationFailedError(
                "A valid store and form template are required to record a visit"
            )

        route_id = _optional_id(data.route_id, "route")
        assignee_id = _optional_id(data.assignee_id, "assignee")
        created_by = _optional_id(data.created_by, "user")

        if data.visit_date:
            visit_date = parse_datetime(data.visit_date)
            if visit_date is None:
                raise ValidationFailedError(f"Invalid visit date: {data.visit_date}")
        else:
            visit_date = utc_now()

        template = FormService.get_template(form_template_id)

        now = utc_now()
        answers, score = evaluate_answers(
            template.get("questions") or [],
            [answer.model_dump() for answer in data.answers],
            now=now,
        )

        day_start, day_end = day_bounds(visit_date)
        existing = SupabaseClient.fetch_first(
            TABLE,
            filters={"store_id": store_id, "form_template_id": form_template_id},
            gte={"visit_date": day_start.isoformat()},
            lte={"visit_date": day_end.isoformat()},
            order_by="updated_at",
            desc=True,
        )

        if existing:
            changes = diff_answers(existing.get("answers") or [], answers)
            updates: dict[str, Any] = {
                "answers": answers,
                "compliance_score": score,
                "status": data.status.value if data.status else existing.get("status"),
                "updated_at": now.isoformat(),
            }
            if changes:
                updates["history"] = [
                    *(existing.get("history") or []),
                    {"changed_at": now.isoformat(), "changed_by": created_by, "changes": changes},
                ]

            log = SupabaseClient.update_row(TABLE, existing["id"], updates)
            logger.info(
                f"Updated visit log {existing['id']} for store {store_id}: "
                f"{len(changes)} changes, score {score}"
            )
            return log or {**existing, **updates}

        history = []
        if created_by:
            history.append({
                "changed_at": now.isoformat(),
                "changed_by": created_by,
                "changes": [
                    {"question_id": answer["question_id"], "previous": None, "current": answer}
                    for answer in answers
                ],
            })

        log = SupabaseClient.insert_row(TABLE, {
            "store_id": store_id,
            "form_template_id": form_template_id,
            "route_id": route_id,
            "assignee_id": assignee_id,
            "status": (data.status or VisitLogStatus.SUBMITTED).value,
            "visit_date": visit_date.isoformat(),
            "answers": answers,
            "history": history,
            "compliance_score": score,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        })
        logger.info(f"Created visit log {log['id']} for store {store_id}, score {score}")
        return log

    @staticmethod
    def get_latest_visit_log(store_id: str, form_template_id: str) -> dict[str, Any] | None:
        """Newest log by visit date, then last update; None for invalid ids."""
        if not is_valid_uuid(store_id) or not is_valid_uuid(form_template_id):
            return None
        return SupabaseClient.fetch_first(
            TABLE,
            filters={"store_id": store_id, "form_template_id": form_template_id},
            order_by=NEWEST_FIRST,
        )

    @staticmethod
    def list_visit_log_history(
        store_id: str,
        form_template_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[dict[str, Any]]:
        if not is_valid_uuid(store_id) or not is_valid_uuid(form_template_id):
            return []
        return SupabaseClient.fetch_rows(
            TABLE,
            filters={"store_id": store_id, "form_template_id": form_template_id},
            order_by=NEWEST_FIRST,
            limit=limit,
        )

    @staticmethod
    def resolve_active_form_for_store(
        store_id: str,
        store_format: str | None = None,
    ) -> dict[str, Any] | None:
        return FormService.find_active_for_store(store_id, store_format)
