# =============================================================================
# app/routers/visit_logs.py - Visit Log Endpoints
# =============================================================================
# Field users submit visit checklists here and read back the latest log or
# the log history of a store for a form template.
# =============================================================================

import logging
import re
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from app.auth import AuthUser, get_current_user
from app.exceptions import ValidationFailedError
from core.models.visit_log import VisitAnswerInput, VisitLogCreate, VisitLogResponse
from core.services.visit_log_service import DEFAULT_HISTORY_LIMIT, VisitLogService
from lib.utils import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_HISTORY_LIMIT = 100
LEADING_INT = re.compile(r"[+-]?\d+")


def parse_limit(limit: str | None) -> int:
    """
    Read the leading integer of a limit parameter ("15abc" -> 15).

    Missing, non-numeric or non-positive -> default; capped at MAX_HISTORY_LIMIT.
    """
    match = LEADING_INT.match(sanitize_string(limit))
    if not match:
        return DEFAULT_HISTORY_LIMIT
    value = int(match.group(0))
    if value <= 0:
        return DEFAULT_HISTORY_LIMIT
    return min(value, MAX_HISTORY_LIMIT)


def _clean_items(values: list) -> list[str]:
    items = [sanitize_string("true" if v is True else "false" if v is False else v) for v in values]
    return [item for item in items if item]


def normalize_answers(answers: list[VisitAnswerInput]) -> list[VisitAnswerInput]:
    """
    Trim answers at the API boundary.

    Answers without a question id are dropped; list values and attachments
    are trimmed and stripped of blank entries.
    """
    normalized = []
    for answer in answers:
        question_id = sanitize_string(answer.question_id)
        if not question_id:
            continue
        value = _clean_items(answer.value) if isinstance(answer.value, list) else answer.value
        normalized.append(VisitAnswerInput(
            question_id=question_id,
            value=value,
            attachments=_clean_items(answer.attachments),
        ))
    return normalized


@router.get("", response_model=VisitLogResponse | list[VisitLogResponse] | None)
async def get_visit_logs(
    user: AuthUser = Depends(get_current_user),
    store_id: Annotated[str | None, Query(description="Store UUID")] = None,
    form_template_id: Annotated[str | None, Query(description="Form template UUID")] = None,
    variant: Annotated[Literal["latest", "history"], Query(description="latest or history")] = "history",
    limit: Annotated[str | None, Query(description="History size (default 20, max 100)")] = None,
):
    """
    Read the visit logs of a store for a form template.

    variant=latest returns the newest log (or null); variant=history returns
    the newest logs first.
    """
    store_id = sanitize_string(store_id)
    form_template_id = sanitize_string(form_template_id)
    if not store_id or not form_template_id:
        raise ValidationFailedError("store_id and form_template_id are required to read visit logs")

    if variant == "latest":
        return VisitLogService.get_latest_visit_log(store_id, form_template_id)

    return VisitLogService.list_visit_log_history(store_id, form_template_id, parse_limit(limit))


@router.post("", response_model=VisitLogResponse, status_code=status.HTTP_201_CREATED)
async def record_visit_log(
    request: VisitLogCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Record a visit.

    A second submission for the same store, form and day updates the
    existing log and records what changed. created_by defaults to the
    authenticated user.
    """
    if not sanitize_string(request.store_id) or not sanitize_string(request.form_template_id):
        raise ValidationFailedError("store_id and form_template_id are required to record a visit")

    answers = normalize_answers(request.answers)
    if not answers:
        raise ValidationFailedError("Answer at least one question")

    data = request.model_copy(update={
        "answers": answers,
        "created_by": request.created_by or str(user.id),
    })
    return VisitLogService.record_visit_log(data)
