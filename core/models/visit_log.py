# =============================================================================
# core/models/visit_log.py - Visit Log Schemas
# =============================================================================
# A visit log ("bitácora") holds the answers a field user gave to a form
# template during one store visit. There is at most one log per store,
# template and calendar day; resubmissions update it and append a history
# entry describing what changed.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class VisitLogStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class ComplianceStatus(str, Enum):
    """Grade assigned to a single answer."""
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    PARTIAL = "partial"


AnswerValue = bool | int | float | str | list[str | int | float | bool] | None


class VisitAnswerInput(BaseModel):
    """One submitted answer."""

    question_id: str
    value: AnswerValue = None
    attachments: list[str] = Field(default_factory=list, description="Photo URLs")


class VisitLogCreate(BaseModel):
    """
    Body of POST /visit-logs.

    Example:
        {
            "store_id": "550e8400-...",
            "form_template_id": "660e8400-...",
            "status": "submitted",
            "answers": [
                {"question_id": "q1", "value": true},
                {"question_id": "q2", "value": null, "attachments": ["https://..."]}
            ]
        }
    """

    store_id: str
    form_template_id: str
    route_id: str | None = None
    assignee_id: str | None = None
    created_by: str | None = None
    visit_date: str | None = Field(default=None, description="ISO-8601; defaults to now")
    status: VisitLogStatus | None = None
    answers: list[VisitAnswerInput]


class VisitLogAnswer(BaseModel):
    """Evaluated answer stored on a log."""

    question_id: str
    value: AnswerValue = None
    attachments: list[str] = Field(default_factory=list)
    compliance_status: ComplianceStatus
    evaluated_at: datetime
    updated_at: datetime


class VisitLogChangeEntry(BaseModel):
    question_id: str
    previous: VisitLogAnswer | None = None
    current: VisitLogAnswer


class VisitLogChange(BaseModel):
    """History entry appended whenever a resubmission changes answers."""

    changed_at: datetime
    changed_by: str | None = None
    changes: list[VisitLogChangeEntry] = Field(default_factory=list)


class VisitLogResponse(BaseModel):
    id: UUID
    store_id: str
    form_template_id: str
    route_id: str | None = None
    assignee_id: str | None = None
    status: VisitLogStatus
    visit_date: datetime
    answers: list[VisitLogAnswer] = Field(default_factory=list)
    history: list[VisitLogChange] = Field(default_factory=list)
    compliance_score: float = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
