# =============================================================================
# core/models/form.py - Form Template Schemas
# =============================================================================
# A form template is the checklist a field user fills out during a store
# visit. Each question carries a compliance config that the visit-log engine
# uses to grade answers:
#
#   weight        - share of the final score (default 1)
#   expected_value- value that counts as compliant
#   min / max     - numeric bounds (number questions)
#   min_photos / max_photos - attachment bounds (photo questions)
#   allow_partial - grade near-misses as "partial" instead of "non_compliant"
#
# Templates are scoped to all stores, to some formats, or to some stores.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class FormStatus(str, Enum):
    """
    Lifecycle of a template.

    Flow: draft -> published -> archived
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class QuestionType(str, Enum):
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    YES_NO = "yes_no"
    NUMBER = "number"
    PHOTO = "photo"
    SELECT = "select"
    MULTI_SELECT = "multi_select"


class FormScopeKind(str, Enum):
    ALL = "all"
    FORMATS = "formats"
    STORES = "stores"


ExpectedValue = bool | int | float | str | list[str] | None


# =============================================================================
# Questions
# =============================================================================

class QuestionOption(BaseModel):
    """A selectable option for select / multi_select questions."""

    id: str | None = None
    value: str
    label: str | None = Field(default=None, description="Defaults to the value")


class QuestionConfig(BaseModel):
    """Compliance rules for one question."""

    weight: float = Field(default=1, description="Weight in the compliance score")
    expected_value: ExpectedValue = None
    min: float | None = None
    max: float | None = None
    min_photos: int | None = None
    max_photos: int | None = None
    allow_partial: bool = False


class FormQuestionInput(BaseModel):
    """
    Question as sent by the form editor.

    Ids are generated for new questions; order defaults to the position
    in the list.
    """

    id: str | None = None
    type: QuestionType
    title: str
    description: str | None = None
    required: bool = False
    order: int | None = None
    options: list[QuestionOption] = Field(default_factory=list)
    config: QuestionConfig = Field(default_factory=QuestionConfig)


class FormQuestion(BaseModel):
    """Normalized question stored on a template."""

    id: str
    type: QuestionType
    title: str
    description: str = ""
    required: bool = False
    order: int = 0
    options: list[QuestionOption] = Field(default_factory=list)
    config: QuestionConfig = Field(default_factory=QuestionConfig)


# =============================================================================
# Templates
# =============================================================================

class FormScope(BaseModel):
    """
    Which stores a template applies to.

    Example:
        {"kind": "formats", "formats": ["Pali", "Maxi Pali"]}
    """

    kind: FormScopeKind = FormScopeKind.ALL
    formats: list[str] = Field(default_factory=list)
    store_ids: list[str] = Field(default_factory=list)


class FormTemplateCreate(BaseModel):
    name: str
    description: str | None = None
    scope: FormScope = Field(default_factory=FormScope)
    questions: list[FormQuestionInput]


class FormTemplateUpdate(BaseModel):
    """Partial update; any change bumps the template version."""

    name: str | None = None
    description: str | None = None
    scope: FormScope | None = None
    questions: list[FormQuestionInput] | None = None


class FormAction(str, Enum):
    PUBLISH = "publish"
    ARCHIVE = "archive"


class FormActionRequest(BaseModel):
    """Body of PATCH /forms/{id}."""

    action: FormAction
    scope: FormScope | None = Field(
        default=None,
        description="Optional scope applied when publishing"
    )


class FormTemplateResponse(BaseModel):
    id: UUID
    version: int
    status: FormStatus
    name: str
    description: str = ""
    scope: FormScope
    questions: list[FormQuestion]
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FormTemplateResponse":
        """Build from a table row, ordering questions by their order field."""
        questions = sorted(row.get("questions") or [], key=lambda q: q.get("order", 0))
        return cls.model_validate({**row, "questions": questions})
