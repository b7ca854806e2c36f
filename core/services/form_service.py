# =============================================================================
# core/services/form_service.py - Form Template Business Logic
# =============================================================================
# Handles form template lifecycle:
# - Create drafts with normalized questions and scope
# - Update (every change bumps the version)
# - Publish / archive
# - Resolve which published template applies to a store
#
# Templates are stored as one row with questions and scope in jsonb columns.
# scope_kind mirrors scope.kind so listings can filter on it.
# =============================================================================

import logging
import math
from typing import Any

from app.exceptions import FormTemplateNotFoundError, ValidationFailedError
from core.models.form import (
    FormQuestionInput,
    FormScope,
    FormScopeKind,
    FormStatus,
    FormTemplateCreate,
    FormTemplateUpdate,
    QuestionType,
)
from core.models.store import STORE_FORMAT_OPTIONS
from lib.supabase_client import SupabaseClient
from lib.utils import dedupe, is_valid_uuid, new_hex_id, parse_datetime, sanitize_string, utc_now, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "form_templates"

SELECT_TYPES = {QuestionType.SELECT, QuestionType.MULTI_SELECT}


# =============================================================================
# Normalization
# =============================================================================

def normalize_question(question: FormQuestionInput, index: int) -> dict[str, Any]:
    """
    Validate one question and convert it to its stored shape.

    Args:
        question: Question from the editor
        index: Position in the list; used as the order when none is given

    Raises:
        ValidationFailedError: On a blank title, option without value,
            selection question without options or negative min_photos
    """
    title = sanitize_string(question.title)
    if not title:
        raise ValidationFailedError("Every question needs a title")

    config = question.config
    weight = config.weight
    if weight is None or not math.isfinite(weight) or weight <= 0:
        weight = 1

    options = []
    for option in question.options:
        value = sanitize_string(option.value)
        if not value:
            raise ValidationFailedError("Selection options need a value")
        options.append({
            "id": new_hex_id(),
            "value": value,
            "label": sanitize_string(option.label) or value,
        })

    if question.type in SELECT_TYPES and not options:
        raise ValidationFailedError(
            f"Question '{title}' needs at least one option",
            suggestion="Add options to select and multi_select questions",
        )

    if question.type == QuestionType.PHOTO and (config.min_photos or 0) < 0:
        raise ValidationFailedError("The minimum number of photos cannot be negative")

    return {
        "id": sanitize_string(question.id) or new_hex_id(),
        "type": question.type.value,
        "title": title,
        "description": sanitize_string(question.description),
        "required": bool(question.required),
        "order": question.order if question.order is not None else index,
        "options": options,
        "config": {
            "weight": weight,
            "expected_value": config.expected_value,
            "min": config.min,
            "max": config.max,
            "min_photos": config.min_photos,
            "max_photos": config.max_photos,
            "allow_partial": config.allow_partial,
        },
    }


def normalize_scope(scope: FormScope) -> dict[str, Any]:
    """
    Validate a scope and convert it to its stored shape.

    Raises:
        ValidationFailedError: When a formats/stores scope selects nothing
            or names an unknown format
    """
    if scope.kind == FormScopeKind.ALL:
        return {"kind": FormScopeKind.ALL.value}

    if scope.kind == FormScopeKind.FORMATS:
        formats = dedupe([sanitize_string(f) for f in scope.formats if sanitize_string(f)])
        invalid = [f for f in formats if f not in STORE_FORMAT_OPTIONS]
        if invalid:
            raise ValidationFailedError(
                f"Invalid store format: {', '.join(invalid)}",
                suggestion=f"Use one of: {', '.join(STORE_FORMAT_OPTIONS)}",
            )
        if not formats:
            raise ValidationFailedError("Select at least one format for this form")
        return {"kind": FormScopeKind.FORMATS.value, "formats": formats}

    store_ids = dedupe([
        sanitize_string(store_id) for store_id in scope.store_ids
        if is_valid_uuid(sanitize_string(store_id))
    ])
    if not store_ids:
        raise ValidationFailedError("Select at least one store for this form")
    return {"kind": FormScopeKind.STORES.value, "store_ids": store_ids}


def _normalize_questions(questions: list[FormQuestionInput]) -> list[dict[str, Any]]:
    return [normalize_question(question, index) for index, question in enumerate(questions)]


def scope_matches_store(
    scope: dict[str, Any],
    store_id: str,
    store_format: str | None = None,
) -> bool:
    """True when a stored scope covers the store."""
    kind = scope.get("kind")
    if kind == FormScopeKind.ALL.value:
        return True
    if kind == FormScopeKind.STORES.value:
        return store_id in (scope.get("store_ids") or [])
    if kind == FormScopeKind.FORMATS.value:
        return bool(store_format) and store_format in (scope.get("formats") or [])
    return False


def _may_apply_to_store(scope: dict[str, Any], store_id: str) -> bool:
    # The store's format is unknown here, so any non-empty format scope counts.
    if scope.get("kind") == FormScopeKind.FORMATS.value:
        return bool(scope.get("formats"))
    return scope_matches_store(scope, store_id)


class FormService:
    """Service for form template operations."""

    @staticmethod
    def create_template(data: FormTemplateCreate, created_by: str | None = None) -> dict[str, Any]:
        """
        Create a draft template at version 1.

        Raises:
            ValidationFailedError: On a blank name, no questions or invalid
                questions/scope
        """
        name = sanitize_string(data.name)
        if not name:
            raise ValidationFailedError("The form needs a name")
        if not data.questions:
            raise ValidationFailedError("The form needs at least one question")

        scope = normalize_scope(data.scope)
        questions = _normalize_questions(data.questions)
        author = created_by if is_valid_uuid(created_by) else None

        now = utc_now_iso()
        template = SupabaseClient.insert_row(TABLE, {
            "version": 1,
            "status": FormStatus.DRAFT.value,
            "name": name,
            "description": sanitize_string(data.description),
            "scope_kind": scope["kind"],
            "scope": scope,
            "questions": questions,
            "created_by": author,
            "updated_by": author,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created form template {template['id']} with {len(questions)} questions")
        return template

    @staticmethod
    def get_template(template_id: str) -> dict[str, Any]:
        """
        Questions come back sorted by their order field.

        Raises:
            FormTemplateNotFoundError: If the id is invalid or unknown
        """
        if not is_valid_uuid(template_id):
            raise FormTemplateNotFoundError(str(template_id))
        template = SupabaseClient.fetch_row(TABLE, template_id)
        if not template:
            raise FormTemplateNotFoundError(str(template_id))
        return {
            **template,
            "questions": sorted(template.get("questions") or [], key=lambda q: q.get("order", 0)),
        }

    @staticmethod
    def _apply_changes(
        template_id: str,
        changes: dict[str, Any],
        updated_by: str | None = None,
    ) -> dict[str, Any]:
        current = FormService.get_template(template_id)
        if not changes:
            return current

        changes["version"] = int(current.get("version") or 1) + 1
        changes["updated_at"] = utc_now_iso()
        if is_valid_uuid(updated_by):
            changes["updated_by"] = updated_by

        template = SupabaseClient.update_row(TABLE, template_id, changes)
        if not template:
            raise FormTemplateNotFoundError(template_id)

        logger.info(
            f"Updated form template {template_id} to version {changes['version']}: "
            f"{sorted(k for k in changes if k not in ('version', 'updated_at', 'updated_by'))}"
        )
        return template

    @staticmethod
    def update_template(
        template_id: str,
        data: FormTemplateUpdate,
        updated_by: str | None = None,
    ) -> dict[str, Any]:
        """
        Apply a partial update.

        Any change bumps the version. An explicitly empty questions list
        is rejected; omitting questions keeps the current ones.
        """
        fields = data.model_dump(exclude_unset=True)
        changes: dict[str, Any] = {}

        if fields.get("name") is not None:
            name = sanitize_string(data.name)
            if not name:
                raise ValidationFailedError("The form needs a name")
            changes["name"] = name

        if "description" in fields:
            changes["description"] = sanitize_string(data.description)

        if data.scope is not None:
            scope = normalize_scope(data.scope)
            changes["scope"] = scope
            changes["scope_kind"] = scope["kind"]

        if data.questions is not None:
            if not data.questions:
                raise ValidationFailedError("The form needs at least one question")
            changes["questions"] = _normalize_questions(data.questions)

        return FormService._apply_changes(template_id, changes, updated_by)

    @staticmethod
    def publish_template(
        template_id: str,
        scope: FormScope | None = None,
        updated_by: str | None = None,
    ) -> dict[str, Any]:
        """Publish a template, optionally replacing its scope."""
        changes: dict[str, Any] = {"status": FormStatus.PUBLISHED.value}
        if scope is not None:
            normalized = normalize_scope(scope)
            changes["scope"] = normalized
            changes["scope_kind"] = normalized["kind"]
        return FormService._apply_changes(template_id, changes, updated_by)

    @staticmethod
    def archive_template(template_id: str, updated_by: str | None = None) -> dict[str, Any]:
        return FormService._apply_changes(
            template_id, {"status": FormStatus.ARCHIVED.value}, updated_by
        )

    @staticmethod
    def delete_template(template_id: str) -> None:
        if not is_valid_uuid(template_id) or not SupabaseClient.delete_row(TABLE, template_id):
            raise FormTemplateNotFoundError(str(template_id))
        logger.info(f"Deleted form template {template_id}")

    @staticmethod
    def list_templates(
        statuses: list[FormStatus] | None = None,
        scope_kind: FormScopeKind | None = None,
        store_format: str | None = None,
        store_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List templates, most recently updated first.

        Args:
            statuses: Only templates in one of these statuses
            scope_kind: Only templates with this scope kind
            store_format: Only format-scoped templates that include this format
            store_id: Only templates that may apply to this store: scope
                "all", any format scope, or a store scope listing it
        """
        in_filters = {"status": [s.value for s in statuses]} if statuses else None
        filters = {"scope_kind": scope_kind.value} if scope_kind else None
        contains = {"scope": {"formats": [store_format]}} if store_format else None

        templates = SupabaseClient.fetch_rows(
            TABLE,
            filters=filters,
            in_filters=in_filters,
            contains=contains,
            order_by="updated_at",
            desc=True,
        )

        if store_id and is_valid_uuid(store_id):
            templates = [
                template for template in templates
                if _may_apply_to_store(template.get("scope") or {}, store_id)
            ]

        return templates

    @staticmethod
    def find_active_for_store(
        store_id: str,
        store_format: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Find the published template that currently applies to a store.

        A template applies when its scope is "all", lists the store, or
        (when store_format is known) lists the store's format. Templates
        updated in the future are ignored. The newest updated_at wins,
        then the highest version.

        Returns:
            Template row, or None when nothing applies or the id is invalid
        """
        if not is_valid_uuid(store_id):
            return None

        now = utc_now()
        candidates = SupabaseClient.fetch_rows(
            TABLE,
            filters={"status": FormStatus.PUBLISHED.value},
            lte={"updated_at": now.isoformat()},
            order_by=[("updated_at", True), ("version", True)],
        )

        applicable = [
            template for template in candidates
            if scope_matches_store(template.get("scope") or {}, store_id, store_format)
            and (parse_datetime(template.get("updated_at")) or now) <= now
        ]
        if not applicable:
            return None

        return max(
            applicable,
            key=lambda t: (parse_datetime(t.get("updated_at")) or now, int(t.get("version") or 0)),
        )
