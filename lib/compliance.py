# =============================================================================
# lib/compliance.py - Visit Log Compliance Engine
# =============================================================================
# Pure functions that grade visit-log answers against a form template.
#
# Every question is graded as compliant, partial or non_compliant:
# - A missing answer is non_compliant for required questions and compliant
#   for optional ones.
# - A wrong answer is partial when the question allows partial credit,
#   otherwise non_compliant.
#
# The log score is the weighted share of compliant answers, where partial
# answers count for half their weight:
#
#   score = round(100 * (sum(w compliant) + 0.5 * sum(w partial)) / sum(w), 2)
#
# Questions and answers are the plain dicts stored in the form_templates and
# visit_logs tables, so nothing here touches the database.
#
# Usage:
#   from lib.compliance import build_answer_snapshot, compute_compliance_score
#   snapshot = build_answer_snapshot(question, {"question_id": "q1", "value": True})
# =============================================================================

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from core.models.form import QuestionType
from core.models.visit_log import ComplianceStatus
from lib.utils import sanitize_string, utc_now


COMPLIANT = ComplianceStatus.COMPLIANT.value
NON_COMPLIANT = ComplianceStatus.NON_COMPLIANT.value
PARTIAL = ComplianceStatus.PARTIAL.value


# =============================================================================
# Value Helpers
# =============================================================================

def has_meaningful_value(value: Any) -> bool:
    """
    Check whether an answer value counts as "answered".

    None, blank strings and empty lists are unanswered. Every other value,
    including False and 0, is an answer.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return len(value.strip()) > 0
    if isinstance(value, list):
        return len(value) > 0
    return True


def _is_number(value: Any) -> bool:
    # bool is an int subclass but a yes/no answer is never a number
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_truthy(value: Any) -> bool:
    """Truthiness of an expected value; an empty list still counts as set."""
    if isinstance(value, list):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality that never treats booleans as numbers or lists as equal."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, list) or isinstance(right, list):
        return False
    return left == right


def _as_text(item: Any) -> str:
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item)


def to_string_list(value: Any) -> list[str] | None:
    """Trim list items to non-blank strings; None if nothing remains."""
    if not isinstance(value, list):
        return None
    items = [sanitize_string(_as_text(item)) for item in value]
    items = [item for item in items if item]
    return items or None


def matches_expected_value(expected: Any, value: Any) -> bool:
    """
    Compare an answer with the question's expected value.

    No expectation always matches. A list expectation requires the answer to
    be a list whose items all belong to the expected set.
    """
    if expected is None:
        return True

    if isinstance(expected, list):
        if not isinstance(value, list):
            return False
        expected_set = {_as_text(item) for item in expected}
        return all(_as_text(item) in expected_set for item in value)

    return _strict_equals(expected, value)


# =============================================================================
# Grading
# =============================================================================

def evaluate_answer_status(
    question: dict[str, Any],
    value: Any,
    attachments: list[str],
) -> str:
    """
    Grade one answer.

    Args:
        question: Stored question dict (type, required, options, config)
        value: Sanitized answer value
        attachments: Sanitized attachment URLs

    Returns:
        "compliant", "partial" or "non_compliant"
    """
    config = question.get("config") or {}
    allow_partial = bool(config.get("allow_partial", False))
    required = bool(question.get("required", False))
    has_value = has_meaningful_value(value) or len(attachments) > 0
    expected = config.get("expected_value")

    failed = PARTIAL if allow_partial else NON_COMPLIANT
    missing = NON_COMPLIANT if required else COMPLIANT
    option_values = {option.get("value") for option in question.get("options") or []}

    question_type = question.get("type")

    if question_type == QuestionType.YES_NO.value:
        if not isinstance(value, bool):
            return PARTIAL if has_value and allow_partial else missing
        if matches_expected_value(expected, value):
            return COMPLIANT
        return failed

    if question_type == QuestionType.NUMBER.value:
        if not _is_number(value) or math.isnan(value):
            return PARTIAL if has_value and allow_partial else missing
        minimum = config.get("min")
        maximum = config.get("max")
        if _is_number(minimum) and value < minimum:
            return failed
        if _is_number(maximum) and value > maximum:
            return failed
        if _is_number(expected) and value != expected:
            return failed
        return COMPLIANT

    if question_type == QuestionType.SELECT.value:
        if not has_value:
            return missing
        if not isinstance(value, str):
            return failed
        if value not in option_values:
            return failed
        if _is_truthy(expected) and not matches_expected_value(expected, value):
            return failed
        return COMPLIANT

    if question_type == QuestionType.MULTI_SELECT.value:
        if not has_value:
            return missing
        values = to_string_list(value)
        if not values:
            return failed
        if not all(item in option_values for item in values):
            return failed
        if isinstance(expected, list):
            if all(_as_text(item) in values for item in expected):
                return COMPLIANT
            return failed
        return COMPLIANT

    if question_type == QuestionType.PHOTO.value:
        min_photos = config.get("min_photos") or 0
        max_photos = config.get("max_photos")
        if not attachments:
            return missing
        if len(attachments) < min_photos:
            return failed
        if _is_number(max_photos) and len(attachments) > max_photos:
            return failed
        return COMPLIANT

    # short_text, long_text
    if not has_value:
        return missing
    if _is_truthy(expected) and not matches_expected_value(expected, value):
        return failed
    return COMPLIANT


def _sanitize_value(raw: Any) -> Any:
    if isinstance(raw, str):
        trimmed = raw.strip()
        return trimmed or None
    if isinstance(raw, list):
        items = [sanitize_string(_as_text(item)) for item in raw]
        return [item for item in items if item]
    return raw


def build_answer_snapshot(
    question: dict[str, Any],
    answer: dict[str, Any] | None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Sanitize and grade the answer given to a question.

    A question nobody answered is graded with no value and no attachments.

    Returns:
        Answer dict ready to be stored on a visit log:
        question_id, value, attachments, compliance_status, evaluated_at, updated_at
    """
    timestamp = (now or utc_now()).isoformat()
    answer = answer or {}

    attachments = [
        sanitize_string(item)
        for item in answer.get("attachments") or []
        if isinstance(item, str)
    ]
    attachments = [item for item in attachments if item]
    value = _sanitize_value(answer.get("value"))

    return {
        "question_id": question["id"],
        "value": value,
        "attachments": attachments,
        "compliance_status": evaluate_answer_status(question, value, attachments),
        "evaluated_at": timestamp,
        "updated_at": timestamp,
    }


def evaluate_answers(
    questions: list[dict[str, Any]],
    answers: list[dict[str, Any]],
    now: datetime | None = None,
) -> tuple[list[dict[str, Any]], float]:
    """
    Grade every template question against the submitted answers.

    The first submitted answer for a question wins; answers to questions
    that are not on the template are ignored.

    Returns:
        (answer snapshots in template order, compliance score)
    """
    now = now or utc_now()
    by_question: dict[str, dict[str, Any]] = {}
    for answer in answers:
        by_question.setdefault(answer.get("question_id"), answer)

    snapshots = [
        build_answer_snapshot(question, by_question.get(question["id"]), now=now)
        for question in questions
    ]
    weights = [_question_weight(question) for question in questions]
    score = compute_compliance_score(
        list(zip(weights, [snapshot["compliance_status"] for snapshot in snapshots]))
    )
    return snapshots, score


def _question_weight(question: dict[str, Any]) -> float:
    weight = (question.get("config") or {}).get("weight")
    return 1 if weight is None else weight


def compute_compliance_score(graded: list[tuple[float, str]]) -> float:
    """
    Weighted compliance percentage.

    Args:
        graded: (weight, status) pairs

    Returns:
        Score between 0 and 100 rounded to 2 decimals; 0 with no weight.
    """
    total = sum(weight for weight, _ in graded)
    if not total:
        return 0

    earned = 0.0
    for weight, status in graded:
        if status == COMPLIANT:
            earned += weight
        elif status == PARTIAL:
            earned += weight * 0.5

    return round(earned / total * 100, 2)


# =============================================================================
# Change History
# =============================================================================

def _same_value(left: Any, right: Any) -> bool:
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(_strict_equals(a, b) for a, b in zip(left, right))
    return _strict_equals(left, right)


def diff_answers(
    previous: list[dict[str, Any]],
    current: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    List the answers that changed between two submissions.

    An answer changed when it is new, or its value, compliance status or
    attachments differ from the previous submission.

    Returns:
        Change entries {question_id, previous, current}; previous is None
        for answers that did not exist before.
    """
    previous_by_question = {answer.get("question_id"): answer for answer in previous}

    changes = []
    for answer in current:
        before = previous_by_question.get(answer["question_id"])
        changed = (
            before is None
            or not _same_value(before.get("value"), answer.get("value"))
            or before.get("compliance_status") != answer.get("compliance_status")
            or "|".join(before.get("attachments") or []) != "|".join(answer.get("attachments") or [])
        )
        if changed:
            changes.append({
                "question_id": answer["question_id"],
                "previous": before,
                "current": answer,
            })

    return changes
