# =============================================================================
# tests/test_form_service.py - Form Template Service Tests
# =============================================================================
# Tests for question/scope normalization, versioning, publishing and the
# active form lookup. SupabaseClient is patched.
# =============================================================================

from datetime import timedelta
from unittest.mock import patch

import pytest

from app.exceptions import FormTemplateNotFoundError, ValidationFailedError
from core.models.form import (
    FormQuestionInput,
    FormScope,
    FormStatus,
    FormTemplateCreate,
    FormTemplateUpdate,
)
from core.services.form_service import (
    FormService,
    normalize_question,
    normalize_scope,
    scope_matches_store,
)
from lib.utils import utc_now
from tests.conftest import ADMIN_ID, OTHER_STORE_ID, STORE_ID, TEMPLATE_ID


def update_echo(table, row_id, data):
    return {"id": row_id, **data}


# =============================================================================
# Normalization
# =============================================================================

class TestNormalizeQuestion:
    """Tests for normalize_question."""

    def test_defaults(self):
        question = FormQuestionInput(type="yes_no", title="  ¿Exhibición armada? ")

        normalized = normalize_question(question, 3)

        assert normalized["title"] == "¿Exhibición armada?"
        assert normalized["order"] == 3
        assert normalized["required"] is False
        assert normalized["config"]["weight"] == 1
        assert len(normalized["id"]) == 32

    def test_keeps_given_id_and_order(self):
        question = FormQuestionInput(id="q7", type="number", title="Frentes", order=0)

        normalized = normalize_question(question, 5)

        assert normalized["id"] == "q7"
        assert normalized["order"] == 0

    def test_non_positive_weight_becomes_one(self):
        question = FormQuestionInput(type="number", title="Frentes", config={"weight": -2})
        assert normalize_question(question, 0)["config"]["weight"] == 1

    def test_option_label_defaults_to_value(self):
        question = FormQuestionInput(
            type="select",
            title="Estado",
            options=[{"value": " ok "}, {"value": "mal", "label": "Mal estado"}],
        )

        options = normalize_question(question, 0)["options"]

        assert [(o["value"], o["label"]) for o in options] == [("ok", "ok"), ("mal", "Mal estado")]
        assert all(o["id"] for o in options)

    def test_select_needs_options(self):
        question = FormQuestionInput(type="multi_select", title="Marcas")

        with pytest.raises(ValidationFailedError):
            normalize_question(question, 0)

    def test_blank_title(self):
        with pytest.raises(ValidationFailedError):
            normalize_question(FormQuestionInput(type="short_text", title="  "), 0)

    def test_negative_min_photos(self):
        question = FormQuestionInput(type="photo", title="Foto", config={"min_photos": -1})

        with pytest.raises(ValidationFailedError):
            normalize_question(question, 0)


class TestNormalizeScope:
    """Tests for normalize_scope and scope_matches_store."""

    def test_all(self):
        assert normalize_scope(FormScope(kind="all", formats=["Pali"])) == {"kind": "all"}

    def test_formats_are_deduplicated(self):
        scope = FormScope(kind="formats", formats=["Pali", " Pali", "Walmart"])
        assert normalize_scope(scope) == {"kind": "formats", "formats": ["Pali", "Walmart"]}

    def test_unknown_format(self):
        with pytest.raises(ValidationFailedError):
            normalize_scope(FormScope(kind="formats", formats=["Hipermercado"]))

    def test_empty_formats(self):
        with pytest.raises(ValidationFailedError):
            normalize_scope(FormScope(kind="formats", formats=[]))

    def test_stores_drop_invalid_ids(self):
        scope = FormScope(kind="stores", store_ids=[STORE_ID, "nope", STORE_ID])
        assert normalize_scope(scope) == {"kind": "stores", "store_ids": [STORE_ID]}

    def test_stores_need_a_valid_id(self):
        with pytest.raises(ValidationFailedError):
            normalize_scope(FormScope(kind="stores", store_ids=["nope"]))

    def test_scope_matches_store(self):
        assert scope_matches_store({"kind": "all"}, STORE_ID) is True
        assert scope_matches_store({"kind": "stores", "store_ids": [STORE_ID]}, OTHER_STORE_ID) is False
        assert scope_matches_store({"kind": "formats", "formats": ["Pali"]}, STORE_ID, "Pali") is True
        assert scope_matches_store({"kind": "formats", "formats": ["Pali"]}, STORE_ID) is False


# =============================================================================
# Lifecycle
# =============================================================================

class TestTemplateLifecycle:
    """Tests for create, update, publish and delete."""

    def test_create_draft(self):
        data = FormTemplateCreate(
            name=" Auditoría ",
            scope={"kind": "formats", "formats": ["Pali"]},
            questions=[{"type": "yes_no", "title": "¿Limpio?"}],
        )

        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.insert_row.side_effect = lambda table, row: {"id": TEMPLATE_ID, **row}

            template = FormService.create_template(data, created_by=ADMIN_ID)

        assert template["version"] == 1
        assert template["status"] == "draft"
        assert template["name"] == "Auditoría"
        assert template["scope_kind"] == "formats"
        assert template["created_by"] == ADMIN_ID

    def test_create_without_questions(self):
        data = FormTemplateCreate(name="Vacío", questions=[])

        with pytest.raises(ValidationFailedError):
            FormService.create_template(data)

    def test_update_bumps_version(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row
            mock_db.update_row.side_effect = update_echo

            FormService.update_template(
                TEMPLATE_ID,
                FormTemplateUpdate(name="Auditoría v2", scope={"kind": "stores", "store_ids": [STORE_ID]}),
                updated_by=ADMIN_ID,
            )

        changes = mock_db.update_row.call_args.args[2]
        assert changes["version"] == 4
        assert changes["name"] == "Auditoría v2"
        assert changes["scope_kind"] == "stores"
        assert changes["updated_by"] == ADMIN_ID

    def test_empty_update_returns_current(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row

            template = FormService.update_template(TEMPLATE_ID, FormTemplateUpdate())

        assert template is sample_template_row
        mock_db.update_row.assert_not_called()

    def test_update_rejects_empty_questions(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row

            with pytest.raises(ValidationFailedError):
                FormService.update_template(TEMPLATE_ID, FormTemplateUpdate(questions=[]))

    def test_publish_with_scope(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row
            mock_db.update_row.side_effect = update_echo

            template = FormService.publish_template(
                TEMPLATE_ID, FormScope(kind="formats", formats=["Walmart"])
            )

        assert template["status"] == FormStatus.PUBLISHED.value
        assert template["scope"] == {"kind": "formats", "formats": ["Walmart"]}
        assert template["version"] == 4

    def test_archive(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row
            mock_db.update_row.side_effect = update_echo

            template = FormService.archive_template(TEMPLATE_ID)

        assert template["status"] == "archived"

    def test_get_sorts_questions_by_order(self, sample_template_row):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_template_row

            template = FormService.get_template(TEMPLATE_ID)

        assert [q["id"] for q in template["questions"]] == ["q1", "q2"]
        assert [q["id"] for q in sample_template_row["questions"]] == ["q2", "q1"]

    def test_get_unknown_template(self):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = None

            with pytest.raises(FormTemplateNotFoundError):
                FormService.get_template(TEMPLATE_ID)

    def test_delete_invalid_id(self):
        with pytest.raises(FormTemplateNotFoundError):
            FormService.delete_template("not-a-uuid")


# =============================================================================
# Listing / Active Form
# =============================================================================

class TestTemplateLookup:
    """Tests for list_templates and find_active_for_store."""

    def test_list_filters(self):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = []

            FormService.list_templates(
                statuses=[FormStatus.PUBLISHED, FormStatus.DRAFT],
                store_format="Pali",
            )

        kwargs = mock_db.fetch_rows.call_args.kwargs
        assert kwargs["in_filters"] == {"status": ["published", "draft"]}
        assert kwargs["contains"] == {"scope": {"formats": ["Pali"]}}

    def test_list_for_store(self):
        rows = [
            {"id": "a", "scope": {"kind": "all"}},
            {"id": "b", "scope": {"kind": "stores", "store_ids": [OTHER_STORE_ID]}},
            {"id": "c", "scope": {"kind": "formats", "formats": ["Walmart"]}},
            {"id": "d", "scope": {"kind": "stores", "store_ids": [STORE_ID]}},
        ]
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = rows

            templates = FormService.list_templates(store_id=STORE_ID)

        assert [t["id"] for t in templates] == ["a", "c", "d"]

    def test_active_picks_newest_matching(self):
        now = utc_now()
        rows = [
            {"id": "future", "version": 9, "scope": {"kind": "all"},
             "updated_at": (now + timedelta(hours=1)).isoformat()},
            {"id": "walmart", "version": 1, "scope": {"kind": "formats", "formats": ["Walmart"]},
             "updated_at": (now - timedelta(minutes=1)).isoformat()},
            {"id": "pali", "version": 2, "scope": {"kind": "formats", "formats": ["Pali"]},
             "updated_at": (now - timedelta(hours=1)).isoformat()},
            {"id": "all", "version": 5, "scope": {"kind": "all"},
             "updated_at": (now - timedelta(days=1)).isoformat()},
        ]
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = rows

            active = FormService.find_active_for_store(STORE_ID, "Pali")

        assert active["id"] == "pali"
        assert mock_db.fetch_rows.call_args.kwargs["filters"] == {"status": "published"}

    def test_active_ties_break_on_version(self):
        updated_at = (utc_now() - timedelta(hours=1)).isoformat()
        rows = [
            {"id": "v1", "version": 1, "scope": {"kind": "all"}, "updated_at": updated_at},
            {"id": "v2", "version": 2, "scope": {"kind": "stores", "store_ids": [STORE_ID]},
             "updated_at": updated_at},
        ]
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = rows

            assert FormService.find_active_for_store(STORE_ID)["id"] == "v2"

    def test_active_none(self):
        with patch("core.services.form_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = [
                {"id": "x", "version": 1, "scope": {"kind": "stores", "store_ids": [OTHER_STORE_ID]},
                 "updated_at": utc_now().isoformat()},
            ]

            assert FormService.find_active_for_store(STORE_ID) is None
            assert FormService.find_active_for_store("bad-id") is None
