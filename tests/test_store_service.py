# =============================================================================
# tests/test_store_service.py - Store Service Tests
# =============================================================================
# Tests for store validation, location merging and the spreadsheet import.
# The workbook parser is patched with ready-made parse results.
# =============================================================================

from unittest.mock import patch

import pytest

from app.exceptions import DuplicateError, SpreadsheetImportError, ValidationFailedError
from core.models.store import StoreCreate, StoreUpdate
from core.services.store_service import (
    IMPORT_BACKUP_REASON,
    StoreService,
    normalize_store_number,
    validate_coordinates,
)
from lib.store_excel import StoreSheetParseResult, StoreSheetRow
from tests.conftest import ADMIN_ID, OTHER_STORE_ID, STORE_ID, SUPERVISOR_ID


def new_store(**overrides):
    data = {
        "name": "Pali Desamparados",
        "store_number": " PAL 102 ",
        "format": "Pali",
        "province": "San José",
        "canton": "Desamparados",
        "latitude": 9.8999,
        "longitude": -84.0701,
        "supervisors": [SUPERVISOR_ID],
    }
    data.update(overrides)
    return StoreCreate(**data)


def sheet_row(row_number, name, **fields):
    data = {"format": "Pali", "province": "San José", "canton": "Centro"}
    data.update(fields)
    return StoreSheetRow(row_number=row_number, name=name, **data)


class TestStoreValidation:
    """Tests for store field helpers."""

    def test_normalize_store_number(self):
        assert normalize_store_number(" PAL 102/b ") == "PAL102b"

    def test_validate_coordinates(self):
        assert validate_coordinates("9.9", -84) == (9.9, -84.0)

        with pytest.raises(ValidationFailedError):
            validate_coordinates(None, -84)
        with pytest.raises(ValidationFailedError):
            validate_coordinates(float("nan"), -84)
        with pytest.raises(ValidationFailedError):
            validate_coordinates(95, -84)


class TestStoreWrites:
    """Tests for create, update and delete."""

    def test_create_store(self):
        with patch("core.services.store_service.SupabaseClient") as mock_db, \
             patch("core.services.store_service.UserService") as mock_users:
            mock_db.fetch_first.return_value = None
            mock_db.insert_row.side_effect = lambda table, row: {"id": STORE_ID, **row}
            mock_users.resolve_user_ids.return_value = [SUPERVISOR_ID]

            store = StoreService.create_store(new_store())

        assert store["store_number"] == "PAL102"
        assert store["supervisors"] == [SUPERVISOR_ID]
        assert store["location"] == {
            "latitude": 9.8999,
            "longitude": -84.0701,
            "address": None,
            "place_id": None,
        }

    def test_create_unknown_format(self):
        with pytest.raises(ValidationFailedError):
            StoreService.create_store(new_store(format="Hipermercado"))

    def test_create_duplicate_number(self, sample_store_row):
        with patch("core.services.store_service.SupabaseClient") as mock_db:
            mock_db.fetch_first.return_value = sample_store_row

            with pytest.raises(DuplicateError):
                StoreService.create_store(new_store())

    def test_update_merges_location(self, sample_store_row):
        with patch("core.services.store_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_store_row
            mock_db.update_row.side_effect = lambda table, row_id, data: {**sample_store_row, **data}

            store = StoreService.update_store(STORE_ID, StoreUpdate(latitude=10.01, place_id="abc"))

        assert store["location"] == {
            "latitude": 10.01,
            "longitude": -84.0701,
            "address": "200 m sur de la iglesia",
            "place_id": "abc",
        }

    def test_empty_update_returns_current(self, sample_store_row):
        with patch("core.services.store_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = sample_store_row

            assert StoreService.update_store(STORE_ID, StoreUpdate()) is sample_store_row

        mock_db.update_row.assert_not_called()

    def test_list_by_supervisors_is_sorted_and_unique(self, sample_store_row, other_store_row):
        with patch("core.services.store_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.side_effect = [
                [sample_store_row],
                [other_store_row, sample_store_row],
            ]

            stores = StoreService.list_stores_by_supervisors([SUPERVISOR_ID, ADMIN_ID])

        assert [s["id"] for s in stores] == [OTHER_STORE_ID, STORE_ID]


class TestImportStores:
    """Tests for StoreService.import_stores."""

    def test_parse_errors_abort_import(self):
        parsed = StoreSheetParseResult(errors=[{"row_number": 2, "message": "bad"}])

        with patch("core.services.store_service.parse_store_workbook", return_value=parsed), \
             patch("core.services.store_service.StoreBackupService") as mock_backups:
            with pytest.raises(SpreadsheetImportError) as exc_info:
                StoreService.import_stores(b"xlsx")

        assert exc_info.value.details["errors"] == [{"row_number": 2, "message": "bad"}]
        mock_backups.create_backup.assert_not_called()

    def test_no_rows(self):
        with patch("core.services.store_service.parse_store_workbook", return_value=StoreSheetParseResult()):
            with pytest.raises(SpreadsheetImportError):
                StoreService.import_stores(b"xlsx")

    def test_creates_updates_and_skips(self, sample_store_row):
        # Arrange
        parsed = StoreSheetParseResult(
            rows=[
                sheet_row(2, "PALI desamparados", store_number="PAL-102"),
                sheet_row(3, "Pali Nuevo", store_number="PAL-300", latitude=9.9, longitude=-84.1),
                sheet_row(4, "Pali Sin Mapa", store_number="PAL-301"),
                sheet_row(5, "Pali Medio", store_number="PAL-302", latitude=9.9),
            ],
            provided_columns=["name", "format", "province", "canton", "store_number"],
        )

        with patch("core.services.store_service.parse_store_workbook", return_value=parsed), \
             patch("core.services.store_service.StoreBackupService") as mock_backups, \
             patch.object(StoreService, "list_stores", return_value=[sample_store_row]), \
             patch.object(StoreService, "update_store") as mock_update, \
             patch.object(StoreService, "create_store") as mock_create:
            mock_update.side_effect = lambda store_id, data: {**sample_store_row, "name": data.name}
            mock_create.side_effect = lambda data: {"id": OTHER_STORE_ID, "name": data.name,
                                                    "store_number": data.store_number}

            # Act
            result = StoreService.import_stores(b"xlsx", filename="tiendas.xlsx", created_by=ADMIN_ID)

        # Assert
        assert result["summary"] == {"created": 1, "updated": 1, "skipped": 2}
        assert [w["row_number"] for w in result["warnings"]] == [4, 5]
        assert result["message"].startswith("Import finished")

        backup_kwargs = mock_backups.create_backup.call_args.kwargs
        assert backup_kwargs["reason"] == IMPORT_BACKUP_REASON
        assert backup_kwargs["source_filename"] == "tiendas.xlsx"
        assert backup_kwargs["created_by"] == ADMIN_ID

        update_data = mock_update.call_args.args[1]
        assert update_data.latitude is None
        assert "latitude" not in update_data.model_dump(exclude_unset=True)

    def test_failed_rows_become_warnings(self):
        parsed = StoreSheetParseResult(rows=[
            sheet_row(2, "Pali Nuevo", store_number="PAL-300", latitude=9.9, longitude=-84.1),
        ])

        with patch("core.services.store_service.parse_store_workbook", return_value=parsed), \
             patch("core.services.store_service.StoreBackupService"), \
             patch.object(StoreService, "list_stores", return_value=[]), \
             patch.object(StoreService, "create_store",
                          side_effect=DuplicateError("store", "store_number", "PAL-300")):
            result = StoreService.import_stores(b"xlsx")

        assert result["summary"]["skipped"] == 1
        assert "already exists" in result["warnings"][0]["message"]
        assert result["message"].startswith("No changes were applied")
