# =============================================================================
# tests/test_product_service.py - Product and Storage Service Tests
# =============================================================================
# Tests for barcode normalization, uniqueness, photo replacement and the
# Supabase Storage wrapper.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import (
    DuplicateError,
    ProductNotFoundError,
    StorageUploadError,
    ValidationFailedError,
)
from core.models.product import ProductCreate, ProductUpdate
from core.services.product_service import ProductService, normalize_barcode
from core.services.storage_service import StorageService, resolve_extension

PRODUCT_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"

OLD_IMAGE = {"key": "products/old.jpg", "url": "https://cdn/old.jpg", "mime_type": "image/jpeg"}
NEW_IMAGE = {"key": "products/new.png", "url": "https://cdn/new.png", "mime_type": "image/png"}


@pytest.fixture
def product_row():
    return {
        "id": PRODUCT_ID,
        "name": "Zucaritas 300 g",
        "factory_barcode": "7501234",
        "upc_code": "038000",
        "image": dict(OLD_IMAGE),
    }


def update_echo(table, row_id, data):
    return {"id": row_id, **data}


class TestProductWrites:
    """Tests for ProductService writes."""

    def test_normalize_barcode(self):
        assert normalize_barcode(" 750-1234 abc ") == "7501234ABC"
        assert normalize_barcode(None) == ""

    def test_create_product(self):
        with patch("core.services.product_service.SupabaseClient") as mock_db:
            mock_db.fetch_first.return_value = None
            mock_db.insert_row.side_effect = lambda table, row: {"id": PRODUCT_ID, **row}

            product = ProductService.create_product(
                ProductCreate(name=" Zucaritas ", factory_barcode="750-1234", upc_code="0380 00")
            )

        assert product["name"] == "Zucaritas"
        assert product["factory_barcode"] == "7501234"
        assert product["upc_code"] == "038000"
        assert product["image"] is None

    def test_create_requires_barcodes(self):
        with pytest.raises(ValidationFailedError):
            ProductService.create_product(ProductCreate(name="Zucaritas", factory_barcode="--", upc_code="1"))

    def test_create_duplicate_upc(self, product_row):
        with patch("core.services.product_service.SupabaseClient") as mock_db:
            mock_db.fetch_first.side_effect = [None, product_row]

            with pytest.raises(DuplicateError) as exc_info:
                ProductService.create_product(
                    ProductCreate(name="Otro", factory_barcode="999", upc_code="038000")
                )

        assert exc_info.value.details["field"] == "upc_code"

    def test_new_image_replaces_old(self, product_row):
        with patch("core.services.product_service.SupabaseClient") as mock_db, \
             patch("core.services.product_service.StorageService") as mock_storage:
            mock_db.fetch_row.return_value = product_row
            mock_db.update_row.side_effect = update_echo

            product = ProductService.update_product(PRODUCT_ID, ProductUpdate(), image=NEW_IMAGE)

        assert product["image"] == NEW_IMAGE
        mock_storage.delete_file.assert_called_once_with("products/old.jpg")

    def test_remove_image(self, product_row):
        with patch("core.services.product_service.SupabaseClient") as mock_db, \
             patch("core.services.product_service.StorageService") as mock_storage:
            mock_db.fetch_row.return_value = product_row
            mock_db.update_row.side_effect = update_echo

            product = ProductService.update_product(PRODUCT_ID, ProductUpdate(remove_image=True))

        assert product["image"] is None
        mock_storage.delete_file.assert_called_once_with("products/old.jpg")

    def test_rename_keeps_image(self, product_row):
        with patch("core.services.product_service.SupabaseClient") as mock_db, \
             patch("core.services.product_service.StorageService") as mock_storage:
            mock_db.fetch_row.return_value = product_row
            mock_db.fetch_first.return_value = None
            mock_db.update_row.side_effect = update_echo

            ProductService.update_product(PRODUCT_ID, ProductUpdate(name="Zucaritas 500 g", upc_code="038001"))

        updates = mock_db.update_row.call_args.args[2]
        assert "image" not in updates
        assert mock_db.fetch_first.call_args.kwargs["neq"] == {"id": PRODUCT_ID}
        mock_storage.delete_file.assert_not_called()

    def test_delete_removes_image(self, product_row):
        with patch("core.services.product_service.SupabaseClient") as mock_db, \
             patch("core.services.product_service.StorageService") as mock_storage:
            mock_db.fetch_row.return_value = product_row
            mock_db.delete_row.return_value = True

            ProductService.delete_product(PRODUCT_ID)

        mock_storage.delete_file.assert_called_once_with("products/old.jpg")

    def test_get_invalid_id(self):
        with pytest.raises(ProductNotFoundError):
            ProductService.get_product("zucaritas")


class TestStorageService:
    """Tests for StorageService."""

    def test_resolve_extension(self):
        assert resolve_extension("Foto.JPG", "image/png") == ".jpg"
        assert resolve_extension(None, "image/webp") == ".webp"
        assert resolve_extension("blob", "application/octet-stream") == ""

    def test_upload_product_image(self):
        with patch("core.services.storage_service.SupabaseClient") as mock_db:
            bucket = MagicMock()
            bucket.get_public_url.return_value = "https://cdn/products/x.png"
            mock_db.get_client.return_value.storage.from_.return_value = bucket

            image = StorageService.upload_product_image(b"png", "x.png", "image/png")

        assert image["key"].startswith("products/")
        assert image["key"].endswith(".png")
        assert image["url"] == "https://cdn/products/x.png"
        assert image["mime_type"] == "image/png"
        assert bucket.upload.call_args.kwargs["file_options"]["content-type"] == "image/png"

    def test_upload_failure(self):
        with patch("core.services.storage_service.SupabaseClient") as mock_db:
            bucket = MagicMock()
            bucket.upload.side_effect = RuntimeError("bucket not found")
            mock_db.get_client.return_value.storage.from_.return_value = bucket

            with pytest.raises(StorageUploadError):
                StorageService.upload_product_image(b"png", "x.png", "image/png")

    def test_delete_failure_returns_false(self):
        with patch("core.services.storage_service.SupabaseClient") as mock_db:
            mock_db.get_client.return_value.storage.from_.return_value.remove.side_effect = RuntimeError("x")

            assert StorageService.delete_file("products/x.png") is False
