# =============================================================================
# core/services/product_service.py - Product Business Logic
# =============================================================================
# Handles the product catalogue. Both barcodes are normalized to upper-case
# alphanumerics and must be unique. A product may carry one photo kept in
# object storage; replacing or removing it deletes the old object.
# =============================================================================

import logging
import re
from typing import Any

from app.exceptions import DuplicateError, ProductNotFoundError, ValidationFailedError
from core.models.product import ProductCreate, ProductUpdate
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient
from lib.utils import escape_search_term, is_valid_uuid, sanitize_string, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "products"


def normalize_barcode(value: str | None) -> str:
    """' 750-1234 abc ' -> '7501234ABC'."""
    return re.sub(r"[^0-9A-Za-z]", "", sanitize_string(value)).upper()


class ProductService:
    """Service for product catalogue operations."""

    @staticmethod
    def list_products(search: str | None = None) -> list[dict[str, Any]]:
        term = escape_search_term(sanitize_string(search))
        return SupabaseClient.fetch_rows(
            TABLE,
            search=term or None,
            search_columns=["name", "factory_barcode", "upc_code"],
            order_by="created_at",
            desc=True,
        )

    @staticmethod
    def get_product(product_id: str) -> dict[str, Any]:
        if not is_valid_uuid(product_id):
            raise ProductNotFoundError(str(product_id))
        product = SupabaseClient.fetch_row(TABLE, product_id)
        if not product:
            raise ProductNotFoundError(str(product_id))
        return product

    @staticmethod
    def _ensure_unique(field: str, value: str, exclude_id: str | None = None) -> None:
        duplicate = SupabaseClient.fetch_first(
            TABLE,
            filters={field: value},
            neq={"id": exclude_id} if exclude_id else None,
        )
        if duplicate:
            raise DuplicateError("product", field, value)

    @staticmethod
    def create_product(data: ProductCreate) -> dict[str, Any]:
        """
        Create a product.

        Raises:
            ValidationFailedError: If name or a barcode is blank
            DuplicateError: If a barcode is already used
        """
        name = sanitize_string(data.name)
        factory_barcode = normalize_barcode(data.factory_barcode)
        upc_code = normalize_barcode(data.upc_code)

        if not name:
            raise ValidationFailedError("The product name is required")
        if not factory_barcode:
            raise ValidationFailedError("The factory barcode is required")
        if not upc_code:
            raise ValidationFailedError("The UPC code is required")

        ProductService._ensure_unique("factory_barcode", factory_barcode)
        ProductService._ensure_unique("upc_code", upc_code)

        now = utc_now_iso()
        product = SupabaseClient.insert_row(TABLE, {
            "name": name,
            "factory_barcode": factory_barcode,
            "upc_code": upc_code,
            "image": None,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created product {product['id']} ({upc_code})")
        return product

    @staticmethod
    def update_product(
        product_id: str,
        data: ProductUpdate,
        image: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Apply a partial update.

        Args:
            product_id: Product UUID
            data: Field changes; remove_image drops the current photo
            image: Newly uploaded image reference, replacing the current one

        Returns:
            The updated product row
        """
        current = ProductService.get_product(product_id)
        fields = data.model_dump(exclude_unset=True)
        updates: dict[str, Any] = {}

        if fields.get("name") is not None:
            name = sanitize_string(fields["name"])
            if not name:
                raise ValidationFailedError("The product name is required")
            updates["name"] = name

        if fields.get("factory_barcode") is not None:
            factory_barcode = normalize_barcode(fields["factory_barcode"])
            if not factory_barcode:
                raise ValidationFailedError("The factory barcode is required")
            ProductService._ensure_unique("factory_barcode", factory_barcode, exclude_id=product_id)
            updates["factory_barcode"] = factory_barcode

        if fields.get("upc_code") is not None:
            upc_code = normalize_barcode(fields["upc_code"])
            if not upc_code:
                raise ValidationFailedError("The UPC code is required")
            ProductService._ensure_unique("upc_code", upc_code, exclude_id=product_id)
            updates["upc_code"] = upc_code

        previous_image = current.get("image") or None
        if image is not None:
            updates["image"] = image
        elif data.remove_image and previous_image:
            updates["image"] = None

        if not updates:
            return current

        updates["updated_at"] = utc_now_iso()
        product = SupabaseClient.update_row(TABLE, product_id, updates)
        if not product:
            raise ProductNotFoundError(product_id)

        if "image" in updates and previous_image and previous_image.get("key"):
            StorageService.delete_file(previous_image["key"])

        logger.info(f"Updated product {product_id}: {sorted(updates)}")
        return product

    @staticmethod
    def delete_product(product_id: str) -> None:
        """Delete a product and its stored photo."""
        product = ProductService.get_product(product_id)
        if not SupabaseClient.delete_row(TABLE, product_id):
            raise ProductNotFoundError(product_id)

        image = product.get("image") or {}
        if image.get("key"):
            StorageService.delete_file(image["key"])
        logger.info(f"Deleted product {product_id}")
