# =============================================================================
# app/routers/products.py - Product Endpoints
# =============================================================================
# Product catalogue CRUD. Updates accept either a JSON body or a multipart
# form carrying an optional product photo:
#
#   name, factory_barcode, upc_code  - text fields
#   remove_image                     - "true" to drop the current photo
#   image                            - image/* file, up to MAX_IMAGE_SIZE_MB
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Request, status
from pydantic import ValidationError

from app.auth import AuthUser, get_current_user, require_admin
from app.config import settings
from app.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    SupervisionException,
    ValidationFailedError,
)
from core.models.product import ProductCreate, ProductResponse, ProductUpdate
from core.services.product_service import ProductService
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()

TEXT_FIELDS = ("name", "factory_barcode", "upc_code")


async def _read_update(request: Request) -> tuple[ProductUpdate, Any]:
    """
    Parse a JSON or multipart update body.

    Returns:
        (field changes, uploaded image file or None)
    """
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            return ProductUpdate.model_validate(await request.json()), None
        except (ValueError, ValidationError) as e:
            raise ValidationFailedError(f"Invalid product update: {e}")

    form = await request.form()
    fields = {
        key: str(form[key]) for key in TEXT_FIELDS
        if key in form and isinstance(form[key], str)
    }
    remove_image = form.get("remove_image") == "true"

    image = form.get("image")
    if image is None or isinstance(image, str) or not image.size:
        return ProductUpdate(**fields, remove_image=remove_image), None

    if not (image.content_type or "").startswith("image/"):
        raise InvalidFileTypeError(image.filename or "image", ["image/*"])
    if image.size > settings.max_image_size_bytes:
        raise FileTooLargeError(image.size / (1024 * 1024), settings.MAX_IMAGE_SIZE_MB)

    # A new photo replaces the current one; remove_image is moot.
    return ProductUpdate(**fields), image


@router.get("", response_model=list[ProductResponse])
async def list_products(
    user: AuthUser = Depends(get_current_user),
    search: Annotated[str | None, Query(description="Match on name or either code")] = None,
):
    return ProductService.list_products(search=search)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreate,
    user: AuthUser = Depends(require_admin),
):
    """Create a product; barcodes are normalized to upper-case alphanumerics."""
    return ProductService.create_product(request)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: Annotated[str, Path(description="Product UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return ProductService.get_product(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    request: Request,
    product_id: Annotated[str, Path(description="Product UUID")],
    user: AuthUser = Depends(require_admin),
):
    """
    Update a product, optionally replacing or removing its photo.

    The replaced photo is deleted from storage after the product is saved;
    a newly uploaded photo is deleted again when the save fails.
    """
    ProductService.get_product(product_id)
    changes, image_file = await _read_update(request)

    uploaded = None
    if image_file is not None:
        uploaded = StorageService.upload_product_image(
            await image_file.read(),
            filename=image_file.filename,
            mime_type=image_file.content_type,
        )

    try:
        return ProductService.update_product(product_id, changes, image=uploaded)
    except (SupervisionException, SupabaseClientError):
        if uploaded:
            StorageService.delete_file(uploaded["key"])
        raise


@router.delete("/{product_id}")
async def delete_product(
    product_id: Annotated[str, Path(description="Product UUID")],
    user: AuthUser = Depends(require_admin),
):
    ProductService.delete_product(product_id)
    return {"product_id": product_id, "message": "Product deleted successfully"}
