# =============================================================================
# core/models/product.py - Product Schemas
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProductImage(BaseModel):
    """Reference to a product photo in object storage."""

    key: str = Field(..., description="Object path inside the images bucket")
    url: str
    mime_type: str | None = None


class ProductCreate(BaseModel):
    name: str
    factory_barcode: str = Field(..., description="Manufacturer barcode")
    upc_code: str = Field(..., description="UPC code")


class ProductUpdate(BaseModel):
    name: str | None = None
    factory_barcode: str | None = None
    upc_code: str | None = None
    remove_image: bool = False


class ProductResponse(BaseModel):
    id: UUID
    name: str
    factory_barcode: str
    upc_code: str
    image: ProductImage | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
