# =============================================================================
# core/models/store.py - Store Schemas
# =============================================================================
# API contract for stores, store spreadsheet imports and store backups.
# A store belongs to one retail format and carries a geocoded location that
# routes use to compute driving directions.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class StoreFormat(str, Enum):
    """Retail formats (chains) a store can belong to."""
    WALMART = "Walmart"
    MAS_X_MENOS = "Mas x Menos"
    PALI = "Pali"
    MAXI_PALI = "Maxi Pali"


STORE_FORMAT_OPTIONS = [store_format.value for store_format in StoreFormat]


class StoreLocation(BaseModel):
    """Geographic position of a store."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str | None = None
    place_id: str | None = Field(default=None, description="Google place id")


class StoreCreate(BaseModel):
    """
    Schema for creating a store.

    Example:
        {
            "name": "Pali Desamparados",
            "store_number": "PAL-102",
            "format": "Pali",
            "province": "San José",
            "canton": "Desamparados",
            "latitude": 9.8999,
            "longitude": -84.0701
        }
    """

    name: str
    store_number: str
    format: str = Field(..., description=f"One of: {', '.join(STORE_FORMAT_OPTIONS)}")
    province: str
    canton: str
    latitude: float
    longitude: float
    address: str | None = None
    place_id: str | None = None
    supervisors: list[str] = Field(default_factory=list, description="Supervisor user ids")


class StoreUpdate(BaseModel):
    """Partial update. Location fields are merged with the current location."""

    name: str | None = None
    store_number: str | None = None
    format: str | None = None
    province: str | None = None
    canton: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    place_id: str | None = None
    supervisors: list[str] | None = None


class StoreResponse(BaseModel):
    """Store data returned to clients."""

    id: UUID
    name: str
    store_number: str
    format: str
    province: str
    canton: str
    supervisors: list[str] = Field(default_factory=list)
    location: StoreLocation
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# Spreadsheet Import / Backups
# =============================================================================

class StoreImportSummary(BaseModel):
    """Counts reported after a spreadsheet import."""

    created: int = 0
    updated: int = 0
    skipped: int = 0


class ImportIssue(BaseModel):
    """Error or warning found while reading a spreadsheet row."""

    row_number: int | None = None
    message: str


class StoreImportResponse(BaseModel):
    """Result of POST /stores/import."""

    summary: StoreImportSummary
    warnings: list[ImportIssue] = Field(default_factory=list)
    message: str


class StoreBackupResponse(BaseModel):
    """
    Snapshot of every store taken before a bulk import.

    The stores themselves are omitted from list responses; only the
    metadata is returned.
    """

    id: UUID
    created_at: datetime
    reason: str
    created_by: str | None = None
    source_filename: str | None = None
    columns: list[str] = Field(default_factory=list)
    total_stores: int = 0
