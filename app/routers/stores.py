# =============================================================================
# app/routers/stores.py - Store Endpoints
# =============================================================================
# Store CRUD plus spreadsheet export/import and import backups.
# Reads are open to any authenticated user; writes are admin-only.
#
# Fixed paths (/export, /import, /backups) are declared before /{store_id}
# so they are not captured by the id route.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from app.auth import AuthUser, get_current_user, require_admin
from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationFailedError
from core.models.store import (
    StoreBackupResponse,
    StoreCreate,
    StoreImportResponse,
    StoreResponse,
    StoreUpdate,
)
from core.services.store_backup_service import StoreBackupService
from core.services.store_service import StoreService
from lib.store_excel import STORE_COLUMNS, build_store_workbook
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ALLOWED_IMPORT_EXTENSIONS = [".xlsx"]


def _parse_columns(raw_values: list[str] | None) -> list[str] | None:
    """
    Split ?columns=a,b&columns=c into known column keys.

    Raises:
        ValidationFailedError: If any key is unknown
    """
    keys: list[str] = []
    invalid: list[str] = []
    for raw in raw_values or []:
        for value in raw.split(","):
            value = value.strip()
            if not value:
                continue
            if value not in STORE_COLUMNS:
                invalid.append(value)
            elif value not in keys:
                keys.append(value)

    if invalid:
        raise ValidationFailedError(
            f"Invalid columns requested: {', '.join(invalid)}",
            suggestion=f"Valid columns: {', '.join(STORE_COLUMNS)}",
        )
    return keys or None


# =============================================================================
# Spreadsheet Endpoints
# =============================================================================

@router.get("/export")
async def export_stores(
    user: AuthUser = Depends(get_current_user),
    columns: Annotated[list[str] | None, Query(description="Column keys, comma separated")] = None,
):
    """
    Download every store as an .xlsx workbook.

    Pass ?columns=name,format,... to choose columns and their order.
    """
    keys = _parse_columns(columns)
    content = build_store_workbook(StoreService.list_stores(), keys)
    filename = f"tiendas-{utc_now().date().isoformat()}.xlsx"

    return StreamingResponse(
        iter([content]),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        }
    )


@router.post("/import", response_model=StoreImportResponse)
async def import_stores(
    file: Annotated[UploadFile, File(description="Store workbook (.xlsx)")],
    user: AuthUser = Depends(require_admin),
):
    """
    Create or update stores from a workbook.

    All current stores are backed up before any change. Rows that cannot be
    applied are skipped and reported as warnings.
    """
    filename = file.filename or "tiendas.xlsx"
    file_ext = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if file_ext not in ALLOWED_IMPORT_EXTENSIONS:
        raise InvalidFileTypeError(filename, ALLOWED_IMPORT_EXTENSIONS)

    content = await file.read()
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    logger.info(f"Importing stores from {filename} ({len(content)} bytes)")
    return StoreService.import_stores(content, filename=filename, created_by=str(user.id))


@router.get("/backups", response_model=list[StoreBackupResponse])
async def list_store_backups(
    user: AuthUser = Depends(require_admin),
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum backups")] = 10,
):
    """Latest store backups, newest first."""
    return StoreBackupService.list_backups(limit=limit)


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.get("", response_model=list[StoreResponse])
async def list_stores(
    user: AuthUser = Depends(get_current_user),
    search: Annotated[str | None, Query(description="Match on name, number, province or canton")] = None,
    format: Annotated[str | None, Query(description="Store format")] = None,
    province: Annotated[str | None, Query(description="Province")] = None,
):
    return StoreService.list_stores(search=search, store_format=format, province=province)


@router.post("", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    request: StoreCreate,
    user: AuthUser = Depends(require_admin),
):
    return StoreService.create_store(request)


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store(
    store_id: Annotated[str, Path(description="Store UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return StoreService.get_store(store_id)


@router.put("/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: Annotated[str, Path(description="Store UUID")],
    request: StoreUpdate,
    user: AuthUser = Depends(require_admin),
):
    """Partially update a store; location fields merge with the current location."""
    return StoreService.update_store(store_id, request)


@router.delete("/{store_id}")
async def delete_store(
    store_id: Annotated[str, Path(description="Store UUID")],
    user: AuthUser = Depends(require_admin),
):
    StoreService.delete_store(store_id)
    return {"store_id": store_id, "message": "Store deleted successfully"}
