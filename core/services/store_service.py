# =============================================================================
# core/services/store_service.py - Store Business Logic
# =============================================================================
# Handles store CRUD, supervisor assignment and the bulk spreadsheet import.
# Store numbers are unique and normalized to [0-9A-Za-z-]; locations must be
# valid WGS84 coordinates because routes are computed from them.
# =============================================================================

import logging
import math
import re
from typing import Any

from app.exceptions import (
    DuplicateError,
    SpreadsheetImportError,
    StoreNotFoundError,
    SupervisionException,
    ValidationFailedError,
)
from core.models.store import STORE_FORMAT_OPTIONS, StoreCreate, StoreUpdate
from core.models.user import SUPERVISOR_ROLES
from core.services.store_backup_service import StoreBackupService
from core.services.user_service import UserService
from lib.store_excel import normalize_store_name_key, parse_store_workbook
from lib.supabase_client import SupabaseClient
from lib.utils import dedupe, escape_search_term, is_valid_uuid, sanitize_string, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "stores"

SEARCH_COLUMNS = ["name", "store_number", "province", "canton"]

IMPORT_BACKUP_REASON = "Bulk import from Excel"


def normalize_store_number(value: str | None) -> str:
    return re.sub(r"[^0-9A-Za-z-]", "", value or "")


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """
    Check that a latitude/longitude pair is usable.

    Raises:
        ValidationFailedError: If either value is missing, not finite or out of range
    """
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValidationFailedError("The GPS coordinates are invalid")

    if not math.isfinite(lat) or not math.isfinite(lng):
        raise ValidationFailedError("The GPS coordinates are invalid")
    if not -90 <= lat <= 90:
        raise ValidationFailedError("Latitude must be between -90 and 90")
    if not -180 <= lng <= 180:
        raise ValidationFailedError("Longitude must be between -180 and 180")
    return lat, lng


def _validate_format(value: str) -> str:
    if value not in STORE_FORMAT_OPTIONS:
        raise ValidationFailedError(
            f"Invalid store format: {value}",
            suggestion=f"Use one of: {', '.join(STORE_FORMAT_OPTIONS)}",
        )
    return value


def _required(value: str | None, label: str) -> str:
    cleaned = sanitize_string(value)
    if not cleaned:
        raise ValidationFailedError(f"The {label} is required")
    return cleaned


class StoreService:
    """Service for store management operations."""

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def list_stores(
        search: str | None = None,
        store_format: str | None = None,
        province: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List stores, newest first.

        Args:
            search: Case-insensitive match on name, number, province or canton
            store_format: Exact format
            province: Case-insensitive province match
        """
        term = escape_search_term(sanitize_string(search))
        stores = SupabaseClient.fetch_rows(
            TABLE,
            filters={"format": store_format} if store_format else None,
            search=term or None,
            search_columns=SEARCH_COLUMNS,
            order_by="created_at",
            desc=True,
        )

        province_term = sanitize_string(province).lower()
        if province_term:
            stores = [
                store for store in stores
                if province_term in (store.get("province") or "").lower()
            ]
        return stores

    @staticmethod
    def get_store(store_id: str) -> dict[str, Any]:
        """
        Raises:
            StoreNotFoundError: If the id is invalid or unknown
        """
        if not is_valid_uuid(store_id):
            raise StoreNotFoundError(str(store_id))
        store = SupabaseClient.fetch_row(TABLE, store_id)
        if not store:
            raise StoreNotFoundError(str(store_id))
        return store

    @staticmethod
    def get_stores_by_ids(store_ids: list[str]) -> list[dict[str, Any]]:
        ids = [store_id for store_id in dedupe(store_ids) if is_valid_uuid(store_id)]
        if not ids:
            return []
        return SupabaseClient.fetch_rows(TABLE, in_filters={"id": ids})

    @staticmethod
    def list_stores_by_supervisors(supervisor_ids: list[str]) -> list[dict[str, Any]]:
        """Stores supervised by any of the given users, ordered by name."""
        stores: dict[str, dict[str, Any]] = {}
        for supervisor_id in dedupe(supervisor_ids):
            for store in SupabaseClient.fetch_rows(TABLE, contains={"supervisors": [supervisor_id]}):
                stores.setdefault(str(store["id"]), store)
        return sorted(stores.values(), key=lambda store: (store.get("name") or "").lower())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    def _ensure_unique_number(store_number: str, exclude_id: str | None = None) -> None:
        duplicate = SupabaseClient.fetch_first(
            TABLE,
            filters={"store_number": store_number},
            neq={"id": exclude_id} if exclude_id else None,
        )
        if duplicate:
            raise DuplicateError("store", "store_number", store_number)

    @staticmethod
    def create_store(data: StoreCreate) -> dict[str, Any]:
        """
        Create a store.

        Supervisor ids that are not admins or supervisors are dropped.

        Raises:
            ValidationFailedError: On missing or malformed fields
            DuplicateError: If the store number is taken
        """
        name = _required(data.name, "store name")
        store_number = normalize_store_number(data.store_number)
        if not store_number:
            raise ValidationFailedError("The store number is required")
        store_format = _validate_format(data.format)
        province = _required(data.province, "province")
        canton = _required(data.canton, "canton")
        latitude, longitude = validate_coordinates(data.latitude, data.longitude)

        StoreService._ensure_unique_number(store_number)
        supervisors = UserService.resolve_user_ids(data.supervisors, SUPERVISOR_ROLES)

        now = utc_now_iso()
        store = SupabaseClient.insert_row(TABLE, {
            "name": name,
            "store_number": store_number,
            "format": store_format,
            "province": province,
            "canton": canton,
            "supervisors": supervisors,
            "location": {
                "latitude": latitude,
                "longitude": longitude,
                "address": sanitize_string(data.address) or None,
                "place_id": sanitize_string(data.place_id) or None,
            },
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created store {store['id']} ({store_number})")
        return store

    @staticmethod
    def update_store(store_id: str, data: StoreUpdate) -> dict[str, Any]:
        """
        Apply a partial update.

        Location fields are merged into the current location; omitted
        coordinates keep their current value.
        """
        current = StoreService.get_store(store_id)
        fields = data.model_dump(exclude_unset=True)
        updates: dict[str, Any] = {}

        if fields.get("name") is not None:
            updates["name"] = _required(fields["name"], "store name")

        if fields.get("store_number") is not None:
            store_number = normalize_store_number(fields["store_number"])
            if not store_number:
                raise ValidationFailedError("The store number is required")
            StoreService._ensure_unique_number(store_number, exclude_id=store_id)
            updates["store_number"] = store_number

        if fields.get("format") is not None:
            updates["format"] = _validate_format(fields["format"])

        if fields.get("province") is not None:
            updates["province"] = _required(fields["province"], "province")

        if fields.get("canton") is not None:
            updates["canton"] = _required(fields["canton"], "canton")

        if fields.get("supervisors") is not None:
            updates["supervisors"] = UserService.resolve_user_ids(fields["supervisors"], SUPERVISOR_ROLES)

        location_keys = {"latitude", "longitude", "address", "place_id"}
        if location_keys & fields.keys():
            location = dict(current.get("location") or {})
            latitude = fields.get("latitude")
            longitude = fields.get("longitude")
            latitude, longitude = validate_coordinates(
                location.get("latitude") if latitude is None else latitude,
                location.get("longitude") if longitude is None else longitude,
            )
            location["latitude"] = latitude
            location["longitude"] = longitude
            if "address" in fields:
                location["address"] = sanitize_string(fields["address"]) or None
            if "place_id" in fields:
                location["place_id"] = sanitize_string(fields["place_id"]) or None
            updates["location"] = location

        if not updates:
            return current

        updates["updated_at"] = utc_now_iso()
        store = SupabaseClient.update_row(TABLE, store_id, updates)
        if not store:
            raise StoreNotFoundError(store_id)

        logger.info(f"Updated store {store_id}: {sorted(updates)}")
        return store

    @staticmethod
    def delete_store(store_id: str) -> None:
        if not is_valid_uuid(store_id) or not SupabaseClient.delete_row(TABLE, store_id):
            raise StoreNotFoundError(str(store_id))
        logger.info(f"Deleted store {store_id}")

    # -------------------------------------------------------------------------
    # Spreadsheet Import
    # -------------------------------------------------------------------------

    @staticmethod
    def import_stores(
        content: bytes,
        filename: str | None = None,
        created_by: str | None = None,
    ) -> dict[str, Any]:
        """
        Create or update stores from an uploaded workbook.

        Rows are matched to existing stores by name (accent/case-insensitive)
        and then by store number. Every current store is backed up before
        the first write. Rows that fail are skipped and reported as warnings.

        Returns:
            {"summary": {created, updated, skipped}, "warnings": [...], "message": str}

        Raises:
            SpreadsheetImportError: If the workbook has errors or no rows
        """
        parsed = parse_store_workbook(content)

        if parsed.errors:
            raise SpreadsheetImportError(
                "The file has errors. Fix them and try again.",
                errors=parsed.errors,
                warnings=parsed.warnings,
            )
        if not parsed.rows:
            raise SpreadsheetImportError(
                "The file has no store rows to import",
                errors=[],
                warnings=parsed.warnings,
            )

        existing_stores = StoreService.list_stores()
        StoreBackupService.create_backup(
            existing_stores,
            reason=IMPORT_BACKUP_REASON,
            created_by=created_by,
            source_filename=filename,
            columns=parsed.provided_columns,
        )

        by_name = {normalize_store_name_key(s["name"]): s for s in existing_stores}
        by_number = {(s.get("store_number") or "").lower(): s for s in existing_stores}

        summary = {"created": 0, "updated": 0, "skipped": 0}
        warnings = list(parsed.warnings)

        def skip(row_number: int, message: str) -> None:
            warnings.append({"row_number": row_number, "message": message})
            summary["skipped"] += 1

        for row in parsed.rows:
            latitude, longitude = row.latitude, row.longitude

            if (latitude is None) != (longitude is None):
                skip(row.row_number, "Latitude and longitude must be imported together. Row skipped.")
                continue
            if latitude is not None and not -90 <= latitude <= 90:
                skip(row.row_number, "Latitude is out of range (-90 to 90).")
                continue
            if longitude is not None and not -180 <= longitude <= 180:
                skip(row.row_number, "Longitude is out of range (-180 to 180).")
                continue

            existing = by_name.get(normalize_store_name_key(row.name))
            if existing is None and row.store_number:
                existing = by_number.get(row.store_number.strip().lower())

            try:
                if existing:
                    optional = {
                        "latitude": latitude,
                        "longitude": longitude,
                        "address": row.address,
                        "place_id": row.place_id,
                    }
                    stored = StoreService.update_store(str(existing["id"]), StoreUpdate(
                        name=row.name,
                        store_number=row.store_number or existing.get("store_number"),
                        format=row.format,
                        province=row.province,
                        canton=row.canton,
                        supervisors=row.supervisors,
                        **{key: value for key, value in optional.items() if value is not None},
                    ))
                    by_name.pop(normalize_store_name_key(existing["name"]), None)
                    by_number.pop((existing.get("store_number") or "").lower(), None)
                    summary["updated"] += 1
                else:
                    if latitude is None:
                        skip(row.row_number, "New stores need latitude and longitude. Row skipped.")
                        continue
                    stored = StoreService.create_store(StoreCreate(
                        name=row.name,
                        store_number=row.store_number or "",
                        format=row.format,
                        province=row.province,
                        canton=row.canton,
                        supervisors=row.supervisors,
                        latitude=latitude,
                        longitude=longitude,
                        address=row.address,
                        place_id=row.place_id,
                    ))
                    summary["created"] += 1
            except SupervisionException as e:
                logger.warning(f"Store import row {row.row_number} failed: {e.message}")
                skip(row.row_number, e.message)
                continue

            by_name[normalize_store_name_key(stored["name"])] = stored
            by_number[(stored.get("store_number") or "").lower()] = stored

        if summary["skipped"] == len(parsed.rows):
            message = "No changes were applied. Review the import warnings."
        else:
            message = (
                f"Import finished: {summary['created']} created, "
                f"{summary['updated']} updated, {summary['skipped']} skipped."
            )

        logger.info(f"Store import from {filename or 'upload'}: {summary}")
        return {"summary": summary, "warnings": warnings, "message": message}
