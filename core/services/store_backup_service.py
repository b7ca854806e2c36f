# =============================================================================
# core/services/store_backup_service.py - Store Backups
# =============================================================================
# Keeps a full copy of the stores table before bulk changes so an
# administrator can recover from a bad spreadsheet import.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "store_backups"


class StoreBackupService:
    """Service for store backup snapshots."""

    @staticmethod
    def create_backup(
        stores: list[dict[str, Any]],
        reason: str,
        created_by: str | None = None,
        source_filename: str | None = None,
        columns: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Save a snapshot of stores.

        Args:
            stores: Store rows to keep
            reason: Why the backup was taken
            created_by: User id of the administrator
            source_filename: Spreadsheet that triggered the backup
            columns: Spreadsheet columns the import provided
        """
        backup = SupabaseClient.insert_row(TABLE, {
            "created_at": utc_now_iso(),
            "reason": reason,
            "created_by": created_by,
            "source_filename": source_filename,
            "columns": columns or [],
            "total_stores": len(stores),
            "stores": stores,
        })
        logger.info(f"Created store backup {backup['id']} with {len(stores)} stores")
        return backup

    @staticmethod
    def list_backups(limit: int = 10) -> list[dict[str, Any]]:
        """Latest backups first, without the stored store list."""
        return SupabaseClient.fetch_rows(
            TABLE,
            columns="id, created_at, reason, created_by, source_filename, columns, total_stores",
            order_by="created_at",
            desc=True,
            limit=limit,
        )
