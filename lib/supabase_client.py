# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and exposes a small set of table helpers used by every service:
# - fetch_row / fetch_rows / fetch_first for reads
# - insert_row / update_row / upsert_row / delete_row for writes
#
# Documents (routes, form templates, visit logs) keep their nested data in
# jsonb columns, so a single row read returns the whole document.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   store = SupabaseClient.fetch_row("stores", store_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries an error code and a suggestion describing how to fix it.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        stores = SupabaseClient.fetch_rows(
            "stores",
            filters={"format": "Pali"},
            order_by="name",
        )
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_row(cls, table: str, row_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a single row by primary key.

        Returns:
            Row dict, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .select("*")
                .eq("id", row_id_str)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table} row: {e}",
                code="FETCH_ROW_FAILED",
                suggestion=f"Check that the {table} table exists and is accessible",
                details={"table": table, "id": row_id_str}
            )

    @classmethod
    def fetch_rows(
        cls,
        table: str,
        filters: dict[str, Any] | None = None,
        in_filters: dict[str, list[Any]] | None = None,
        contains: dict[str, Any] | None = None,
        gte: dict[str, Any] | None = None,
        lte: dict[str, Any] | None = None,
        neq: dict[str, Any] | None = None,
        search: str | None = None,
        search_columns: list[str] | None = None,
        order_by: str | list[tuple[str, bool]] | None = None,
        desc: bool = False,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """
        Fetch rows matching a combination of filters.

        Args:
            table: Table name
            filters: Equality filters {column: value}
            in_filters: Membership filters {column: [values]}
            contains: jsonb/array containment filters {column: [values]}
            gte / lte: Range filters {column: value}
            neq: Inequality filters {column: value}
            search: Case-insensitive substring matched against search_columns,
                already escaped with lib.utils.escape_search_term
            search_columns: Columns searched with ILIKE, OR-ed together
            order_by: Column name, or list of (column, descending) pairs
            desc: Sort direction when order_by is a single column
            limit: Maximum rows to return
            columns: Column selection

        Returns:
            List of row dicts (possibly empty)

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)

            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            for column, values in (in_filters or {}).items():
                query = query.in_(column, values)
            for column, values in (contains or {}).items():
                query = query.contains(column, values)
            for column, value in (gte or {}).items():
                query = query.gte(column, value)
            for column, value in (lte or {}).items():
                query = query.lte(column, value)
            for column, value in (neq or {}).items():
                query = query.neq(column, value)

            if search and search_columns:
                pattern = f'"*{search}*"'
                query = query.or_(
                    ",".join(f"{column}.ilike.{pattern}" for column in search_columns)
                )

            if isinstance(order_by, str):
                query = query.order(order_by, desc=desc)
            elif order_by:
                for column, descending in order_by:
                    query = query.order(column, desc=descending)

            if limit is not None:
                query = query.limit(limit)

            response = query.execute()
            rows = response.data or []
            logger.debug(f"Fetched {len(rows)} rows from {table}")
            return rows

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table} rows: {e}",
                code="FETCH_ROWS_FAILED",
                suggestion=f"Check that the {table} table exists and the filters are valid",
                details={"table": table}
            )

    @classmethod
    def fetch_first(cls, table: str, **kwargs: Any) -> dict[str, Any] | None:
        """Fetch the first row matching fetch_rows() arguments, or None."""
        rows = cls.fetch_rows(table, limit=1, **kwargs)
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a row and return it as stored.

        Raises:
            SupabaseClientError: If insert fails or returns no data
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(data).execute()

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA",
                details={"table": table}
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                details={"table": table}
            )

    @classmethod
    def update_row(
        cls,
        table: str,
        row_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update a row by primary key.

        Returns:
            The updated row, or None when no row matched

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .update(data)
                .eq("id", row_id_str)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table} row: {e}",
                code="UPDATE_FAILED",
                details={"table": table, "id": row_id_str}
            )

    @classmethod
    def upsert_row(
        cls,
        table: str,
        data: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any]:
        """
        Insert or update a row keyed by a unique column.

        Raises:
            SupabaseClientError: If upsert fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .upsert(data, on_conflict=on_conflict)
                .execute()
            )
            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Upsert returned no data",
                code="UPSERT_NO_DATA",
                details={"table": table}
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upsert into {table}: {e}",
                code="UPSERT_FAILED",
                details={"table": table, "on_conflict": on_conflict}
            )

    @classmethod
    def delete_row(cls, table: str, row_id: str | UUID) -> bool:
        """
        Delete a row by primary key.

        Returns:
            True if a row was deleted

        Raises:
            SupabaseClientError: If delete fails
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .delete()
                .eq("id", row_id_str)
                .execute()
            )
            deleted = bool(response.data)
            if deleted:
                logger.info(f"Deleted {table} row {row_id_str}")
            return deleted

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete {table} row: {e}",
                code="DELETE_FAILED",
                details={"table": table, "id": row_id_str}
            )
