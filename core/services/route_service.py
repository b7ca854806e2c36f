# =============================================================================
# core/services/route_service.py - Route Business Logic
# =============================================================================
# Handles route CRUD. Saving a route:
# 1. Snapshots the selected stores (order preserved)
# 2. Keeps only supervisors/assignees that hold an allowed role
# 3. Normalizes the weekly work plan and derives visit stats
# 4. Asks Google Directions for the driving path through the stores
#
# Directions are only recomputed when the store list changes.
# =============================================================================

import logging
import math
from typing import Any

from app.exceptions import RouteNotFoundError, ValidationFailedError
from core.models.route import RouteCreate, RouteUpdate
from core.models.user import ASSIGNEE_ROLES, SUPERVISOR_ROLES
from core.services.store_service import StoreService
from core.services.user_service import UserService
from lib.google_maps import compute_driving_directions
from lib.route_planning import compute_visit_stats, normalize_work_plan
from lib.supabase_client import SupabaseClient
from lib.utils import dedupe, escape_search_term, is_valid_uuid, sanitize_string, utc_now_iso

logger = logging.getLogger(__name__)

TABLE = "routes"


def _finite(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def map_route(row: dict[str, Any]) -> dict[str, Any]:
    """Fill visit_stats for rows saved without them."""
    if row.get("visit_stats"):
        return row
    return {
        **row,
        "visit_stats": compute_visit_stats(row.get("work_plan"), row.get("stores") or []),
    }


class RouteService:
    """Service for route operations."""

    @staticmethod
    def load_stores_for_route(store_ids: list[str]) -> list[dict[str, Any]]:
        """
        Snapshot the stores of a route in the given order.

        Raises:
            ValidationFailedError: When no store is given, an id is invalid or
                unknown, or a store has no usable coordinates
        """
        ids = dedupe([sanitize_string(store_id) for store_id in store_ids if sanitize_string(store_id)])
        if not ids:
            raise ValidationFailedError("Select at least one store for the route")

        invalid = [store_id for store_id in ids if not is_valid_uuid(store_id)]
        if invalid:
            raise ValidationFailedError(f"Invalid store id: {invalid[0]}")

        stores = {str(store["id"]): store for store in StoreService.get_stores_by_ids(ids)}

        snapshots = []
        for store_id in ids:
            store = stores.get(store_id)
            if not store:
                raise ValidationFailedError(
                    "One of the selected stores does not exist",
                    details={"store_id": store_id},
                )

            location = store.get("location") or {}
            latitude = _finite(location.get("latitude"))
            longitude = _finite(location.get("longitude"))
            if latitude is None or longitude is None:
                raise ValidationFailedError(
                    f"Store {store.get('name') or store_id} has no valid coordinates",
                    suggestion="Set the store location before adding it to a route",
                )

            snapshots.append({
                "store_id": store_id,
                "name": store.get("name") or "Tienda",
                "store_number": store.get("store_number") or "",
                "format": store.get("format"),
                "province": store.get("province"),
                "canton": store.get("canton"),
                "location": {
                    "latitude": latitude,
                    "longitude": longitude,
                    "address": location.get("address"),
                },
            })

        return snapshots

    @staticmethod
    def list_routes(
        search: str | None = None,
        supervisor_id: str | None = None,
        assignee_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List routes, newest first.

        Args:
            search: Case-insensitive match on the route name
            supervisor_id: Only routes supervised by this user
            assignee_id: Only routes assigned to this user
        """
        contains: dict[str, Any] = {}
        if supervisor_id is not None:
            if not is_valid_uuid(supervisor_id):
                return []
            contains["supervisors"] = [sanitize_string(supervisor_id)]
        if assignee_id is not None:
            if not is_valid_uuid(assignee_id):
                return []
            contains["assignees"] = [sanitize_string(assignee_id)]

        term = escape_search_term(sanitize_string(search))
        rows = SupabaseClient.fetch_rows(
            TABLE,
            contains=contains or None,
            search=term or None,
            search_columns=["name"],
            order_by="created_at",
            desc=True,
        )
        return [map_route(row) for row in rows]

    @staticmethod
    def get_route(route_id: str) -> dict[str, Any]:
        if not is_valid_uuid(route_id):
            raise RouteNotFoundError(str(route_id))
        route = SupabaseClient.fetch_row(TABLE, route_id)
        if not route:
            raise RouteNotFoundError(str(route_id))
        return map_route(route)

    @staticmethod
    def create_route(data: RouteCreate) -> dict[str, Any]:
        """
        Create a route with its work plan and driving directions.

        Raises:
            ValidationFailedError: On a blank name, no stores or no work plan
            DirectionsError: When Google cannot build the route
        """
        name = sanitize_string(data.name)
        if not name:
            raise ValidationFailedError("The route name is required")
        if not data.store_ids:
            raise ValidationFailedError("Select at least one store for the route")

        snapshots = RouteService.load_stores_for_route(data.store_ids)
        supervisors = UserService.resolve_user_ids(data.supervisors, SUPERVISOR_ROLES)
        assignees = UserService.resolve_user_ids(data.assignees, ASSIGNEE_ROLES)

        work_plan = normalize_work_plan(data.work_plan, snapshots)
        if work_plan is None:
            raise ValidationFailedError("A route needs a work plan")

        visit_stats = compute_visit_stats(work_plan, snapshots)
        directions = compute_driving_directions(snapshots)

        now = utc_now_iso()
        route = SupabaseClient.insert_row(TABLE, {
            "name": name,
            "description": sanitize_string(data.description),
            "store_ids": [snapshot["store_id"] for snapshot in snapshots],
            "supervisors": supervisors,
            "assignees": assignees,
            "stores": snapshots,
            **directions,
            "work_plan": work_plan,
            "visit_stats": visit_stats,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(
            f"Created route {route['id']} with {len(snapshots)} stores "
            f"({directions['total_distance_km']} km)"
        )
        return map_route(route)

    @staticmethod
    def update_route(route_id: str, data: RouteUpdate) -> dict[str, Any]:
        """
        Apply a partial update.

        Changing the stores requires a new work plan and recomputes the
        directions. The work plan cannot be removed.
        """
        current = RouteService.get_route(route_id)
        fields = data.model_dump(exclude_unset=True)
        updates: dict[str, Any] = {}

        if "work_plan" in fields and data.work_plan is None:
            raise ValidationFailedError("The work plan of a route cannot be removed")

        if fields.get("name") is not None:
            name = sanitize_string(data.name)
            if not name:
                raise ValidationFailedError("The route name is required")
            updates["name"] = name

        if "description" in fields:
            updates["description"] = sanitize_string(data.description)

        snapshots = current.get("stores") or []
        if data.store_ids is not None:
            if not data.store_ids:
                raise ValidationFailedError("Select at least one store for the route")
            if data.work_plan is None:
                raise ValidationFailedError(
                    "Update the work plan when changing the stores of a route"
                )
            snapshots = RouteService.load_stores_for_route(data.store_ids)
            updates["store_ids"] = [snapshot["store_id"] for snapshot in snapshots]
            updates["stores"] = snapshots
            updates.update(compute_driving_directions(snapshots))

        if data.supervisors is not None:
            updates["supervisors"] = UserService.resolve_user_ids(
                data.supervisors, SUPERVISOR_ROLES
            )

        if data.assignees is not None:
            updates["assignees"] = UserService.resolve_user_ids(
                data.assignees, ASSIGNEE_ROLES
            )

        if data.work_plan is not None:
            work_plan = normalize_work_plan(data.work_plan, snapshots)
            updates["work_plan"] = work_plan
            updates["visit_stats"] = compute_visit_stats(work_plan, snapshots)

        if not updates:
            return current

        updates["updated_at"] = utc_now_iso()
        route = SupabaseClient.update_row(TABLE, route_id, updates)
        if not route:
            raise RouteNotFoundError(route_id)

        logger.info(f"Updated route {route_id}: {sorted(updates)}")
        return map_route(route)

    @staticmethod
    def delete_route(route_id: str) -> None:
        if not is_valid_uuid(route_id) or not SupabaseClient.delete_row(TABLE, route_id):
            raise RouteNotFoundError(str(route_id))
        logger.info(f"Deleted route {route_id}")
