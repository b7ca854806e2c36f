# =============================================================================
# tests/test_route_service.py - Route Service Tests
# =============================================================================
# Tests for route creation and updates: store snapshots, role filtering,
# work plans and when directions are recomputed.
# =============================================================================

from unittest.mock import patch

import pytest

from app.exceptions import RouteNotFoundError, ValidationFailedError
from core.models.route import RouteCreate, RouteUpdate
from core.models.user import ASSIGNEE_ROLES, SUPERVISOR_ROLES
from core.services.route_service import RouteService, map_route
from tests.conftest import MEMBER_ID, OTHER_STORE_ID, STORE_ID, SUPERVISOR_ID

ROUTE_ID = "99999999-9999-4999-8999-999999999999"

DIRECTIONS = {
    "overview_polyline": "poly",
    "legs": [],
    "total_distance_km": 4.2,
    "total_duration_minutes": 11.5,
}

WORK_PLAN = {
    "days": [
        {"day_id": "monday", "visits": [{"store_id": STORE_ID, "start_time": "08:00"}]},
        {"day_id": "wednesday", "visits": [{"store_id": OTHER_STORE_ID}]},
    ]
}


def patch_route_deps():
    return (
        patch("core.services.route_service.SupabaseClient"),
        patch("core.services.route_service.StoreService"),
        patch("core.services.route_service.UserService"),
        patch("core.services.route_service.compute_driving_directions", return_value=DIRECTIONS),
    )


class TestLoadStoresForRoute:
    """Tests for RouteService.load_stores_for_route."""

    def test_snapshots_keep_order(self, sample_store_row, other_store_row):
        with patch("core.services.route_service.StoreService") as mock_stores:
            mock_stores.get_stores_by_ids.return_value = [sample_store_row, other_store_row]

            snapshots = RouteService.load_stores_for_route([OTHER_STORE_ID, STORE_ID, OTHER_STORE_ID])

        assert [s["store_id"] for s in snapshots] == [OTHER_STORE_ID, STORE_ID]
        assert snapshots[1]["location"] == {
            "latitude": 9.8999,
            "longitude": -84.0701,
            "address": "200 m sur de la iglesia",
        }

    def test_unknown_store(self, sample_store_row):
        with patch("core.services.route_service.StoreService") as mock_stores:
            mock_stores.get_stores_by_ids.return_value = [sample_store_row]

            with pytest.raises(ValidationFailedError) as exc_info:
                RouteService.load_stores_for_route([STORE_ID, OTHER_STORE_ID])

        assert exc_info.value.details["store_id"] == OTHER_STORE_ID

    def test_store_without_coordinates(self, sample_store_row):
        sample_store_row["location"] = {"latitude": None, "longitude": -84}
        with patch("core.services.route_service.StoreService") as mock_stores:
            mock_stores.get_stores_by_ids.return_value = [sample_store_row]

            with pytest.raises(ValidationFailedError):
                RouteService.load_stores_for_route([STORE_ID])

    def test_invalid_id(self):
        with pytest.raises(ValidationFailedError):
            RouteService.load_stores_for_route(["tienda-1"])


class TestCreateRoute:
    """Tests for RouteService.create_route."""

    def test_creates_route(self, sample_store_row, other_store_row):
        # Arrange
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores as mock_stores, users as mock_users, directions as mock_directions:
            mock_stores.get_stores_by_ids.return_value = [sample_store_row, other_store_row]
            mock_users.resolve_user_ids.side_effect = lambda ids, roles: list(ids)
            mock_db.insert_row.side_effect = lambda table, row: {"id": ROUTE_ID, **row}

            # Act
            route = RouteService.create_route(RouteCreate(
                name=" Ruta Sur ",
                store_ids=[STORE_ID, OTHER_STORE_ID],
                supervisors=[SUPERVISOR_ID],
                assignees=[MEMBER_ID],
                work_plan=WORK_PLAN,
            ))

        # Assert
        assert route["name"] == "Ruta Sur"
        assert route["store_ids"] == [STORE_ID, OTHER_STORE_ID]
        assert route["total_distance_km"] == 4.2
        assert route["visit_stats"]["total_weekly_visits"] == 2
        assert [d["day_id"] for d in route["work_plan"]["days"]] == ["monday", "wednesday"]
        mock_directions.assert_called_once()
        mock_users.resolve_user_ids.assert_any_call([SUPERVISOR_ID], SUPERVISOR_ROLES)
        mock_users.resolve_user_ids.assert_any_call([MEMBER_ID], ASSIGNEE_ROLES)

    def test_requires_work_plan(self, sample_store_row):
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores as mock_stores, users as mock_users, directions:
            mock_stores.get_stores_by_ids.return_value = [sample_store_row]
            mock_users.resolve_user_ids.return_value = []

            with pytest.raises(ValidationFailedError):
                RouteService.create_route(RouteCreate(name="Ruta", store_ids=[STORE_ID]))

        mock_db.insert_row.assert_not_called()

    def test_requires_name(self):
        with pytest.raises(ValidationFailedError):
            RouteService.create_route(RouteCreate(name=" ", store_ids=[STORE_ID], work_plan=WORK_PLAN))


class TestUpdateRoute:
    """Tests for RouteService.update_route."""

    def _current(self, sample_store_row):
        snapshot = {
            "store_id": STORE_ID,
            "name": sample_store_row["name"],
            "location": {"latitude": 9.8999, "longitude": -84.0701},
        }
        return {
            "id": ROUTE_ID,
            "name": "Ruta Sur",
            "store_ids": [STORE_ID],
            "stores": [snapshot],
            "work_plan": {"days": [{"day_id": "monday", "visits": [{"store_id": STORE_ID}]}]},
            "visit_stats": None,
        }

    def test_rename_keeps_directions(self, sample_store_row):
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores, users, directions as mock_directions:
            mock_db.fetch_row.return_value = self._current(sample_store_row)
            mock_db.update_row.side_effect = lambda table, row_id, data: {"id": row_id, **data}

            RouteService.update_route(ROUTE_ID, RouteUpdate(name="Ruta Norte"))

        updates = mock_db.update_row.call_args.args[2]
        assert updates["name"] == "Ruta Norte"
        assert "legs" not in updates
        mock_directions.assert_not_called()

    def test_changing_stores_requires_plan(self, sample_store_row):
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores, users, directions:
            mock_db.fetch_row.return_value = self._current(sample_store_row)

            with pytest.raises(ValidationFailedError):
                RouteService.update_route(ROUTE_ID, RouteUpdate(store_ids=[OTHER_STORE_ID]))

    def test_changing_stores_recomputes_directions(self, sample_store_row, other_store_row):
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores as mock_stores, users, directions as mock_directions:
            mock_db.fetch_row.return_value = self._current(sample_store_row)
            mock_db.update_row.side_effect = lambda table, row_id, data: {"id": row_id, **data}
            mock_stores.get_stores_by_ids.return_value = [sample_store_row, other_store_row]

            route = RouteService.update_route(ROUTE_ID, RouteUpdate(
                store_ids=[STORE_ID, OTHER_STORE_ID],
                work_plan=WORK_PLAN,
            ))

        mock_directions.assert_called_once()
        assert route["overview_polyline"] == "poly"
        assert route["visit_stats"]["average_visits_per_store"] == 1.0

    def test_plan_cannot_be_removed(self, sample_store_row):
        db, stores, users, directions = patch_route_deps()
        with db as mock_db, stores, users, directions:
            mock_db.fetch_row.return_value = self._current(sample_store_row)

            with pytest.raises(ValidationFailedError):
                RouteService.update_route(ROUTE_ID, RouteUpdate(work_plan=None))

    def test_unknown_route(self):
        with patch("core.services.route_service.SupabaseClient") as mock_db:
            mock_db.fetch_row.return_value = None

            with pytest.raises(RouteNotFoundError):
                RouteService.update_route(ROUTE_ID, RouteUpdate(name="x"))


class TestRouteQueries:
    """Tests for list_routes and map_route."""

    def test_map_route_fills_visit_stats(self, sample_store_row):
        row = TestUpdateRoute()._current(sample_store_row)

        mapped = map_route(row)

        assert mapped["visit_stats"]["total_weekly_visits"] == 1

    def test_list_filters(self):
        with patch("core.services.route_service.SupabaseClient") as mock_db:
            mock_db.fetch_rows.return_value = []

            RouteService.list_routes(search="sur,", supervisor_id=SUPERVISOR_ID)

        kwargs = mock_db.fetch_rows.call_args.kwargs
        assert kwargs["contains"] == {"supervisors": [SUPERVISOR_ID]}
        assert kwargs["search"] == "sur,"

    def test_list_invalid_assignee(self):
        with patch("core.services.route_service.SupabaseClient") as mock_db:
            assert RouteService.list_routes(assignee_id="nadie") == []

        mock_db.fetch_rows.assert_not_called()
