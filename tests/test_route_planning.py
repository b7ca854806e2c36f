# =============================================================================
# tests/test_route_planning.py - Work Plan Tests
# =============================================================================
# Tests for weekly work plan normalization and visit stats.
#
# Run with: poetry run pytest tests/test_route_planning.py -v
# =============================================================================

import pytest

from app.exceptions import ValidationFailedError
from core.models.route import WorkPlanInput
from lib.route_planning import compute_visit_stats, normalize_work_plan


SNAPSHOTS = [
    {"store_id": "s1", "name": "Tienda 1", "location": {"latitude": 9.9, "longitude": -84.0}},
    {"store_id": "s2", "name": "Tienda 2", "location": {"latitude": 9.8, "longitude": -84.1}},
    {"store_id": "s3", "name": "Tienda 3", "location": {"latitude": 9.7, "longitude": -84.2}},
]


def make_plan(days, **kwargs):
    return WorkPlanInput(days=days, **kwargs)


class TestNormalizeWorkPlan:
    """Tests for normalize_work_plan."""

    def test_none_means_no_plan(self):
        assert normalize_work_plan(None, SNAPSHOTS) is None

    def test_orders_days_and_drops_unknown_or_empty_days(self):
        # Arrange
        plan = make_plan(
            [
                {"day_id": "FRIDAY", "visits": [{"store_id": "s2", "start_time": "14:00"}]},
                {"day_id": "funday", "visits": [{"store_id": "s1"}]},
                {"day_id": "monday", "visits": [{"store_id": " s1 ", "notes": " revisar precios "}]},
                {"day_id": "tuesday", "visits": [{"store_id": ""}]},
            ],
            start_date="2024-03-04T00:00:00Z",
            general_notes="  Semana 10 ",
        )

        # Act
        normalized = normalize_work_plan(plan, SNAPSHOTS)

        # Assert
        assert [day["day_id"] for day in normalized["days"]] == ["monday", "friday"]
        assert normalized["days"][0]["visits"] == [
            {"store_id": "s1", "start_time": None, "notes": "revisar precios"}
        ]
        assert normalized["days"][1]["visits"][0]["start_time"] == "14:00"
        assert normalized["frequency"] == "weekly"
        assert normalized["start_date"] == "2024-03-04"
        assert normalized["general_notes"] == "Semana 10"

    def test_rejects_store_not_on_route(self):
        plan = make_plan([{"day_id": "monday", "visits": [{"store_id": "s9"}]}])

        with pytest.raises(ValidationFailedError) as exc_info:
            normalize_work_plan(plan, SNAPSHOTS)

        assert exc_info.value.details["store_id"] == "s9"

    def test_rejects_bad_start_time(self):
        plan = make_plan([{"day_id": "monday", "visits": [{"store_id": "s1", "start_time": "25:00"}]}])

        with pytest.raises(ValidationFailedError):
            normalize_work_plan(plan, SNAPSHOTS)

    def test_rejects_bad_start_date(self):
        plan = make_plan(
            [{"day_id": "monday", "visits": [{"store_id": "s1"}]}],
            start_date="next monday",
        )

        with pytest.raises(ValidationFailedError):
            normalize_work_plan(plan, SNAPSHOTS)

    def test_requires_at_least_one_visit(self):
        plan = make_plan([{"day_id": "monday", "visits": []}])

        with pytest.raises(ValidationFailedError):
            normalize_work_plan(plan, SNAPSHOTS)


class TestComputeVisitStats:
    """Tests for compute_visit_stats."""

    def test_counts_visits_per_store(self):
        plan = {
            "days": [
                {"day_id": "monday", "visits": [{"store_id": "s1"}, {"store_id": "s2"}]},
                {"day_id": "thursday", "visits": [{"store_id": "s1"}]},
            ]
        }

        stats = compute_visit_stats(plan, SNAPSHOTS)

        assert stats["total_weekly_visits"] == 3
        assert stats["average_visits_per_store"] == 1.0
        assert stats["stores"] == [
            {"store_id": "s1", "visits_per_week": 2},
            {"store_id": "s2", "visits_per_week": 1},
            {"store_id": "s3", "visits_per_week": 0},
        ]

    def test_average_is_rounded(self):
        plan = {"days": [{"day_id": "monday", "visits": [{"store_id": "s1"}]}]}
        assert compute_visit_stats(plan, SNAPSHOTS)["average_visits_per_store"] == 0.33

    def test_route_without_stores(self):
        stats = compute_visit_stats(None, [])

        assert stats["total_weekly_visits"] == 0
        assert stats["average_visits_per_store"] == 0
        assert stats["stores"] == []
