# =============================================================================
# lib/route_planning.py - Weekly Work Plan Helpers
# =============================================================================
# Normalizes the weekly visit plan attached to a route and derives visit
# statistics from it. Store snapshots are the dicts stored in routes.stores:
#
#   {"store_id": "...", "name": "...", "location": {"latitude": .., "longitude": ..}}
#
# Rules applied by normalize_work_plan():
# - day ids are case-insensitive; unknown days are dropped
# - every visit must point at a store on the route
# - start times use 24h HH:MM
# - days without visits are dropped, but at least one visit is required
# - days are returned Monday -> Sunday
# =============================================================================

import re
from typing import Any

from app.exceptions import ValidationFailedError
from core.models.route import DAY_ORDER, WorkPlanInput
from lib.utils import parse_datetime, sanitize_string

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _normalize_time(value: str | None) -> str | None:
    trimmed = sanitize_string(value)
    if not trimmed:
        return None
    if not TIME_PATTERN.match(trimmed):
        raise ValidationFailedError(
            f"Invalid visit start time: {trimmed}",
            suggestion="Use the 24h HH:MM format, e.g. 08:30",
        )
    return trimmed


def _normalize_start_date(value: str | None) -> str | None:
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationFailedError(
            f"Invalid work plan start date: {value}",
            suggestion="Use an ISO date such as 2024-03-04",
        )
    return parsed.date().isoformat()


def normalize_work_plan(
    plan: WorkPlanInput | None,
    snapshots: list[dict[str, Any]],
) -> dict[str, Any] | None:
    """
    Validate a work plan against the stores of a route.

    Args:
        plan: Work plan as sent by the client (None means no plan)
        snapshots: Store snapshots of the route

    Returns:
        Stored work plan dict, or None when no plan was given

    Raises:
        ValidationFailedError: On unknown stores, bad times or dates, or a
            plan without visits
    """
    if plan is None:
        return None

    route_store_ids = {snapshot["store_id"] for snapshot in snapshots}
    days = []

    for day in plan.days:
        day_id = (day.day_id or "").lower()
        if day_id not in DAY_ORDER:
            continue

        visits = []
        for visit in day.visits:
            store_id = sanitize_string(visit.store_id)
            if not store_id:
                continue
            if store_id not in route_store_ids:
                raise ValidationFailedError(
                    "The work plan references a store that is not on the route",
                    details={"store_id": store_id, "day_id": day_id},
                )
            visits.append({
                "store_id": store_id,
                "start_time": _normalize_time(visit.start_time),
                "notes": sanitize_string(visit.notes),
            })

        if visits:
            days.append({"day_id": day_id, "visits": visits})

    if not days:
        raise ValidationFailedError(
            "The work plan must schedule at least one visit during the week",
            suggestion="Add a store visit to at least one day",
        )

    days.sort(key=lambda entry: DAY_ORDER.index(entry["day_id"]))

    return {
        "frequency": "weekly",
        "start_date": _normalize_start_date(plan.start_date),
        "general_notes": sanitize_string(plan.general_notes),
        "days": days,
    }


def compute_visit_stats(
    plan: dict[str, Any] | None,
    snapshots: list[dict[str, Any]],
) -> dict[str, Any]:
    """
    Count weekly visits per route store.

    Every route store is listed, with 0 when the plan never visits it.
    The average is rounded to 2 decimals and is 0 for a route without stores.
    """
    counts = {snapshot["store_id"]: 0 for snapshot in snapshots}
    total = 0

    for day in (plan or {}).get("days") or []:
        for visit in day.get("visits") or []:
            counts[visit["store_id"]] = counts.get(visit["store_id"], 0) + 1
            total += 1

    average = round(total / len(snapshots), 2) if snapshots else 0

    return {
        "total_weekly_visits": total,
        "average_visits_per_store": average,
        "stores": [
            {"store_id": snapshot["store_id"], "visits_per_week": counts.get(snapshot["store_id"], 0)}
            for snapshot in snapshots
        ],
    }
