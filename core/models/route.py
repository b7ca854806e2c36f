# =============================================================================
# core/models/route.py - Route Schemas
# =============================================================================
# A route is an ordered list of stores plus a weekly work plan saying which
# stores are visited on which day. When a route is saved the API asks the
# Google Directions API for the driving path through the stores and keeps
# the polyline, per-leg distances and totals on the route.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# Week order used to sort work plan days
DAY_ORDER = [day.value for day in DayOfWeek]


# =============================================================================
# Work Plan Input
# =============================================================================
# Input is loose on purpose: unknown days are dropped and blank store ids are
# ignored by the normalizer rather than rejected by validation.

class WorkPlanVisitInput(BaseModel):
    store_id: str | None = None
    start_time: str | None = Field(default=None, description="HH:MM, 24h")
    notes: str | None = None


class WorkPlanDayInput(BaseModel):
    day_id: str | None = None
    visits: list[WorkPlanVisitInput] = Field(default_factory=list)


class WorkPlanInput(BaseModel):
    start_date: str | None = None
    general_notes: str | None = None
    frequency: str | None = None
    days: list[WorkPlanDayInput] = Field(default_factory=list)


# =============================================================================
# Stored Route Parts
# =============================================================================

class RouteStoreLocation(BaseModel):
    latitude: float
    longitude: float
    address: str | None = None


class RouteStoreSnapshot(BaseModel):
    """Copy of the store data taken when the route was saved."""

    store_id: str
    name: str
    store_number: str = ""
    format: str | None = None
    province: str | None = None
    canton: str | None = None
    location: RouteStoreLocation


class RouteLeg(BaseModel):
    """Driving segment between two consecutive stores."""

    from_store_id: str
    to_store_id: str
    distance_meters: int = 0
    duration_seconds: int = 0
    distance_text: str = ""
    duration_text: str = ""


class WorkPlanVisit(BaseModel):
    store_id: str
    start_time: str | None = None
    notes: str = ""


class WorkPlanDay(BaseModel):
    day_id: DayOfWeek
    visits: list[WorkPlanVisit]


class WorkPlan(BaseModel):
    frequency: str = "weekly"
    start_date: str | None = Field(default=None, description="YYYY-MM-DD")
    general_notes: str = ""
    days: list[WorkPlanDay]


class StoreVisitCount(BaseModel):
    store_id: str
    visits_per_week: int


class VisitStats(BaseModel):
    total_weekly_visits: int = 0
    average_visits_per_store: float = 0
    stores: list[StoreVisitCount] = Field(default_factory=list)


# =============================================================================
# Requests / Responses
# =============================================================================

class RouteCreate(BaseModel):
    name: str
    description: str | None = None
    store_ids: list[str]
    supervisors: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    work_plan: WorkPlanInput | None = None


class RouteUpdate(BaseModel):
    """
    Partial update.

    Changing store_ids requires sending a work_plan as well; sending
    work_plan as null is rejected because a route cannot lose its plan.
    """

    name: str | None = None
    description: str | None = None
    store_ids: list[str] | None = None
    supervisors: list[str] | None = None
    assignees: list[str] | None = None
    work_plan: WorkPlanInput | None = None


class RouteResponse(BaseModel):
    id: UUID
    name: str
    description: str = ""
    store_ids: list[str] = Field(default_factory=list)
    stores: list[RouteStoreSnapshot] = Field(default_factory=list)
    supervisors: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    overview_polyline: str | None = None
    total_distance_km: float = 0
    total_duration_minutes: float = 0
    legs: list[RouteLeg] = Field(default_factory=list)
    work_plan: WorkPlan | None = None
    visit_stats: VisitStats = Field(default_factory=VisitStats)
    created_at: datetime | None = None
    updated_at: datetime | None = None
