# =============================================================================
# app/routers/routes.py - Route Endpoints
# =============================================================================
# Route CRUD. Creating a route, or changing its stores, calls the Google
# Directions API to compute the driving path.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user, require_admin
from core.models.route import RouteCreate, RouteResponse, RouteUpdate
from core.services.route_service import RouteService

router = APIRouter()


@router.get("", response_model=list[RouteResponse])
async def list_routes(
    user: AuthUser = Depends(get_current_user),
    search: Annotated[str | None, Query(description="Match on route name")] = None,
    supervisor_id: Annotated[str | None, Query(description="Supervisor user UUID")] = None,
    assignee_id: Annotated[str | None, Query(description="Assigned user UUID")] = None,
):
    """List routes, newest first."""
    return RouteService.list_routes(
        search=search,
        supervisor_id=supervisor_id,
        assignee_id=assignee_id,
    )


@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def create_route(
    request: RouteCreate,
    user: AuthUser = Depends(require_admin),
):
    """
    Create a route.

    Requires at least one store and a work plan scheduling at least one visit.
    """
    return RouteService.create_route(request)


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route(
    route_id: Annotated[str, Path(description="Route UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return RouteService.get_route(route_id)


@router.put("/{route_id}", response_model=RouteResponse)
async def update_route(
    route_id: Annotated[str, Path(description="Route UUID")],
    request: RouteUpdate,
    user: AuthUser = Depends(require_admin),
):
    """
    Partially update a route.

    Changing store_ids requires a work_plan in the same request.
    """
    return RouteService.update_route(route_id, request)


@router.delete("/{route_id}")
async def delete_route(
    route_id: Annotated[str, Path(description="Route UUID")],
    user: AuthUser = Depends(require_admin),
):
    RouteService.delete_route(route_id)
    return {"route_id": route_id, "message": "Route deleted successfully"}
