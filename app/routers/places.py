# =============================================================================
# app/routers/places.py - Google Places Lookup Endpoints
# =============================================================================
# Helps administrators geocode stores: search for a place by text, then
# read its address, province, canton and coordinates.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import AuthUser, get_current_user
from core.models.place import PlaceDetails, PlaceSearchResult
from lib.google_maps import get_place_details, search_places

router = APIRouter()


@router.get("/search", response_model=list[PlaceSearchResult])
async def search(
    query: Annotated[str, Query(min_length=1, description="Free text, e.g. 'Pali Desamparados'")],
    user: AuthUser = Depends(get_current_user),
):
    return search_places(query)


@router.get("/details", response_model=PlaceDetails)
async def details(
    place_id: Annotated[str, Query(min_length=1, description="Google place id")],
    user: AuthUser = Depends(get_current_user),
):
    return get_place_details(place_id)
