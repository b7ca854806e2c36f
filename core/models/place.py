# =============================================================================
# core/models/place.py - Google Places Lookup Schemas
# =============================================================================

from pydantic import BaseModel, Field


class PlaceLocation(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class PlaceSearchResult(BaseModel):
    id: str
    name: str
    address: str = ""
    location: PlaceLocation | None = None
    types: list[str] = Field(default_factory=list)
    rating: float | None = None


class PlaceDetails(BaseModel):
    """Place details flattened for the store editor."""

    id: str
    name: str
    address: str = ""
    phone: str | None = None
    website: str | None = None
    province: str | None = None
    canton: str | None = None
    location: PlaceLocation | None = None
