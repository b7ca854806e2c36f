# =============================================================================
# lib/google_maps.py - Google Maps Web Service Client
# =============================================================================
# Thin httpx client for the three Google Maps endpoints the API uses:
# - Directions: driving path through the stores of a route
# - Places text search: find a store by name when geocoding it
# - Place details: address, phone and region of a chosen place
#
# Every call reads GOOGLE_MAPS_API_KEY from settings; when it is missing a
# MapsNotConfiguredError is raised so the caller gets an actionable 500.
#
# Usage:
#   from lib.google_maps import compute_driving_directions
#   directions = compute_driving_directions(store_snapshots)
# =============================================================================

import logging
import re
from typing import Any

import httpx

from app.config import settings
from app.exceptions import (
    DirectionsError,
    ExternalServiceError,
    MapsNotConfiguredError,
    PlacesError,
)

logger = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
PLACES_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

PLACE_DETAILS_FIELDS = [
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "geometry",
    "website",
    "address_component",
]

# Prefixes Google adds to Costa Rican administrative areas
REGION_PREFIXES = [
    re.compile(r"^Provincia\s+de\s+", re.IGNORECASE),
    re.compile(r"^Province\s+of\s+", re.IGNORECASE),
    re.compile(r"^Cant[oó]n\s+(?:de|del)\s+", re.IGNORECASE),
    re.compile(r"^County\s+of\s+", re.IGNORECASE),
]


def _request(url: str, params: dict[str, Any], service: str) -> dict[str, Any]:
    """GET a Maps endpoint with the server key and return the JSON body."""
    if not settings.GOOGLE_MAPS_API_KEY:
        raise MapsNotConfiguredError()

    try:
        response = httpx.get(
            url,
            params={**params, "key": settings.GOOGLE_MAPS_API_KEY},
            timeout=settings.GOOGLE_API_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        logger.error(f"{service} request failed: {e}")
        raise ExternalServiceError(service, str(e))


def _coordinates(snapshot: dict[str, Any]) -> str:
    location = snapshot["location"]
    return f"{location['latitude']},{location['longitude']}"


# =============================================================================
# Directions
# =============================================================================

def compute_driving_directions(stores: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Ask Google for the driving path visiting stores in the given order.

    The first store is the origin, the last the destination and the rest are
    fixed (non-optimized) waypoints.

    Args:
        stores: Route store snapshots

    Returns:
        Dict with overview_polyline, legs, total_distance_km (2 decimals)
        and total_duration_minutes (1 decimal). Routes with fewer than two
        stores have no polyline, no legs and zero totals.

    Raises:
        DirectionsError: When Google cannot build the route
        MapsNotConfiguredError: When no API key is configured
    """
    if len(stores) < 2:
        return {
            "overview_polyline": None,
            "legs": [],
            "total_distance_km": 0,
            "total_duration_minutes": 0,
        }

    params = {
        "origin": _coordinates(stores[0]),
        "destination": _coordinates(stores[-1]),
        "mode": "driving",
        "units": "metric",
    }
    waypoints = "|".join(_coordinates(store) for store in stores[1:-1])
    if waypoints:
        params["waypoints"] = f"optimize:false|{waypoints}"

    data = _request(DIRECTIONS_URL, params, "Google Directions")

    status = data.get("status")
    if status != "OK":
        message = data.get("error_message") or status or "check the selected locations"
        logger.warning(f"Directions request returned {status}: {message}")
        raise DirectionsError(message, api_status=status)

    routes = data.get("routes") or []
    if not routes:
        raise DirectionsError("Google Directions returned no route")

    route = routes[0]
    legs = []
    total_meters = 0
    total_seconds = 0

    for index, leg in enumerate(route.get("legs") or []):
        distance = leg.get("distance") or {}
        duration = leg.get("duration") or {}
        meters = int(distance.get("value") or 0)
        seconds = int(duration.get("value") or 0)
        total_meters += meters
        total_seconds += seconds

        legs.append({
            "from_store_id": stores[index]["store_id"],
            "to_store_id": stores[index + 1]["store_id"],
            "distance_meters": meters,
            "duration_seconds": seconds,
            "distance_text": distance.get("text") or "",
            "duration_text": duration.get("text") or "",
        })

    logger.info(f"Computed directions for {len(stores)} stores ({total_meters} m)")

    return {
        "overview_polyline": (route.get("overview_polyline") or {}).get("points"),
        "legs": legs,
        "total_distance_km": round(total_meters / 1000, 2),
        "total_duration_minutes": round(total_seconds / 60, 1),
    }


# =============================================================================
# Places
# =============================================================================

def normalize_region(value: str | None) -> str:
    """Strip "Provincia de", "Cantón de" and similar prefixes from a region name."""
    if not value:
        return ""
    for prefix in REGION_PREFIXES:
        value = prefix.sub("", value)
    return value.strip()


def _location(result: dict[str, Any]) -> dict[str, Any]:
    location = (result.get("geometry") or {}).get("location") or {}
    return {"latitude": location.get("lat"), "longitude": location.get("lng")}


def _check_places_status(data: dict[str, Any], fallback: str) -> None:
    status = data.get("status")
    if status != "OK":
        message = data.get("error_message") or status or fallback
        logger.warning(f"Places request returned {status}: {message}")
        raise PlacesError(message, api_status=status)


def search_places(query: str) -> list[dict[str, Any]]:
    """
    Text search restricted to Spanish results in Costa Rica.

    Returns:
        List of {id, name, address, location, types, rating}
    """
    data = _request(
        PLACES_SEARCH_URL,
        {"query": query, "language": "es", "region": "cr"},
        "Google Places",
    )
    _check_places_status(data, "the search returned no places")

    return [
        {
            "id": place.get("place_id") or "",
            "name": place.get("name") or "",
            "address": place.get("formatted_address") or "",
            "location": _location(place),
            "types": place.get("types") or [],
            "rating": place.get("rating"),
        }
        for place in data.get("results") or []
    ]


def get_place_details(place_id: str) -> dict[str, Any]:
    """
    Fetch the details of one place.

    Province and canton come from the first and second administrative
    levels of the address.
    """
    data = _request(
        PLACE_DETAILS_URL,
        {"place_id": place_id, "language": "es", "fields": ",".join(PLACE_DETAILS_FIELDS)},
        "Google Places",
    )
    _check_places_status(data, "the place could not be loaded")

    result = data.get("result") or {}
    components = result.get("address_components") or []

    def component(kind: str) -> str:
        for item in components:
            if kind in (item.get("types") or []):
                return normalize_region(item.get("long_name") or item.get("short_name"))
        return ""

    return {
        "id": result.get("place_id") or place_id,
        "name": result.get("name") or "",
        "address": result.get("formatted_address") or "",
        "phone": result.get("formatted_phone_number") or "",
        "website": result.get("website") or "",
        "province": component("administrative_area_level_1"),
        "canton": component("administrative_area_level_2"),
        "location": _location(result),
    }
