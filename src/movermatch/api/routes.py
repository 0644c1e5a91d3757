"""
API routes.

Endpoints:
- POST `/api/movers/nearby`: ranked movers around an origin.
- GET  `/api/distance`: haversine distance between two POINT strings.
- GET  `/api/vehicle-types`: known vehicle tags (for filter pickers).
- GET  `/api/health`: liveness plus the configured backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query

from movermatch.config.settings import get_settings
from movermatch.core.errors import Cancelled, InvalidRequest, MatcherUnavailable, ParseError
from movermatch.core.geo import haversine_km
from movermatch.core.point import format_point, require_point
from movermatch.domain.models import DistanceResult, GeoPoint, MatchItem, NearbySearchQuery, NearbySearchResult
from movermatch.matching.matcher import ProximityMatcher
from movermatch.matching.types import SearchRequest, normalize_tags
from movermatch.providers.factory import build_spatial_query

router = APIRouter()


@lru_cache
def _matcher() -> ProximityMatcher:
    settings = get_settings()
    return ProximityMatcher.from_settings(build_spatial_query(settings), settings)


@router.get("/api/health")
def get_health() -> dict:
    settings = get_settings()
    return {"status": "ok", "backend": settings.spatial_query.backend}


@router.get("/api/vehicle-types")
def get_vehicle_types() -> dict:
    """Return the known vehicle tags and their display labels."""
    settings = get_settings()
    return {"vehicle_types": [{"value": k, "label": v} for k, v in settings.vehicle_types.items()]}


@router.get("/api/distance", response_model=DistanceResult)
def get_distance(
    origin: str = Query(..., description="POINT(<lon> <lat>)"),
    destination: str = Query(..., description="POINT(<lon> <lat>)"),
) -> DistanceResult:
    try:
        a = require_point(origin)
        b = require_point(destination)
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return DistanceResult(
        origin=GeoPoint.from_coordinate(a),
        destination=GeoPoint.from_coordinate(b),
        distance_km=haversine_km(a, b),
    )


@router.post("/api/movers/nearby", response_model=NearbySearchResult)
async def post_nearby(query: NearbySearchQuery) -> NearbySearchResult:
    """Run a proximity search and return movers nearest first."""
    settings = get_settings()
    try:
        origin = query.origin.to_coordinate() if query.origin is not None else require_point(query.origin_point)
        request = SearchRequest(
            origin=origin,
            radius_km=query.radius_km if query.radius_km is not None else settings.matching.default_radius_km,
            vehicle_types=normalize_tags(query.vehicle_types),
            min_rating=query.min_rating if query.min_rating is not None else settings.matching.min_rating,
        )
        matches = await _matcher().find_nearby(request, timeout_seconds=query.timeout_seconds)
    except (InvalidRequest, ParseError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except MatcherUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Cancelled as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc

    return NearbySearchResult(
        generated_at=datetime.now(timezone.utc),
        query=query,
        radius_km=request.radius_km,
        results=[MatchItem.from_match(m) for m in matches],
        meta={"origin_point": format_point(request.origin), "count": len(matches)},
    )
