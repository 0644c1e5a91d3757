"""
Domain models (Pydantic).

These types are the validated "contract" at the edges of the matcher:
- mover rows, whether they come from the local catalog file or the RPC (`MoverRecord`),
- HTTP/CLI search input (`NearbySearchQuery`),
- JSON output (`NearbySearchResult`).

The matcher itself works on the frozen dataclasses in `movermatch.matching.types`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from movermatch.core.geo import Coordinate
from movermatch.core.point import format_point, parse_point
from movermatch.matching.types import MatchResult, ProviderCandidate, normalize_tags


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.lat, longitude=self.lon)

    @classmethod
    def from_coordinate(cls, coordinate: Coordinate) -> "GeoPoint":
        return cls(lat=coordinate.latitude, lon=coordinate.longitude)


def _location_payload(value: Any) -> Any:
    """Accept POINT text and GeoJSON points in addition to `{lat, lon}` mappings."""
    if isinstance(value, str):
        coordinate = parse_point(value)
        if coordinate is None:
            raise ValueError(f"location is not a valid POINT: {value!r}")
        return {"lat": coordinate.latitude, "lon": coordinate.longitude}
    if isinstance(value, dict) and isinstance(value.get("coordinates"), (list, tuple)):
        coords = value["coordinates"]
        if len(coords) < 2:
            raise ValueError("GeoJSON point needs [lon, lat]")
        return {"lat": coords[1], "lon": coords[0]}
    return value


class MoverRecord(BaseModel):
    """A mover row from the catalog file or the `find_nearby_movers` RPC."""

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("mover_id", "id"))
    location: GeoPoint
    business_name: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    total_moves: int | None = Field(default=None, ge=0)
    vehicle_types: list[str] = Field(default_factory=list)
    distance_km: float | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _coerce_location(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("location") is None and "latitude" in data and "longitude" in data:
            data["location"] = {"lat": data["latitude"], "lon": data["longitude"]}
        else:
            data["location"] = _location_payload(data.get("location"))
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) and not isinstance(value, bool) else value

    @field_validator("vehicle_types", mode="before")
    @classmethod
    def _normalize_vehicle_types(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            return sorted(normalize_tags(value))
        return value

    def to_candidate(self, *, raw: dict[str, Any] | None = None) -> ProviderCandidate:
        return ProviderCandidate(
            id=self.id,
            location=self.location.to_coordinate(),
            vehicle_types=frozenset(self.vehicle_types),
            rating=self.rating,
            business_name=self.business_name,
            total_moves=self.total_moves,
            reported_distance_km=self.distance_km,
            raw=dict(raw or {}),
        )


class NearbySearchQuery(BaseModel):
    """End-user search payload. Give either `origin` or `origin_point` (POINT text)."""

    origin: GeoPoint | None = None
    origin_point: str | None = None
    # Range checks are left to the matcher so they surface as InvalidRequest.
    radius_km: float | None = None
    vehicle_types: list[str] = Field(default_factory=list)
    min_rating: float | None = None
    timeout_seconds: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_origin(self) -> "NearbySearchQuery":
        if (self.origin is None) == (self.origin_point is None):
            raise ValueError("exactly one of origin or origin_point is required")
        return self


class MatchItem(BaseModel):
    """One ranked mover with its recomputed great-circle distance."""

    mover_id: str
    business_name: str | None = None
    distance_km: float = Field(..., ge=0)
    location: GeoPoint
    location_point: str
    rating: float | None = None
    total_moves: int | None = None
    vehicle_types: list[str] = Field(default_factory=list)
    reported_distance_km: float | None = None

    @classmethod
    def from_match(cls, match: MatchResult) -> "MatchItem":
        c = match.candidate
        return cls(
            mover_id=c.id,
            business_name=c.business_name,
            distance_km=match.distance_km,
            location=GeoPoint.from_coordinate(c.location),
            location_point=format_point(c.location),
            rating=c.rating,
            total_moves=c.total_moves,
            vehicle_types=sorted(c.vehicle_types),
            reported_distance_km=c.reported_distance_km,
        )


class NearbySearchResult(BaseModel):
    """Ordered matches plus the original query."""

    generated_at: datetime
    query: NearbySearchQuery
    radius_km: float
    results: list[MatchItem]
    meta: dict[str, Any] = Field(default_factory=dict)


class DistanceResult(BaseModel):
    origin: GeoPoint
    destination: GeoPoint
    distance_km: float = Field(..., ge=0)
