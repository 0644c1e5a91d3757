"""
Value types shared by the matcher and its spatial-query collaborators.

All of them are immutable and built per request; the collaborator owns the
persisted mover records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

from movermatch.core.geo import Coordinate


def normalize_tags(tags: Iterable[str] | None) -> frozenset[str]:
    """Trim and lower-case vehicle tags, dropping blanks."""
    if not tags:
        return frozenset()
    return frozenset(t.strip().lower() for t in tags if isinstance(t, str) and t.strip())


@dataclass(frozen=True)
class SearchRequest:
    """A proximity search. An empty `vehicle_types` means no category filter."""

    origin: Coordinate
    radius_km: float
    vehicle_types: frozenset[str] = frozenset()
    min_rating: float = 0.0

    def __post_init__(self) -> None:
        if self.vehicle_types is None:
            object.__setattr__(self, "vehicle_types", frozenset())

    @classmethod
    def build(
        cls,
        *,
        latitude: float,
        longitude: float,
        radius_km: float,
        vehicle_types: Iterable[str] | None = None,
        min_rating: float = 0.0,
    ) -> "SearchRequest":
        return cls(
            origin=Coordinate(latitude=latitude, longitude=longitude),
            radius_km=radius_km,
            vehicle_types=normalize_tags(vehicle_types),
            min_rating=min_rating,
        )


@dataclass(frozen=True)
class ProviderCandidate:
    """One mover as returned by the spatial-query collaborator."""

    id: str
    location: Coordinate
    vehicle_types: frozenset[str] = frozenset()
    rating: float | None = None
    business_name: str | None = None
    total_moves: int | None = None
    # Distance as computed by the collaborator; informational only.
    reported_distance_km: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)


@dataclass(frozen=True)
class MatchResult:
    candidate: ProviderCandidate
    distance_km: float

    def sort_key(self) -> tuple[float, str]:
        return (self.distance_km, self.candidate.id)


class SpatialQuery(Protocol):
    """Radius query against the authoritative mover store.

    The radius filter may be approximate but must be inclusive: it never omits a
    mover that is truly within `radius_km`.
    """

    async def find_nearby(self, location: str, radius_km: float, min_rating: float) -> list[ProviderCandidate]:
        ...
