from __future__ import annotations

from dataclasses import replace

from movermatch.config.settings import Settings
from movermatch.core.point import require_point
from movermatch.core.spatial_index import SpatialGridIndex
from movermatch.domain.models import MoverRecord
from movermatch.matching.types import ProviderCandidate
from movermatch.providers.catalog import load_movers


class InMemorySpatialQuery:
    """Spatial-query collaborator over an in-process grid index.

    Mirrors the RPC contract: radius and rating floor are applied here, and the reported
    distance is filled in the way the database function does.
    """

    def __init__(self, candidates: list[ProviderCandidate], *, cell_size_km: float = 5.0):
        self._index = SpatialGridIndex(
            candidates,
            get_coordinate=lambda c: c.location,
            cell_size_km=cell_size_km,
        )

    @classmethod
    def from_records(cls, records: list[MoverRecord], *, cell_size_km: float = 5.0) -> "InMemorySpatialQuery":
        return cls([r.to_candidate(raw=r.model_dump(mode="json")) for r in records], cell_size_km=cell_size_km)

    @classmethod
    def from_settings(cls, settings: Settings) -> "InMemorySpatialQuery":
        return cls.from_records(load_movers(settings.catalog.path), cell_size_km=settings.catalog.cell_size_km)

    def __len__(self) -> int:
        return len(self._index)

    async def find_nearby(self, location: str, radius_km: float, min_rating: float) -> list[ProviderCandidate]:
        origin = require_point(location)
        out: list[ProviderCandidate] = []
        for candidate, distance_km in self._index.query_within(origin, radius_km):
            if min_rating > 0 and (candidate.rating is None or candidate.rating < min_rating):
                continue
            out.append(replace(candidate, reported_distance_km=round(distance_km, 3)))
        return out
