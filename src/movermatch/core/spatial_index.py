"""
Lightweight spatial indexing (grid bucket) for lat/lon points.

Backs the in-memory provider store so radius queries avoid O(N) scans when the
catalog grows to thousands of movers. Cells are square in degrees; the
longitude span scanned for a query widens with latitude, so the pre-filter
never drops a point that is truly within the radius.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from movermatch.core.geo import EARTH_RADIUS_KM, Coordinate, haversine_km

T = TypeVar("T")

_KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180.0


@dataclass(frozen=True)
class _Entry(Generic[T]):
    item: T
    coordinate: Coordinate


class SpatialGridIndex(Generic[T]):
    def __init__(
        self,
        items: list[T],
        *,
        get_coordinate: Callable[[T], Coordinate],
        cell_size_km: float = 5.0,
    ):
        if float(cell_size_km) <= 0:
            raise ValueError("cell_size_km must be > 0")
        self._cell_deg = float(cell_size_km) / _KM_PER_DEGREE
        self._lon_columns = max(1, math.ceil(360.0 / self._cell_deg))
        self._cells: dict[tuple[int, int], list[_Entry[T]]] = {}
        self._size = 0

        for it in items:
            coordinate = get_coordinate(it)
            self._cells.setdefault(self._cell_key(coordinate.latitude, coordinate.longitude), []).append(
                _Entry(item=it, coordinate=coordinate)
            )
            self._size += 1

    def __len__(self) -> int:
        return self._size

    def _row(self, lat: float) -> int:
        return int(math.floor((lat + 90.0) / self._cell_deg))

    def _column(self, lon: float) -> int:
        return int(math.floor((lon + 180.0) / self._cell_deg)) % self._lon_columns

    def _cell_key(self, lat: float, lon: float) -> tuple[int, int]:
        return (self._row(lat), self._column(lon))

    def _columns_for(self, origin: Coordinate, radius_km: float) -> set[int] | None:
        """Longitude columns a radius query must visit (None means all of them)."""
        angular = radius_km / EARTH_RADIUS_KM
        if angular >= math.pi / 2:
            return None
        cos_lat = math.cos(math.radians(origin.latitude))
        if math.sin(angular) >= cos_lat:
            return None
        dlon = math.degrees(math.asin(math.sin(angular) / cos_lat))
        if dlon >= 180.0:
            return None
        first = int(math.floor((origin.longitude - dlon + 180.0) / self._cell_deg))
        last = int(math.floor((origin.longitude + dlon + 180.0) / self._cell_deg))
        if last - first + 1 >= self._lon_columns:
            return None
        return {c % self._lon_columns for c in range(first, last + 1)}

    def query_within(self, origin: Coordinate, radius_km: float) -> list[tuple[T, float]]:
        """Return `(item, distance_km)` for every indexed item within `radius_km` of `origin`."""
        r = float(radius_km)
        if r <= 0:
            return []
        dlat = math.degrees(r / EARTH_RADIUS_KM)
        first_row = self._row(max(-90.0, origin.latitude - dlat))
        last_row = self._row(min(90.0, origin.latitude + dlat))
        columns = self._columns_for(origin, r)

        out: list[tuple[T, float]] = []
        if columns is None:
            # Polar or continent-sized query: every column in the band qualifies.
            for (row, _column), cell in self._cells.items():
                if first_row <= row <= last_row:
                    out.extend(self._within(cell, origin, r))
            return out

        for row in range(first_row, last_row + 1):
            for column in columns:
                cell = self._cells.get((row, column))
                if cell:
                    out.extend(self._within(cell, origin, r))
        return out

    @staticmethod
    def _within(cell: list[_Entry[T]], origin: Coordinate, radius_km: float) -> list[tuple[T, float]]:
        hits: list[tuple[T, float]] = []
        for e in cell:
            d = haversine_km(origin, e.coordinate)
            if d <= radius_km:
                hits.append((e.item, d))
        return hits
