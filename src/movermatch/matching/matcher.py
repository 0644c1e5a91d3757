"""
Proximity matcher.

Pipeline per search:
1) validate the request (`InvalidRequest` on caller bugs),
2) encode the origin as POINT text and make one call to the spatial-query collaborator,
3) keep candidates whose vehicle tags intersect the requested set (when one is given),
4) recompute every distance locally and order by (distance, id).

The collaborator's radius filter is trusted to be inclusive; our own haversine distance is
the one we display and sort on. Retries are the caller's decision, never ours.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable, TypeVar

from movermatch.config.settings import Settings
from movermatch.core.errors import Cancelled, InvalidRequest, MatcherUnavailable
from movermatch.core.geo import Coordinate, haversine_km
from movermatch.core.point import format_point
from movermatch.matching.types import MatchResult, ProviderCandidate, SearchRequest, SpatialQuery, normalize_tags

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class WideningResult:
    """Outcome of a progressive search: the radius that was settled on and its matches."""

    radius_km: float
    matches: list[MatchResult]
    steps_km: tuple[float, ...]


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def rank_candidates(
    origin: Coordinate,
    candidates: Iterable[ProviderCandidate],
    *,
    vehicle_types: Iterable[str] = (),
    max_distance_km: float | None = None,
) -> list[MatchResult]:
    """Filter by vehicle tags, attach haversine distances and sort by (distance, id).

    A candidate without tags never passes an active filter. Duplicate ids keep the first row.
    """
    allowed = normalize_tags(vehicle_types)
    seen: set[str] = set()
    out: list[MatchResult] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        if allowed and not (candidate.vehicle_types & allowed):
            continue
        d = haversine_km(origin, candidate.location)
        if max_distance_km is not None and d > max_distance_km:
            continue
        seen.add(candidate.id)
        out.append(MatchResult(candidate=candidate, distance_km=d))
    out.sort(key=MatchResult.sort_key)
    return out


class ProximityMatcher:
    def __init__(
        self,
        spatial_query: SpatialQuery,
        *,
        max_radius_km: float | None = None,
        strict_radius: bool = False,
        default_timeout_seconds: float | None = None,
        widening_steps_km: Iterable[float] = (),
        widening_min_results: int = 1,
    ):
        self._spatial_query = spatial_query
        self._max_radius_km = max_radius_km
        self._strict_radius = bool(strict_radius)
        self._default_timeout_seconds = default_timeout_seconds
        self._widening_steps_km = tuple(float(s) for s in widening_steps_km)
        self._widening_min_results = int(widening_min_results)

    @classmethod
    def from_settings(cls, spatial_query: SpatialQuery, settings: Settings) -> "ProximityMatcher":
        cfg = settings.matching
        return cls(
            spatial_query,
            max_radius_km=cfg.max_radius_km,
            strict_radius=cfg.strict_radius,
            default_timeout_seconds=cfg.search_timeout_seconds,
            widening_steps_km=cfg.widening_steps_km,
            widening_min_results=cfg.widening_min_results,
        )

    def validate(self, request: SearchRequest) -> None:
        """Raise `InvalidRequest` for anything the caller should have rejected."""
        if not isinstance(request.origin, Coordinate):
            raise InvalidRequest(f"origin must be a Coordinate, got {type(request.origin).__name__}")
        if not _is_positive_number(request.radius_km):
            raise InvalidRequest(f"radius_km must be a finite number > 0, got {request.radius_km!r}")
        if self._max_radius_km is not None and request.radius_km > self._max_radius_km:
            raise InvalidRequest(f"radius_km must be <= {self._max_radius_km:g}, got {request.radius_km:g}")
        rating = request.min_rating
        if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not math.isfinite(rating) or rating < 0:
            raise InvalidRequest(f"min_rating must be a finite number >= 0, got {rating!r}")
        tags = request.vehicle_types
        if isinstance(tags, str) or not isinstance(tags, Iterable) or any(not isinstance(t, str) for t in tags):
            raise InvalidRequest("vehicle_types must be a collection of strings")

    def _resolve_timeout(self, timeout_seconds: float | None) -> float | None:
        if timeout_seconds is None:
            return self._default_timeout_seconds
        if not _is_positive_number(timeout_seconds):
            raise InvalidRequest(f"timeout_seconds must be > 0, got {timeout_seconds!r}")
        return float(timeout_seconds)

    async def find_nearby(
        self,
        request: SearchRequest,
        *,
        timeout_seconds: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[MatchResult]:
        """Return movers near `request.origin`, nearest first.

        Raises:
            InvalidRequest: Bad origin, radius, rating floor or timeout.
            MatcherUnavailable: The spatial-query collaborator failed.
            Cancelled: `timeout_seconds` elapsed or `cancel` was set first.
        """
        self.validate(request)
        timeout = self._resolve_timeout(timeout_seconds)
        point = format_point(request.origin)

        candidates = await self._until_signal(
            self._query(point, request.radius_km, request.min_rating),
            timeout_seconds=timeout,
            cancel=cancel,
        )
        matches = rank_candidates(
            request.origin,
            candidates,
            vehicle_types=request.vehicle_types,
            max_distance_km=request.radius_km if self._strict_radius else None,
        )
        logger.info(
            "nearby search origin=%s radius_km=%g vehicle_types=%s candidates=%d matches=%d",
            point,
            request.radius_km,
            ",".join(sorted(request.vehicle_types)) or "*",
            len(candidates),
            len(matches),
        )
        return matches

    async def find_nearby_widening(
        self,
        request: SearchRequest,
        *,
        radius_steps_km: Iterable[float] | None = None,
        min_results: int | None = None,
        timeout_seconds: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> WideningResult:
        """Query several radii at once and settle on the smallest with enough matches.

        `request.radius_km` is the outer bound; smaller steps are tried first. Every step
        runs as its own task, and steps beyond the settled one are cancelled. The merged
        list is ordered by (distance, id), so the outcome never depends on arrival order.
        """
        self.validate(request)
        timeout = self._resolve_timeout(timeout_seconds)
        wanted = self._widening_min_results if min_results is None else int(min_results)
        if wanted < 1:
            raise InvalidRequest(f"min_results must be >= 1, got {wanted}")

        raw_steps = self._widening_steps_km if radius_steps_km is None else tuple(radius_steps_km)
        for step in raw_steps:
            if not _is_positive_number(step):
                raise InvalidRequest(f"radius steps must be finite numbers > 0, got {step!r}")
        steps = tuple(sorted({float(s) for s in raw_steps if s < request.radius_km})) + (float(request.radius_km),)

        point = format_point(request.origin)
        tasks = [asyncio.ensure_future(self._query(point, r, request.min_rating)) for r in steps]
        try:
            result = await self._until_signal(
                self._settle(request, steps, tasks, wanted),
                timeout_seconds=timeout,
                cancel=cancel,
            )
        finally:
            await _drain(tasks)

        logger.info(
            "widening search origin=%s steps_km=%s settled_km=%g matches=%d",
            point,
            ",".join(f"{s:g}" for s in steps),
            result.radius_km,
            len(result.matches),
        )
        return result

    async def _settle(
        self,
        request: SearchRequest,
        steps: tuple[float, ...],
        tasks: list[asyncio.Future],
        wanted: int,
    ) -> WideningResult:
        merged: list[ProviderCandidate] = []
        matches: list[MatchResult] = []
        for radius, task in zip(steps, tasks):
            merged.extend(await task)
            matches = rank_candidates(
                request.origin,
                merged,
                vehicle_types=request.vehicle_types,
                max_distance_km=radius if self._strict_radius else None,
            )
            if len(matches) >= wanted:
                return WideningResult(radius_km=radius, matches=matches, steps_km=steps)
        return WideningResult(radius_km=steps[-1], matches=matches, steps_km=steps)

    async def _query(self, point: str, radius_km: float, min_rating: float) -> list[ProviderCandidate]:
        try:
            return list(await self._spatial_query.find_nearby(point, radius_km, min_rating))
        except Exception as exc:
            logger.warning("spatial query failed point=%s radius_km=%g: %r", point, radius_km, exc)
            raise MatcherUnavailable(f"spatial query failed: {exc}") from exc

    async def _until_signal(
        self,
        awaitable: Awaitable[T],
        *,
        timeout_seconds: float | None,
        cancel: asyncio.Event | None,
    ) -> T:
        """Await `awaitable` unless the timeout elapses or `cancel` is set first."""
        work = asyncio.ensure_future(awaitable)
        waiters: set[asyncio.Future] = {work}
        stopper: asyncio.Future | None = None
        if cancel is not None:
            stopper = asyncio.ensure_future(cancel.wait())
            waiters.add(stopper)
        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout_seconds, return_when=asyncio.FIRST_COMPLETED)
        finally:
            await _drain([w for w in waiters if not w.done()])

        if work in done:
            return work.result()
        if stopper is not None and stopper in done:
            logger.info("search cancelled by caller")
            raise Cancelled("search cancelled by caller")
        logger.info("search timed out after %gs", timeout_seconds)
        raise Cancelled(f"search timed out after {timeout_seconds:g}s")


async def _drain(tasks: Iterable[asyncio.Future]) -> None:
    """Cancel unfinished tasks and wait for them, retrieving any exceptions."""
    pending = list(tasks)
    for t in pending:
        if not t.done():
            t.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
