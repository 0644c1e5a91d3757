import asyncio
import json

import pytest
from pydantic import ValidationError

from movermatch.config.settings import get_settings
from movermatch.core.errors import MatcherUnavailable, ParseError
from movermatch.core.geo import Coordinate
from movermatch.matching.matcher import ProximityMatcher
from movermatch.matching.types import SearchRequest
from movermatch.providers.catalog import load_movers
from movermatch.providers.memory import InMemorySpatialQuery

NAIROBI_CBD = Coordinate(latitude=-1.2921, longitude=36.8219)


def _store() -> InMemorySpatialQuery:
    return InMemorySpatialQuery.from_settings(get_settings())


def test_bundled_catalog_loads():
    records = load_movers(get_settings().catalog.path)
    assert len(records) == 8
    assert {r.id for r in records} >= {"mv-nbo-001", "mv-msa-001"}
    assert len(_store()) == 8


def test_nearby_movers_from_bundled_catalog_are_ranked():
    matcher = ProximityMatcher(_store())
    matches = asyncio.run(matcher.find_nearby(SearchRequest(origin=NAIROBI_CBD, radius_km=20)))

    assert [m.candidate.id for m in matches] == ["mv-nbo-005", "mv-nbo-002", "mv-nbo-001", "mv-nbo-003", "mv-nbo-004"]
    assert all(m.distance_km <= 20 for m in matches)
    # The store reports its own distance the way the database function does.
    assert matches[0].candidate.reported_distance_km == pytest.approx(matches[0].distance_km, abs=1e-3)


def test_vehicle_filter_and_rating_floor_with_bundled_catalog():
    matcher = ProximityMatcher(_store())

    vans = asyncio.run(matcher.find_nearby(SearchRequest.build(latitude=-1.2921, longitude=36.8219, radius_km=20, vehicle_types=["van"])))
    assert [m.candidate.id for m in vans] == ["mv-nbo-001", "mv-nbo-004"]

    rated = asyncio.run(matcher.find_nearby(SearchRequest(origin=NAIROBI_CBD, radius_km=20, min_rating=4.5)))
    assert [m.candidate.id for m in rated] == ["mv-nbo-001", "mv-nbo-004"]


def test_mombasa_mover_is_found_from_nairobi_with_a_wide_radius():
    matcher = ProximityMatcher(_store())
    matches = asyncio.run(matcher.find_nearby(SearchRequest(origin=NAIROBI_CBD, radius_km=445)))
    mombasa = [m for m in matches if m.candidate.id == "mv-msa-001"]
    assert mombasa and mombasa[0].distance_km == pytest.approx(440, abs=5)


def test_store_rejects_bad_point_text_which_matcher_reports_as_unavailable():
    store = _store()
    with pytest.raises(ParseError):
        asyncio.run(store.find_nearby("POINT(x y)", 5, 0))

    class _BrokenPointMatcher(ProximityMatcher):
        async def _query(self, point, radius_km, min_rating):
            return await super()._query("POINT(x y)", radius_km, min_rating)

    with pytest.raises(MatcherUnavailable):
        asyncio.run(_BrokenPointMatcher(store).find_nearby(SearchRequest(origin=NAIROBI_CBD, radius_km=5)))


def test_catalog_with_bad_row_fails_loudly(tmp_path):
    path = tmp_path / "movers.json"
    path.write_text(json.dumps([{"mover_id": "x", "location": "POINT(500 0)"}]), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_movers(path)
