import asyncio
import json
import logging

import httpx
import pytest

from movermatch.core.errors import MatcherUnavailable
from movermatch.core.geo import Coordinate
from movermatch.matching.matcher import ProximityMatcher
from movermatch.matching.types import SearchRequest
from movermatch.providers.rpc_client import RpcSpatialQuery, SpatialQueryError


def _client(handler, **kwargs) -> RpcSpatialQuery:
    return RpcSpatialQuery(
        base_url="https://db.example.test/",
        api_key=kwargs.pop("api_key", "anon-key"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_rpc_posts_location_radius_and_rating():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    asyncio.run(_client(handler).find_nearby("POINT(36.8219 -1.2921)", 20, 0.0))

    [request] = seen
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/rpc/find_nearby_movers"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"
    assert json.loads(request.content) == {
        "p_location": "POINT(36.8219 -1.2921)",
        "p_radius_km": 20,
        "p_min_rating": 0.0,
    }


def test_rpc_decodes_rows_in_every_location_shape():
    rows = [
        {"mover_id": "a", "business_name": "A", "location": "POINT(36.80 -1.29)", "rating": 4.5,
         "total_moves": 10, "vehicle_types": ["Van", "pickup"], "distance_km": 2.1},
        {"mover_id": 7, "location": {"type": "Point", "coordinates": [36.81, -1.28]}},
        {"id": "c", "latitude": -1.27, "longitude": 36.82, "vehicle_types": None},
    ]
    candidates = asyncio.run(_client(lambda r: httpx.Response(200, json=rows)).find_nearby("POINT(36.8 -1.29)", 5, 0))

    assert [c.id for c in candidates] == ["a", "7", "c"]
    a, b, c = candidates
    assert a.location == Coordinate(latitude=-1.29, longitude=36.80)
    assert a.vehicle_types == frozenset({"van", "pickup"})
    assert a.reported_distance_km == 2.1
    assert a.raw["business_name"] == "A"
    assert b.location == Coordinate(latitude=-1.28, longitude=36.81)
    assert c.vehicle_types == frozenset()


def test_rpc_skips_rows_it_cannot_place(caplog):
    rows = [
        {"mover_id": "ok", "location": "POINT(36.8 -1.29)"},
        {"mover_id": "bad-point", "location": "POINT(200 10)"},
        {"business_name": "no id", "location": "POINT(36.8 -1.29)"},
        {"mover_id": "no-location"},
    ]
    with caplog.at_level(logging.WARNING, logger="movermatch.providers.rows"):
        candidates = asyncio.run(_client(lambda r: httpx.Response(200, json=rows)).find_nearby("POINT(36.8 -1.29)", 5, 0))

    assert [c.id for c in candidates] == ["ok"]
    assert "3 malformed row(s) out of 4" in caplog.text


def test_rpc_without_api_key_sends_no_auth_headers():
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"null", headers={"content-type": "application/json"})

    assert asyncio.run(_client(handler, api_key=None).find_nearby("POINT(0 0)", 1, 0)) == []
    assert "apikey" not in seen[0].headers


def test_rpc_rejects_non_list_body():
    client = _client(lambda r: httpx.Response(200, json={"message": "oops"}))
    with pytest.raises(SpatialQueryError, match="expected a list"):
        asyncio.run(client.find_nearby("POINT(0 0)", 1, 0))


def test_rpc_rejects_non_json_body():
    client = _client(lambda r: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(SpatialQueryError, match="non-JSON"):
        asyncio.run(client.find_nearby("POINT(0 0)", 1, 0))


def test_rpc_http_error_reaches_caller_as_matcher_unavailable():
    client = _client(lambda r: httpx.Response(500, json={"message": "statement timeout"}))
    matcher = ProximityMatcher(client)

    with pytest.raises(MatcherUnavailable) as excinfo:
        asyncio.run(matcher.find_nearby(SearchRequest(origin=Coordinate(latitude=0, longitude=0), radius_km=5)))

    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_rpc_requires_base_url():
    with pytest.raises(ValueError):
        RpcSpatialQuery(base_url="")


def test_rpc_rows_without_locations_are_an_upstream_failure():
    rows = [
        {"mover_id": "a", "business_name": "A", "distance_km": 1.2, "rating": 4.5,
         "total_moves": 10, "vehicle_types": ["van"]},
        {"mover_id": "b", "business_name": "B", "distance_km": 3.4, "rating": 4.0,
         "total_moves": 2, "vehicle_types": ["pickup"]},
    ]
    client = _client(lambda r: httpx.Response(200, json=rows))

    with pytest.raises(SpatialQueryError, match="none of them usable"):
        asyncio.run(client.find_nearby("POINT(36.8 -1.29)", 5, 0))

    matcher = ProximityMatcher(client)
    with pytest.raises(MatcherUnavailable) as excinfo:
        asyncio.run(matcher.find_nearby(SearchRequest(origin=Coordinate(latitude=-1.29, longitude=36.8), radius_km=5)))
    assert isinstance(excinfo.value.__cause__, SpatialQueryError)


def test_rpc_empty_row_list_is_still_a_valid_empty_answer():
    client = _client(lambda r: httpx.Response(200, json=[]))
    assert asyncio.run(client.find_nearby("POINT(36.8 -1.29)", 5, 0)) == []
