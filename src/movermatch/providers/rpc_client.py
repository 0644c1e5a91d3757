"""
Spatial-query collaborator backed by a PostgREST-style RPC.

The database exposes `find_nearby_movers(p_location, p_radius_km, p_min_rating)`, which runs
the index-accelerated radius + rating filter server-side. We only move bytes and decode rows.
"""

from __future__ import annotations

import logging

import httpx

from movermatch.config.settings import Settings
from movermatch.core.errors import MoverMatchError
from movermatch.core.http import post_json
from movermatch.matching.types import ProviderCandidate
from movermatch.providers.rows import decode_rows

logger = logging.getLogger(__name__)


class SpatialQueryError(MoverMatchError):
    """The RPC answered, but not with something we can use."""


class RpcSpatialQuery:
    def __init__(
        self,
        *,
        base_url: str,
        rpc_name: str = "find_nearby_movers",
        api_key: str | None = None,
        timeout_seconds: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required for the RPC spatial query backend")
        self._url = f"{base_url.rstrip('/')}/rest/v1/rpc/{rpc_name}"
        self._api_key = api_key
        self._timeout_seconds = float(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "RpcSpatialQuery":
        cfg = settings.spatial_query
        return cls(
            base_url=cfg.base_url or "",
            rpc_name=cfg.rpc_name,
            api_key=cfg.api_key,
            timeout_seconds=cfg.timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    async def find_nearby(self, location: str, radius_km: float, min_rating: float) -> list[ProviderCandidate]:
        payload = {"p_location": location, "p_radius_km": radius_km, "p_min_rating": min_rating}
        try:
            data = await post_json(
                self._url,
                payload=payload,
                headers=self._headers(),
                timeout_seconds=self._timeout_seconds,
                transport=self._transport,
            )
        except ValueError as exc:
            raise SpatialQueryError(f"RPC returned a non-JSON body: {exc}") from exc

        if data is None:
            return []
        if not isinstance(data, list):
            raise SpatialQueryError(f"RPC returned {type(data).__name__}, expected a list of rows")
        logger.debug("rpc %s returned %d row(s)", self._url, len(data))
        candidates = decode_rows(data, source="rpc")
        if data and not candidates:
            raise SpatialQueryError(f"RPC returned {len(data)} row(s), none of them usable")
        return candidates
