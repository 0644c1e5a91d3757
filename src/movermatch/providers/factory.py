from __future__ import annotations

from movermatch.config.settings import Settings
from movermatch.matching.types import SpatialQuery
from movermatch.providers.memory import InMemorySpatialQuery
from movermatch.providers.rpc_client import RpcSpatialQuery


def build_spatial_query(settings: Settings) -> SpatialQuery:
    """Pick the configured spatial-query backend."""
    if settings.spatial_query.backend == "rpc":
        return RpcSpatialQuery.from_settings(settings)
    return InMemorySpatialQuery.from_settings(settings)
