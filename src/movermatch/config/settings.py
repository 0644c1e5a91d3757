# src/movermatch/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/movermatch/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `MOVERMATCH_CONFIG_PATH`
- environment variables (e.g., `MOVERMATCH_SPATIAL_QUERY_URL`, `MOVERMATCH_SPATIAL_QUERY_API_KEY`)

Design rule:
- Tuning knobs (default radius, rating floor, timeouts) live in YAML, not in matching code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from movermatch.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `movermatch.config`."""
    text = resources.files("movermatch.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "MoverMatch"
    log_level: str = "INFO"


class SpatialQuerySettings(BaseModel):
    backend: Literal["memory", "rpc"] = "memory"
    base_url: str | None = None
    rpc_name: str = "find_nearby_movers"
    api_key: str | None = None
    timeout_seconds: float = Field(10, gt=0)


class CatalogSettings(BaseModel):
    path: str = "data/catalogs/movers.json"
    cell_size_km: float = Field(5.0, gt=0)


class MatchingSettings(BaseModel):
    default_radius_km: float = Field(20, gt=0)
    max_radius_km: float = Field(500, gt=0)
    min_rating: float = Field(0.0, ge=0, le=5)
    search_timeout_seconds: float | None = Field(default=15, gt=0)
    # When true, drop candidates whose recomputed distance exceeds the requested radius.
    strict_radius: bool = False
    widening_steps_km: list[float] = Field(default_factory=lambda: [10, 20, 50, 100])
    widening_min_results: int = Field(3, ge=1)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    spatial_query: SpatialQuerySettings = Field(default_factory=SpatialQuerySettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    vehicle_types: dict[str, str] = Field(default_factory=dict)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)
    log_level = os.getenv("MOVERMATCH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("MOVERMATCH_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    rpc_url = os.getenv("MOVERMATCH_SPATIAL_QUERY_URL")
    rpc_key = os.getenv("MOVERMATCH_SPATIAL_QUERY_API_KEY")
    if rpc_url:
        sq = data.setdefault("spatial_query", {})
        sq["base_url"] = rpc_url
        sq["backend"] = "rpc"
    if rpc_key:
        data.setdefault("spatial_query", {})["api_key"] = rpc_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("MOVERMATCH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
