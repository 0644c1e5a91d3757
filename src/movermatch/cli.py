"""
MoverMatch CLI entrypoint.

Intended for local demos and debugging against the configured spatial-query backend.
All matching goes through `movermatch.matching.matcher.ProximityMatcher`.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from movermatch.config.settings import get_settings
from movermatch.core.errors import Cancelled, InvalidRequest, MatcherUnavailable, ParseError
from movermatch.core.geo import haversine_km
from movermatch.core.logging import configure_logging
from movermatch.core.point import format_point, require_point
from movermatch.domain.models import MatchItem
from movermatch.matching.matcher import ProximityMatcher
from movermatch.matching.types import SearchRequest
from movermatch.providers.factory import build_spatial_query

# Distinct exit codes so scripts can tell a bad call from an outage.
EXIT_INVALID = 2
EXIT_UNAVAILABLE = 3
EXIT_CANCELLED = 4


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Handle the `nearby` subcommand."""
    settings = get_settings()
    request = SearchRequest.build(
        latitude=args.lat,
        longitude=args.lon,
        radius_km=args.radius_km if args.radius_km is not None else settings.matching.default_radius_km,
        vehicle_types=args.vehicle_type,
        min_rating=args.min_rating if args.min_rating is not None else settings.matching.min_rating,
    )
    matcher = ProximityMatcher.from_settings(build_spatial_query(settings), settings)

    if args.widen:
        outcome = asyncio.run(matcher.find_nearby_widening(request, timeout_seconds=args.timeout))
        matches, radius_km = outcome.matches, outcome.radius_km
    else:
        matches = asyncio.run(matcher.find_nearby(request, timeout_seconds=args.timeout))
        radius_km = request.radius_km

    if args.json:
        payload = {
            "origin_point": format_point(request.origin),
            "radius_km": radius_km,
            "results": [MatchItem.from_match(m).model_dump(mode="json") for m in matches],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print(f"Movers within {radius_km:g} km of {format_point(request.origin)}: {len(matches)}")
    for i, m in enumerate(matches, start=1):
        c = m.candidate
        rating = f"{c.rating:.1f}" if c.rating is not None else "-"
        tags = ",".join(sorted(c.vehicle_types)) or "-"
        print(f"{i:>2}. {c.business_name or c.id}  {m.distance_km:.2f} km  rating={rating}  vehicles={tags}")
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    a = require_point(args.origin)
    b = require_point(args.destination)
    print(f"{haversine_km(a, b):.3f}")
    return 0


def _cmd_parse_point(args: argparse.Namespace) -> int:
    c = require_point(args.text)
    print(json.dumps({"latitude": c.latitude, "longitude": c.longitude}))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the MoverMatch CLI."""
    parser = argparse.ArgumentParser(prog="movermatch")
    parser.add_argument("--log-level", default=None, help="Override MOVERMATCH_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearby", help="Find movers near a location.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lon", required=True, type=float)
    near.add_argument("--radius-km", type=float, default=None)
    near.add_argument("--vehicle-type", action="append", default=[], help="Repeatable allow-list filter.")
    near.add_argument("--min-rating", type=float, default=None)
    near.add_argument("--timeout", type=float, default=None, help="Seconds before giving up.")
    near.add_argument("--widen", action="store_true", help="Try smaller radii first (configured steps).")
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearby)

    dist = sub.add_parser("distance", help="Great-circle distance in km between two POINT strings.")
    dist.add_argument("origin", help="POINT(<lon> <lat>)")
    dist.add_argument("destination", help="POINT(<lon> <lat>)")
    dist.set_defaults(func=_cmd_distance)

    pp = sub.add_parser("parse-point", help="Decode POINT text into latitude/longitude.")
    pp.add_argument("text")
    pp.set_defaults(func=_cmd_parse_point)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m movermatch.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except (InvalidRequest, ParseError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except MatcherUnavailable as exc:
        print(f"unavailable: {exc}", file=sys.stderr)
        return EXIT_UNAVAILABLE
    except Cancelled as exc:
        print(f"cancelled: {exc}", file=sys.stderr)
        return EXIT_CANCELLED


if __name__ == "__main__":
    raise SystemExit(main())
