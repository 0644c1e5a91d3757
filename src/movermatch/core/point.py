"""
Point text codec.

Providers and the spatial-query RPC exchange locations as `POINT(<lon> <lat>)`
(longitude first, the usual well-known-text order). `Coordinate` stays
latitude-first, so the swap happens only here.
"""

from __future__ import annotations

import re
from decimal import Decimal

from movermatch.core.errors import InvalidRequest, ParseError
from movermatch.core.geo import Coordinate

_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)"
_POINT_RE = re.compile(rf"POINT\(\s*({_NUMBER})\s+({_NUMBER})\s*\)")


def _plain_decimal(value: float) -> str:
    # Shortest round-trip repr, spelled without an exponent.
    return format(Decimal(repr(float(value))), "f")


def format_point(coordinate: Coordinate) -> str:
    """Encode `coordinate` as `POINT(<lon> <lat>)` without rounding."""
    return f"POINT({_plain_decimal(coordinate.longitude)} {_plain_decimal(coordinate.latitude)})"


def parse_point(text: str | None) -> Coordinate | None:
    """Decode `POINT(<lon> <lat>)`; return None for anything malformed or out of range."""
    if not text:
        return None
    match = _POINT_RE.fullmatch(text.strip())
    if match is None:
        return None
    lon, lat = float(match.group(1)), float(match.group(2))
    try:
        return Coordinate(latitude=lat, longitude=lon)
    except InvalidRequest:
        return None


def require_point(text: str | None) -> Coordinate:
    """Like `parse_point`, but raise `ParseError` instead of returning None."""
    coordinate = parse_point(text)
    if coordinate is None:
        raise ParseError(f"Invalid point text {text!r}; expected 'POINT(<lon> <lat>)' within range")
    return coordinate
