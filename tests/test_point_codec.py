import random

import pytest

from movermatch.core.errors import ParseError
from movermatch.core.geo import Coordinate
from movermatch.core.point import format_point, parse_point, require_point


def test_format_point_puts_longitude_first():
    assert format_point(Coordinate(latitude=-1.2921, longitude=36.8219)) == "POINT(36.8219 -1.2921)"


def test_parse_point_puts_longitude_first():
    c = parse_point("POINT(36.8219 -1.2921)")
    assert c == Coordinate(latitude=-1.2921, longitude=36.8219)


def test_round_trip_is_lossless():
    rng = random.Random(7)
    samples = [
        Coordinate(latitude=0.0, longitude=0.0),
        Coordinate(latitude=90, longitude=-180),
        Coordinate(latitude=-90, longitude=180),
        Coordinate(latitude=1e-7, longitude=-2.5e-9),
    ]
    samples += [Coordinate(latitude=rng.uniform(-90, 90), longitude=rng.uniform(-180, 180)) for _ in range(200)]
    for c in samples:
        back = parse_point(format_point(c))
        assert back is not None
        assert back.latitude == pytest.approx(c.latitude, abs=1e-9)
        assert back.longitude == pytest.approx(c.longitude, abs=1e-9)


def test_tiny_values_are_written_without_exponent():
    text = format_point(Coordinate(latitude=0.00001, longitude=-0.000002))
    assert "e" not in text.lower().replace("point", "")
    assert parse_point(text) == Coordinate(latitude=0.00001, longitude=-0.000002)


@pytest.mark.parametrize(
    "text",
    [
        "",
        None,
        "not a point",
        "POINT(200 10)",
        "POINT(10 95)",
        "POINT(10)",
        "POINT(10 20 30)",
        "POINT(1e3 10)",
        "POINT(abc def)",
        "point(10 20)",
        "POINT(10 20) trailing",
    ],
)
def test_parse_point_rejects_malformed_or_out_of_range(text):
    assert parse_point(text) is None


def test_parse_point_accepts_signs_and_bare_integers():
    assert parse_point("POINT(+36 -1)") == Coordinate(latitude=-1, longitude=36)
    assert parse_point("POINT(-180 90.)") == Coordinate(latitude=90, longitude=-180)


def test_require_point_raises_parse_error():
    with pytest.raises(ParseError, match="POINT"):
        require_point("POINT(200 10)")
