import httpx
import pytest

from adapters.query_params import (
    add_geo_query,
    add_options,
    add_pagination,
    add_param,
    extract_id,
    extract_total_count,
)
from core.domain.models import Coordinate, GeoGeometry, GeoModifier, GeoQuery, GeoRelation


@pytest.mark.parametrize("value", [None, "", [], ()])
def test_add_param_skips_null_and_empty(value):
    assert add_param({}, "type", value) == {}


def test_add_param_joins_lists_with_commas():
    params = add_param({}, "attrs", ["temperature", "humidity"])
    assert params == {"attrs": "temperature,humidity"}


def test_add_param_keeps_plain_string():
    assert add_param({}, "idPattern", "Room.*") == {"idPattern": "Room.*"}


def test_add_pagination_only_positive_values():
    assert add_pagination({}, 0, 0) == {}
    assert add_pagination({}, 10, 0) == {"offset": "10"}
    assert add_pagination({}, 0, 20) == {"limit": "20"}
    assert add_pagination({}, -1, -5) == {}


def test_add_options_only_active_flags():
    assert add_options({}, count=False) == {}
    assert add_options({}, count=True) == {"options": "count"}
    assert add_options({}, count=True, append=True) == {"options": "count,append"}


def test_geo_query_near_point():
    geo = GeoQuery(
        relation=GeoRelation.NEAR,
        modifier=GeoModifier.MAX_DISTANCE,
        distance=1000,
        geometry=GeoGeometry.POINT,
        coordinates=[Coordinate(latitude=40.418889, longitude=-3.691944)],
    )

    params = add_geo_query({}, geo)

    assert params == {
        "georel": "near;maxDistance:1000",
        "geometry": "point",
        "coords": "40.418889,-3.691944",
    }


def test_geo_query_near_keeps_fractional_distance():
    geo = GeoQuery(
        relation=GeoRelation.NEAR,
        modifier=GeoModifier.MIN_DISTANCE,
        distance=12.5,
        geometry=GeoGeometry.POINT,
        coordinates=[Coordinate(latitude=1.0, longitude=2.0)],
    )
    assert add_geo_query({}, geo)["georel"] == "near;minDistance:12.5"


def test_geo_query_polygon_joins_coordinates_with_semicolons():
    geo = GeoQuery(
        relation=GeoRelation.COVERED_BY,
        geometry=GeoGeometry.POLYGON,
        coordinates=[
            Coordinate(latitude=40.0, longitude=-3.5),
            Coordinate(latitude=40.5, longitude=-3.5),
            Coordinate(latitude=40.5, longitude=-4.0),
            Coordinate(latitude=40.0, longitude=-3.5),
        ],
    )

    params = add_geo_query({}, geo)

    assert params["georel"] == "coveredBy"
    assert params["geometry"] == "polygon"
    assert params["coords"] == "40.0,-3.5;40.5,-3.5;40.5,-4.0;40.0,-3.5"


def test_geo_query_near_without_modifier_or_coordinates():
    geo = GeoQuery(relation=GeoRelation.NEAR, geometry=GeoGeometry.POINT)
    assert add_geo_query({}, geo) == {"georel": "near", "geometry": "point"}

    geo = GeoQuery(relation=GeoRelation.NEAR, geometry=GeoGeometry.POINT, modifier=GeoModifier.MAX_DISTANCE)
    assert add_geo_query({}, geo)["georel"] == "near"


def test_geo_query_none_adds_nothing():
    assert add_geo_query({}, None) == {}


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"X-Total-Count": "42"}, 42),
        ({"X-Total-Count": " 7 "}, 7),
        ({}, 0),
        ({"X-Total-Count": "lots"}, 0),
        ({"X-Total-Count": ""}, 0),
        ({"X-Total-Count": "-3"}, 0),
    ],
)
def test_extract_total_count(headers, expected):
    assert extract_total_count(headers) == expected


def test_extract_total_count_is_case_insensitive_on_httpx_headers():
    assert extract_total_count(httpx.Headers({"x-total-count": "5"})) == 5


@pytest.mark.parametrize(
    "location, expected",
    [
        ("/v2/subscriptions/57458eb60962ef754e7c0998", "57458eb60962ef754e7c0998"),
        ("http://broker.test:1026/v2/registrations/abcdefg", "abcdefg"),
        ("/v2/registrations/abcdefg/", "abcdefg"),
        ("abcdefg", "abcdefg"),
        (None, ""),
        ("", ""),
    ],
)
def test_extract_id_returns_last_segment(location, expected):
    assert extract_id(location) == expected
