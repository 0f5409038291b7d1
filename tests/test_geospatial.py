import math

import pytest

from route_assigner.models.domain import Coordinate, Waypoint
from route_assigner.services.geospatial import coordinates_match, distance_km, haversine_km


def test_haversine_zero_for_same_point():
    assert haversine_km(10.968, -74.781, 10.968, -74.781) == 0.0


def test_haversine_one_degree_of_latitude():
    # one degree along a meridian is R * pi / 180
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(6371.0 * math.pi / 180, rel=1e-9)


def test_haversine_is_symmetric():
    a = Coordinate(10.968, -74.781)
    b = Coordinate(10.991, -74.803)
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_coordinates_match_uses_tolerance_on_both_axes():
    base = Coordinate(10.968, -74.781)
    assert coordinates_match(base, Coordinate(10.9680000004, -74.781), 1e-6)
    assert not coordinates_match(base, Coordinate(10.968, -74.782), 1e-6)
    assert not coordinates_match(base, Coordinate(10.9680000004, -74.781), 0.0)


@pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (0.0, -181.0)])
def test_coordinate_rejects_out_of_range(lat, lon):
    with pytest.raises(ValueError):
        Coordinate(lat, lon)


def test_waypoint_shortcut_builds_coordinate():
    waypoint = Waypoint.at(10.5, -74.2, "Depot")
    assert waypoint.coordinate == Coordinate(10.5, -74.2)
    assert waypoint.label == "Depot"
