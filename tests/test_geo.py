from __future__ import annotations

from dataclasses import dataclass

import pytest

from safetynet.entities import Coordinates
from safetynet.geo import filter_by_radius, haversine_km, is_us_location


@dataclass
class Point:
    name: str
    latitude: float
    longitude: float


def test_haversine_known_distance() -> None:
    # London to Paris
    assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)


def test_haversine_is_zero_for_same_point() -> None:
    assert haversine_km(10.0, 10.0, 10.0, 10.0) == 0.0


def test_filter_keeps_points_within_radius_in_order() -> None:
    center = Coordinates(0.0, 0.0)
    points = [
        Point("far", 0.0, 2.0),
        Point("near", 0.0, 0.5),
        Point("here", 0.0, 0.0),
    ]

    kept = filter_by_radius(points, center, 100.0)

    assert [point.name for point in kept] == ["near", "here"]


def test_filter_boundary_is_inclusive() -> None:
    center = Coordinates(0.0, 0.0)
    edge = Point("edge", 0.0, 1.0)
    distance = haversine_km(0.0, 0.0, 0.0, 1.0)

    assert filter_by_radius([edge], center, distance) == [edge]


def test_filter_with_zero_radius_keeps_only_the_center() -> None:
    center = Coordinates(5.0, 5.0)
    points = [Point("center", 5.0, 5.0), Point("other", 5.001, 5.0)]

    assert [point.name for point in filter_by_radius(points, center, 0)] == ["center"]


def test_filter_rejects_negative_radius() -> None:
    with pytest.raises(ValueError):
        filter_by_radius([], Coordinates(0.0, 0.0), -1)


@pytest.mark.parametrize(
    "latitude, longitude, expected",
    [
        (33.2098, -87.5692, True),
        (21.3069, -157.8583, True),
        (61.2181, -149.9003, True),
        (51.5074, -0.1278, False),
    ],
)
def test_us_location_bounds(latitude: float, longitude: float, expected: bool) -> None:
    assert is_us_location(latitude, longitude) is expected
