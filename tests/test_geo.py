"""大圆距离测试。"""
import math

import pytest

from smart_collar.geo import EARTH_RADIUS_M, distance_meters


def test_identical_points_are_zero() -> None:
    assert distance_meters(31.23, 121.47, 31.23, 121.47) == 0
    assert distance_meters(90, 0, 90, 0) == 0


def test_distance_is_symmetric() -> None:
    a = (1.3521, 103.8198)
    b = (1.2903, 103.8519)
    assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))


def test_one_degree_of_longitude_on_equator() -> None:
    assert distance_meters(0, 0, 0, 1) == pytest.approx(111_195, rel=0.01)


def test_antipodal_points() -> None:
    assert distance_meters(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_M)
    assert distance_meters(45, 30, -45, -150) == pytest.approx(math.pi * EARTH_RADIUS_M)
