from decimal import Decimal

import pytest

from prep_core.common.geo import distance, is_within_radius

OSLO = (59.9139, 10.7522)
BERGEN = (60.3913, 5.3221)


def test_distance_is_symmetric():
    assert distance(*OSLO, *BERGEN) == pytest.approx(distance(*BERGEN, *OSLO))


def test_distance_zero_for_same_point():
    assert distance(*OSLO, *OSLO) == 0.0


def test_distance_oslo_bergen_roughly_305_km():
    assert distance(*OSLO, *BERGEN) == pytest.approx(305_000, rel=0.02)


def test_one_hundredth_degree_latitude_in_meters():
    # 2 * pi * 6_371_000 / 360 / 100
    assert distance(0, 0, 0.01, 0) == pytest.approx(1111.95, abs=0.01)


def test_accepts_decimals():
    assert distance(Decimal("59.9139000"), Decimal("10.7522000"), *BERGEN) == pytest.approx(distance(*OSLO, *BERGEN))


def test_radius_boundary_is_inclusive():
    point = (59.9239, 10.7522)
    d = distance(*OSLO, *point)

    assert is_within_radius(OSLO, point, d)
    assert not is_within_radius(OSLO, point, d - 1e-6)


def test_center_is_within_zero_radius():
    assert is_within_radius(OSLO, OSLO, 0)
