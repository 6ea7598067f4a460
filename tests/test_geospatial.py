import math

import pytest

from src.careline.errors import InvalidInputError
from src.careline.models.domain import Coordinate
from src.careline.services.geospatial import distance_km, eta_minutes, haversine_km, is_valid_coordinate

POINTS = [
    Coordinate(39.30, -76.61),
    Coordinate(39.29, -76.60),
    Coordinate(21.5, 39.2),
    Coordinate(-33.86, 151.21),
    Coordinate(0.0, 179.9),
    Coordinate(0.0, -179.9),
]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a: Coordinate, b: Coordinate) -> None:
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


@pytest.mark.parametrize("point", POINTS)
def test_distance_to_self_is_zero(point: Coordinate) -> None:
    assert distance_km(point, point) == 0


def test_haversine_known_distance() -> None:
    # One degree of latitude on the mean-radius sphere
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(2 * math.pi * 6371.0 / 360, rel=1e-9)
    assert distance_km(Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)) == pytest.approx(22.24, abs=0.01)


def test_eta_for_baltimore_scenario() -> None:
    driver = Coordinate(39.29, -76.60)
    stop = Coordinate(39.30, -76.61)

    assert distance_km(driver, stop) == pytest.approx(1.4, abs=0.05)
    assert eta_minutes(driver, stop) == 2


def test_eta_is_never_below_one_minute() -> None:
    stop = Coordinate(39.30, -76.61)

    assert eta_minutes(stop, stop) == 1
    assert eta_minutes(Coordinate(39.3001, -76.61), stop) == 1


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_eta_is_positive_when_known(a: Coordinate, b: Coordinate) -> None:
    assert eta_minutes(a, b) >= 1


def test_eta_scales_with_speed() -> None:
    a, b = Coordinate(0.0, 0.0), Coordinate(1.0, 0.0)

    assert eta_minutes(a, b, average_speed_kmh=40) == round(111.195 / 40 * 60)
    assert eta_minutes(a, b, average_speed_kmh=80) == round(111.195 / 80 * 60)


def test_eta_is_none_without_positions() -> None:
    stop = Coordinate(39.30, -76.61)

    assert eta_minutes(None, stop) is None
    assert eta_minutes(stop, None) is None
    assert eta_minutes(Coordinate(math.nan, 0.0), stop) is None


def test_eta_rejects_non_positive_speed() -> None:
    with pytest.raises(InvalidInputError):
        eta_minutes(Coordinate(0, 0), Coordinate(1, 1), average_speed_kmh=0)


def test_is_valid_coordinate() -> None:
    assert is_valid_coordinate(39.3, -76.6)
    assert not is_valid_coordinate(91.0, 0.0)
    assert not is_valid_coordinate(0.0, -181.0)
    assert not is_valid_coordinate(math.inf, 0.0)
