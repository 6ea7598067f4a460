"""Geospatial helper functions and straight-line ETA estimates."""

from __future__ import annotations

import math
from typing import Optional

from ..errors import InvalidInputError
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0
DEFAULT_AVERAGE_SPEED_KMH = 40.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def eta_minutes(
    position: Optional[Coordinate],
    destination: Optional[Coordinate],
    average_speed_kmh: float = DEFAULT_AVERAGE_SPEED_KMH,
) -> Optional[int]:
    """Estimate whole minutes to reach ``destination`` at a fixed average speed.

    Returns None when either end is unknown or the distance is not finite.
    Any known result is at least one minute.
    """
    if average_speed_kmh <= 0:
        raise InvalidInputError("average_speed_kmh must be > 0")
    if position is None or destination is None:
        return None
    km = distance_km(position, destination)
    if not math.isfinite(km):
        return None
    return max(1, round(km / average_speed_kmh * 60))


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return (
        math.isfinite(latitude)
        and math.isfinite(longitude)
        and -90.0 <= latitude <= 90.0
        and -180.0 <= longitude <= 180.0
    )
