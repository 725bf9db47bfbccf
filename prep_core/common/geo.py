# prep_core/common/geo.py
"""
Great-circle math on WGS84 coordinates.

All distances are meters. Inputs may be float, int or Decimal.
"""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Tuple, Union

Number = Union[float, int, Decimal]
LatLon = Tuple[Number, Number]

EARTH_RADIUS_METERS = 6_371_000.0


def distance(lat1: Number, lon1: Number, lat2: Number, lon2: Number) -> float:
    """Haversine distance in meters between two points."""
    phi1 = math.radians(float(lat1))
    phi2 = math.radians(float(lat2))
    d_phi = math.radians(float(lat2) - float(lat1))
    d_lambda = math.radians(float(lon2) - float(lon1))

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # float noise can push `a` just past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def is_within_radius(center: LatLon, point: LatLon, radius_meters: Number) -> bool:
    """True when `point` lies inside or exactly on the circle around `center`."""
    return distance(center[0], center[1], point[0], point[1]) <= float(radius_meters)
