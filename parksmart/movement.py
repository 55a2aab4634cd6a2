"""
Movement gate — skip lookups while the fix only jitters around one spot.

Distance is planar Euclidean over raw lat/lng degrees, no geodesic
correction. 0.0005 degrees is roughly 50 m at mid-latitudes.
"""

from __future__ import annotations

import math

from parksmart.config import MOVEMENT_THRESHOLD_DEG
from parksmart.models import Coordinate


def degree_distance(a: Coordinate, b: Coordinate) -> float:
    return math.hypot(a.latitude - b.latitude, a.longitude - b.longitude)


def should_query(
    previous: Coordinate | None,
    current: Coordinate,
    forced: bool = False,
    threshold: float = MOVEMENT_THRESHOLD_DEG,
) -> bool:
    """Return True when *current* warrants a fresh remote lookup.

    Forced queries and the very first query always pass.
    """
    if forced or previous is None:
        return True
    return degree_distance(previous, current) >= threshold
