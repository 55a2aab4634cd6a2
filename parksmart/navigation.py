"""
Directions handoff — build the URL the page opens in a new tab.
"""

from __future__ import annotations

from urllib.parse import quote

from parksmart.models import Coordinate, ParkingCandidate

DIRECTIONS_URL = (
    "https://www.google.com/maps/dir/?api=1"
    "&origin={lat},{lng}&destination={destination}&travelmode=driving"
)


def directions_url(candidate: ParkingCandidate, origin: Coordinate | None) -> str | None:
    """Grounded Maps link when Gemini gave one, else a driving search from *origin*.

    Returns None without a current position.
    """
    if origin is None:
        return None
    if candidate.maps_uri:
        return candidate.maps_uri
    return DIRECTIONS_URL.format(
        lat=origin.latitude,
        lng=origin.longitude,
        destination=quote(candidate.name, safe="!*'()"),
    )
