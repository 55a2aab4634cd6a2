"""
Domain types shared by the tracker, the lookup client and the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


class Availability(str, Enum):
    AVAILABLE = "Available"
    LIMITED = "Limited"
    FULL = "Full"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class SourceReference:
    """A grounded place returned alongside the model's free-text answer."""

    title: str
    uri: str


@dataclass(frozen=True)
class ParkingCandidate:
    id: str
    name: str
    address: str
    distance_label: str
    coordinate: Coordinate
    availability: Availability = Availability.UNKNOWN
    occupancy: int = 0
    rating: float | None = None
    price_estimate: str | None = None
    last_updated: str = ""
    maps_uri: str | None = None


@dataclass(frozen=True)
class SearchOutcome:
    candidates: tuple[ParkingCandidate, ...]
    narrative: str
    sources: tuple[SourceReference, ...] = ()

    def find(self, candidate_id: str) -> ParkingCandidate | None:
        for c in self.candidates:
            if c.id == candidate_id:
                return c
        return None


@dataclass
class TrackingState:
    """Everything the display needs. Only TrackingSession mutates this."""

    last_coordinate: Coordinate | None = None
    last_query_coordinate: Coordinate | None = None
    last_sync: datetime | None = None
    permission_denied: bool = False
    loading: bool = False
    refreshing: bool = False
    error: str | None = None
    address: str | None = None
    outcome: SearchOutcome | None = None
    visible: bool = True
    tracking: bool = False
