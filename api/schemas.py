"""
Pydantic models — Data Contracts for the ParkSmart API.

Request/response shapes for the page that renders the live parking list.
Domain objects in parksmart.models are converted here at the HTTP edge.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from parksmart.location import PositionErrorCode, WatchOptions
from parksmart.models import Coordinate, ParkingCandidate, SourceReference, TrackingState
from parksmart.placeholders import DEFAULT_RATING


# ---------- Position (sensor → service) ---------- #

class PositionFix(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class PositionFailure(BaseModel):
    code: PositionErrorCode
    message: str = ""


class VisibilityUpdate(BaseModel):
    visible: bool


class WatchOptionsResponse(BaseModel):
    enable_high_accuracy: bool
    timeout_ms: int
    maximum_age_ms: int

    @classmethod
    def from_options(cls, options: WatchOptions) -> "WatchOptionsResponse":
        return cls(
            enable_high_accuracy=options.enable_high_accuracy,
            timeout_ms=int(options.timeout_s * 1000),
            maximum_age_ms=int(options.maximum_age_s * 1000),
        )


# ---------- Display state (service → page) ---------- #

class CoordinateOut(BaseModel):
    latitude: float
    longitude: float


class SourceOut(BaseModel):
    title: str
    uri: str


class CandidateOut(BaseModel):
    id: str
    name: str
    address: str
    distance: str
    rating: float
    price_estimate: str | None
    availability: str
    occupancy: int = Field(..., ge=0, le=100)
    last_updated: str
    maps_uri: str | None
    coordinate: CoordinateOut

    @classmethod
    def from_candidate(cls, c: ParkingCandidate) -> "CandidateOut":
        return cls(
            id=c.id,
            name=c.name,
            address=c.address,
            distance=c.distance_label,
            rating=round(c.rating if c.rating is not None else DEFAULT_RATING, 1),
            price_estimate=c.price_estimate,
            availability=c.availability.value,
            occupancy=c.occupancy,
            last_updated=c.last_updated,
            maps_uri=c.maps_uri,
            coordinate=CoordinateOut(
                latitude=c.coordinate.latitude, longitude=c.coordinate.longitude
            ),
        )


class StateResponse(BaseModel):
    tracking: bool
    location: CoordinateOut | None
    address: str | None
    last_sync: datetime | None
    permission_denied: bool
    loading: bool
    refreshing: bool
    visible: bool
    error: str | None
    candidates: list[CandidateOut] = Field(default_factory=list)
    narrative: str | None = None
    sources: list[SourceOut] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: TrackingState) -> "StateResponse":
        loc = state.last_coordinate
        outcome = state.outcome
        return cls(
            tracking=state.tracking,
            location=CoordinateOut(latitude=loc.latitude, longitude=loc.longitude) if loc else None,
            address=state.address,
            last_sync=state.last_sync,
            permission_denied=state.permission_denied,
            loading=state.loading,
            refreshing=state.refreshing,
            visible=state.visible,
            error=state.error,
            candidates=[CandidateOut.from_candidate(c) for c in outcome.candidates] if outcome else [],
            narrative=outcome.narrative if outcome else None,
            sources=[_source_out(s) for s in outcome.sources] if outcome else [],
        )


def _source_out(s: SourceReference) -> SourceOut:
    return SourceOut(title=s.title, uri=s.uri)
