"""
Request-scoped access to the single tracking session held on ``app.state``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from parksmart.location import PushPositionSource
from parksmart.session import TrackingSession


def get_session(request: Request) -> TrackingSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Tracking session not started")
    return session


def get_position_source(request: Request) -> PushPositionSource:
    source = getattr(request.app.state, "position_source", None)
    if source is None:
        raise HTTPException(status_code=503, detail="Geolocation is not available")
    return source
