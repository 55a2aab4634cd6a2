"""
Tracking Routes — position fixes, visibility, refresh and display state.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_position_source, get_session
from api.schemas import (
    PositionFailure,
    PositionFix,
    StateResponse,
    VisibilityUpdate,
    WatchOptionsResponse,
)
from parksmart.location import PositionError, PushPositionSource
from parksmart.session import TrackingSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/state", response_model=StateResponse)
async def state(session: TrackingSession = Depends(get_session)):
    """Everything the page needs to render: address, flags, cards, summary."""
    return StateResponse.from_state(session.state)


@router.post("/position", response_model=StateResponse)
async def position(
    fix: PositionFix,
    source: PushPositionSource = Depends(get_position_source),
    session: TrackingSession = Depends(get_session),
):
    """Push one fix from ``watchPosition``. Ignored while no watch is active."""
    delivered = source.push_fix(fix.to_coordinate())
    if not delivered:
        logger.debug("Fix (%.5f, %.5f) dropped: no active watch", fix.latitude, fix.longitude)
    return StateResponse.from_state(session.state)


@router.post("/position-error", response_model=StateResponse)
async def position_error(
    failure: PositionFailure,
    source: PushPositionSource = Depends(get_position_source),
    session: TrackingSession = Depends(get_session),
):
    source.push_error(PositionError(code=failure.code, message=failure.message))
    return StateResponse.from_state(session.state)


@router.post("/visibility", response_model=StateResponse)
async def visibility(update: VisibilityUpdate, session: TrackingSession = Depends(get_session)):
    session.set_visibility(update.visible)
    return StateResponse.from_state(session.state)


@router.post("/refresh", response_model=StateResponse)
async def refresh(session: TrackingSession = Depends(get_session)):
    """Manual refresh. Runs in the background; poll /state for the result."""
    session.refresh()
    return StateResponse.from_state(session.state)


@router.post("/tracking/retry", response_model=StateResponse)
async def retry_tracking(session: TrackingSession = Depends(get_session)):
    session.start_tracking()
    return StateResponse.from_state(session.state)


@router.post("/tracking/unsupported", response_model=StateResponse)
async def tracking_unsupported(session: TrackingSession = Depends(get_session)):
    """The page has no ``navigator.geolocation``: terminal error, no watch."""
    session.mark_unsupported()
    return StateResponse.from_state(session.state)


@router.get("/tracking/options", response_model=WatchOptionsResponse)
async def tracking_options(session: TrackingSession = Depends(get_session)):
    return WatchOptionsResponse.from_options(session.watch_options)
