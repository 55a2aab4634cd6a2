"""
Parking Routes — directions handoff for a displayed card.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from api.dependencies import get_session
from parksmart.navigation import directions_url
from parksmart.session import TrackingSession

router = APIRouter()


@router.get("/candidates/{candidate_id}/directions")
async def directions(candidate_id: str, session: TrackingSession = Depends(get_session)):
    """Redirect to Google Maps for the selected card."""
    outcome = session.state.outcome
    candidate = outcome.find(candidate_id) if outcome else None
    if candidate is None:
        raise HTTPException(status_code=404, detail=f"Unknown parking spot {candidate_id!r}")

    url = directions_url(candidate, session.state.last_coordinate)
    if url is None:
        raise HTTPException(status_code=409, detail="No current position yet")
    return RedirectResponse(url, status_code=307)
