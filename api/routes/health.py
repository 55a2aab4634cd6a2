"""
Health Routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    session = getattr(request.app.state, "session", None)
    return {
        "status": "ok",
        "tracking": bool(session and session.state.tracking),
        "queries_in_flight": session.in_flight if session else 0,
    }
