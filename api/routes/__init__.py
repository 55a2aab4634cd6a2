"""
api.routes — Aggregates all domain-specific route modules into a single router.

app.py imports ``from api.routes import router`` which resolves here.
"""

from fastapi import APIRouter

from api.routes.health import router as health_router
from api.routes.parking import router as parking_router
from api.routes.tracking import router as tracking_router

router = APIRouter()

router.include_router(health_router)
router.include_router(tracking_router)
router.include_router(parking_router)
