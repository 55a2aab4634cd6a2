"""
ParkSmart — FastAPI Entry Point

Start with:  uvicorn app:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from api.routes import router
from parksmart.gemini import GeminiClient
from parksmart.location import PushPositionSource
from parksmart.session import TrackingSession

_STATIC = Path(__file__).parent / "static"

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s — %(message)s")
logger = logging.getLogger("parksmart")


@asynccontextmanager
async def lifespan(app: FastAPI):
    source = PushPositionSource()
    session = TrackingSession(lookup=GeminiClient(), source=source)
    app.state.position_source = source
    app.state.session = session
    session.start()
    logger.info("Tracking session started")
    try:
        yield
    finally:
        await session.shutdown()


app = FastAPI(
    title="ParkSmart API",
    description="Real-time nearby parking, grounded with Gemini + Google Maps",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/", response_class=HTMLResponse)
def index():
    """Single-screen page: pushes GPS fixes and renders the parking cards."""
    return (_STATIC / "index.html").read_text(encoding="utf-8")


app.include_router(router, prefix="/api/v1")
