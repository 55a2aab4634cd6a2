"""
Runtime configuration — read from the environment (``.env`` is loaded by app.py).
"""

from __future__ import annotations

import os

GEMINI_GENERATE_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_TIMEOUT_S = float(os.getenv("GEMINI_TIMEOUT_S", "30"))

REFRESH_INTERVAL_S = float(os.getenv("PARKSMART_REFRESH_INTERVAL_S", "60"))
MOVEMENT_THRESHOLD_DEG = float(os.getenv("PARKSMART_MOVEMENT_THRESHOLD_DEG", "0.0005"))  # ~50m
POSITION_TIMEOUT_S = float(os.getenv("PARKSMART_POSITION_TIMEOUT_S", "15"))

SEARCH_RADIUS_KM = 2
MAX_FACILITIES = 5


def gemini_api_key() -> str | None:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
