"""
Placeholder generators for parking cards.

None of these values are telemetry. Gemini only tells us *which* places
exist (grounding chunks); occupancy, distance, rating and price are
synthesised here so the cards have something to draw. Occupancy is
deterministic in (title, rank); rating and price are random filler.
"""

from __future__ import annotations

import random
from datetime import datetime

from parksmart.models import Availability, Coordinate

DEFAULT_RATING = 4.5
OFFSET_STEP_DEG = 0.0015


def occupancy_for(title: str, index: int) -> int:
    """Fake occupancy percentage in [0, 100), derived from title length and rank."""
    return ((len(title) + index) * 17) % 100


def availability_for(occupancy: int) -> Availability:
    if occupancy > 90:
        return Availability.FULL
    if occupancy > 60:
        return Availability.LIMITED
    return Availability.AVAILABLE


def distance_label(index: int) -> str:
    return f"{0.1 + index * 0.25:.1f} km"


def rating(rng: random.Random) -> float:
    return 4.2 + rng.random() * 0.6


def price_tier(rng: random.Random) -> str:
    return "$" * rng.randint(1, 3)


def offset_coordinate(origin: Coordinate, index: int) -> Coordinate:
    step = (index + 1) * OFFSET_STEP_DEG
    return Coordinate(origin.latitude + step, origin.longitude + step)


def last_updated_label(now: datetime) -> str:
    return f"{now.hour}:{now.minute:02d}"
