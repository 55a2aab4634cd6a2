"""
Remote lookups — Gemini ``generateContent`` over REST (no SDK dependency).

Two calls, both keyed on the current coordinate:

* ``resolve_address``  — best-guess street address. Never raises; any
  failure degrades to a fixed fallback string.
* ``search_parking``   — nearby lots and garages, grounded with the
  Google Maps tool. Facility identity comes from the grounding chunks,
  not from the narrative text. Failures raise ``LookupFailed``.

The response body is treated as untyped input and validated through the
pydantic models below; missing fields fall back to defaults.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Any, Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from parksmart import placeholders
from parksmart.config import (
    GEMINI_GENERATE_URL,
    GEMINI_MODEL,
    GEMINI_TIMEOUT_S,
    MAX_FACILITIES,
    SEARCH_RADIUS_KM,
    gemini_api_key,
)
from parksmart.models import (
    Coordinate,
    ParkingCandidate,
    SearchOutcome,
    SourceReference,
)

logger = logging.getLogger(__name__)

ADDRESS_UNKNOWN = "Unknown Location"
ADDRESS_FALLBACK = "Location detected"
NARRATIVE_FALLBACK = "No parking detected nearby."
SOURCE_TITLE_FALLBACK = "Parking Spot"
CANDIDATE_ADDRESS = "Address available on map"

ADDRESS_PROMPT = (
    "What is the approximate street address for coordinates {lat}, {lng}? "
    "Respond with ONLY the address string."
)

PARKING_PROMPT = """I am at GPS: {lat}, {lng}.
Identify the {limit} closest car parking lots or garages within {radius}km of this precise location.
For each:
1. Exact Name
2. Estimated Availability (Available/Limited/Full)
3. Pricing level ($ - $$$)

Provide a brief summary of which one is the best option right now."""


class LookupFailed(RuntimeError):
    """The parking search could not produce a result."""


# ---------------------------------------------------------------------------
# Response schema (only the fields we consume)
# ---------------------------------------------------------------------------

class _Part(BaseModel):
    text: str | None = None


class _Content(BaseModel):
    parts: list[_Part] = Field(default_factory=list)


class _MapsPlace(BaseModel):
    title: str | None = None
    uri: str | None = None


class _GroundingChunk(BaseModel):
    maps: _MapsPlace | None = None


class _GroundingMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    grounding_chunks: list[_GroundingChunk] = Field(
        default_factory=list, alias="groundingChunks"
    )


class _Candidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: _Content | None = None
    grounding_metadata: _GroundingMetadata | None = Field(
        default=None, alias="groundingMetadata"
    )


class GenerateContentResponse(BaseModel):
    candidates: list[_Candidate] = Field(default_factory=list)

    @property
    def text(self) -> str:
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return "".join(p.text or "" for p in self.candidates[0].content.parts)

    def map_sources(self) -> list[SourceReference]:
        """Grounded places (chunks carrying a ``maps`` entry) of the first candidate."""
        if not self.candidates or self.candidates[0].grounding_metadata is None:
            return []
        return [
            SourceReference(
                title=chunk.maps.title or SOURCE_TITLE_FALLBACK,
                uri=chunk.maps.uri or "",
            )
            for chunk in self.candidates[0].grounding_metadata.grounding_chunks
            if chunk.maps is not None
        ]


# ---------------------------------------------------------------------------
# Candidate construction
# ---------------------------------------------------------------------------

def build_candidates(
    sources: list[SourceReference],
    origin: Coordinate,
    now: datetime,
    rng: random.Random,
) -> tuple[ParkingCandidate, ...]:
    """One card per grounded place, in the order Gemini ranked them."""
    stamp = int(now.timestamp() * 1000)
    updated = placeholders.last_updated_label(now)
    candidates = []
    for index, source in enumerate(sources):
        occupancy = placeholders.occupancy_for(source.title, index)
        candidates.append(
            ParkingCandidate(
                id=f"slot-{index}-{stamp}",
                name=source.title,
                address=CANDIDATE_ADDRESS,
                distance_label=placeholders.distance_label(index),
                coordinate=placeholders.offset_coordinate(origin, index),
                availability=placeholders.availability_for(occupancy),
                occupancy=occupancy,
                rating=placeholders.rating(rng),
                price_estimate=placeholders.price_tier(rng),
                last_updated=updated,
                maps_uri=source.uri or None,
            )
        )
    return tuple(candidates)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class GeminiClient:
    """Thin async wrapper around ``models/{model}:generateContent``."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = GEMINI_MODEL,
        timeout: float = GEMINI_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._timeout = timeout
        self._transport = transport
        self._rng = rng or random.Random()
        self._clock = clock

    async def generate(
        self, prompt: str, extra: dict[str, Any] | None = None
    ) -> GenerateContentResponse:
        api_key = self._api_key or gemini_api_key()
        if not api_key:
            raise LookupFailed("GEMINI_API_KEY not set")

        url = GEMINI_GENERATE_URL.format(model=self.model)
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if extra:
            body.update(extra)

        started = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, params={"key": api_key}, json=body)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            raise LookupFailed(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise LookupFailed(f"Gemini returned a non-JSON body: {exc}") from exc

        try:
            parsed = GenerateContentResponse.model_validate(payload)
        except ValidationError as exc:
            raise LookupFailed(f"Unexpected Gemini response shape: {exc}") from exc

        logger.debug("Gemini %s answered in %.2fs", self.model, time.monotonic() - started)
        return parsed

    async def resolve_address(self, coordinate: Coordinate) -> str:
        prompt = ADDRESS_PROMPT.format(lat=coordinate.latitude, lng=coordinate.longitude)
        try:
            response = await self.generate(prompt)
        except LookupFailed as exc:
            logger.warning("Address lookup failed for (%s, %s): %s",
                           coordinate.latitude, coordinate.longitude, exc)
            return ADDRESS_FALLBACK
        return response.text.strip() or ADDRESS_UNKNOWN

    async def search_parking(self, coordinate: Coordinate) -> SearchOutcome:
        prompt = PARKING_PROMPT.format(
            lat=coordinate.latitude,
            lng=coordinate.longitude,
            limit=MAX_FACILITIES,
            radius=SEARCH_RADIUS_KM,
        )
        grounding = {
            "tools": [{"googleMaps": {}}],
            "toolConfig": {
                "retrievalConfig": {
                    "latLng": {
                        "latitude": coordinate.latitude,
                        "longitude": coordinate.longitude,
                    }
                }
            },
        }
        try:
            response = await self.generate(prompt, extra=grounding)
        except LookupFailed as exc:
            logger.error("Parking search failed for (%s, %s): %s",
                         coordinate.latitude, coordinate.longitude, exc)
            raise

        sources = response.map_sources()
        candidates = build_candidates(sources, coordinate, self._clock(), self._rng)
        logger.info("Parking search: %d grounded places near (%.5f, %.5f)",
                    len(candidates), coordinate.latitude, coordinate.longitude)
        return SearchOutcome(
            candidates=candidates,
            narrative=response.text or NARRATIVE_FALLBACK,
            sources=tuple(sources),
        )
