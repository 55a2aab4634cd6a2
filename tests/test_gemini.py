"""Unit tests for parksmart.gemini — Gemini REST wrapper.

Tests cover: request shape (prompt, Maps grounding), address fallbacks,
candidate derivation from grounding chunks, and failure normalisation.
"""

import asyncio
import json
import random
import re
from datetime import datetime

import httpx
import pytest

from parksmart.gemini import (
    ADDRESS_FALLBACK,
    ADDRESS_UNKNOWN,
    NARRATIVE_FALLBACK,
    GeminiClient,
    GenerateContentResponse,
    LookupFailed,
    build_candidates,
)
from parksmart.models import Availability, Coordinate, SourceReference

SF = Coordinate(37.7749, -122.4194)
NOW = datetime(2025, 3, 1, 14, 7, 30)


# =========================================================================
# Helpers
# =========================================================================

def _payload(text=None, chunks=None):
    candidate = {}
    if text is not None:
        candidate["content"] = {"role": "model", "parts": [{"text": text}]}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return {"candidates": [candidate]}


def _client(handler, **kwargs):
    kwargs.setdefault("api_key", "test-key")
    kwargs.setdefault("rng", random.Random(1))
    kwargs.setdefault("clock", lambda: NOW)
    return GeminiClient(transport=httpx.MockTransport(handler), **kwargs)


def _respond(payload, status=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)
    return handler


GARAGES = [
    {"maps": {"title": "Fifth & Mission Garage", "uri": "https://maps.google.com/?cid=1"}},
    {"web": {"title": "Some blog", "uri": "https://example.com"}},
    {"maps": {"title": "Union Square Garage", "uri": "https://maps.google.com/?cid=2"}},
    {"maps": {}},
]


# =========================================================================
# Response schema
# =========================================================================

class TestResponseSchema:
    def test_text_joins_parts(self):
        resp = GenerateContentResponse.model_validate(
            {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}, {}]}}]}
        )
        assert resp.text == "ab"

    def test_empty_payload_degrades(self):
        resp = GenerateContentResponse.model_validate({})
        assert resp.text == ""
        assert resp.map_sources() == []

    def test_only_maps_chunks_become_sources(self):
        resp = GenerateContentResponse.model_validate(_payload("x", GARAGES))
        sources = resp.map_sources()
        assert [s.title for s in sources] == [
            "Fifth & Mission Garage",
            "Union Square Garage",
            "Parking Spot",
        ]
        assert sources[2].uri == ""


# =========================================================================
# Address lookup
# =========================================================================

class TestResolveAddress:
    def test_returns_trimmed_text(self):
        seen = []
        client = _client(_respond(_payload("  1 Market St, San Francisco, CA \n"), seen=seen))

        address = asyncio.run(client.resolve_address(SF))

        assert address == "1 Market St, San Francisco, CA"
        body = json.loads(seen[0].content)
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "37.7749, -122.4194" in prompt
        assert "tools" not in body
        assert seen[0].url.params["key"] == "test-key"
        assert seen[0].url.path.endswith(":generateContent")

    def test_empty_text_is_unknown_location(self):
        client = _client(_respond(_payload("   ")))
        assert asyncio.run(client.resolve_address(SF)) == ADDRESS_UNKNOWN

    def test_http_error_falls_back(self):
        client = _client(_respond({"error": {"code": 429}}, status=429))
        assert asyncio.run(client.resolve_address(SF)) == ADDRESS_FALLBACK

    def test_network_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = _client(handler)
        assert asyncio.run(client.resolve_address(SF)) == ADDRESS_FALLBACK

    def test_non_json_body_falls_back(self):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        assert asyncio.run(client.resolve_address(SF)) == ADDRESS_FALLBACK

    def test_missing_key_falls_back(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        calls = []
        client = _client(_respond(_payload("x"), seen=calls), api_key=None)

        assert asyncio.run(client.resolve_address(SF)) == ADDRESS_FALLBACK
        assert calls == []


# =========================================================================
# Parking search
# =========================================================================

class TestSearchParking:
    def test_request_carries_maps_grounding(self):
        seen = []
        client = _client(_respond(_payload("Summary", GARAGES), seen=seen))

        asyncio.run(client.search_parking(SF))

        body = json.loads(seen[0].content)
        assert body["tools"] == [{"googleMaps": {}}]
        assert body["toolConfig"]["retrievalConfig"]["latLng"] == {
            "latitude": 37.7749,
            "longitude": -122.4194,
        }
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "5 closest" in prompt
        assert "2km" in prompt

    def test_one_candidate_per_grounded_place(self):
        client = _client(_respond(_payload("Fifth & Mission is your best bet.", GARAGES)))

        outcome = asyncio.run(client.search_parking(SF))

        assert len(outcome.candidates) == 3
        assert len(outcome.sources) == 3
        assert outcome.narrative == "Fifth & Mission is your best bet."
        assert len({c.id for c in outcome.candidates}) == 3
        for c in outcome.candidates:
            assert 0 <= c.occupancy <= 100
            assert re.fullmatch(r"\d+\.\d km", c.distance_label)
            assert c.last_updated == "14:07"

    def test_names_come_from_grounding_not_narrative(self):
        client = _client(_respond(_payload("1. Imaginary Lot\n2. Another Lot", GARAGES[:1])))

        outcome = asyncio.run(client.search_parking(SF))

        assert [c.name for c in outcome.candidates] == ["Fifth & Mission Garage"]
        assert outcome.candidates[0].maps_uri == "https://maps.google.com/?cid=1"

    def test_no_grounding_means_no_cards(self):
        client = _client(_respond(_payload("Nothing close by.")))

        outcome = asyncio.run(client.search_parking(SF))

        assert outcome.candidates == ()
        assert outcome.narrative == "Nothing close by."

    def test_empty_text_uses_fallback_narrative(self):
        client = _client(_respond({"candidates": []}))
        outcome = asyncio.run(client.search_parking(SF))
        assert outcome.narrative == NARRATIVE_FALLBACK

    def test_http_error_raises_lookup_failed(self):
        client = _client(_respond({"error": {"code": 500}}, status=500))
        with pytest.raises(LookupFailed):
            asyncio.run(client.search_parking(SF))

    def test_malformed_shape_raises_lookup_failed(self):
        client = _client(_respond({"candidates": "not-a-list"}))
        with pytest.raises(LookupFailed):
            asyncio.run(client.search_parking(SF))


# =========================================================================
# Candidate construction
# =========================================================================

class TestBuildCandidates:
    def test_availability_matches_occupancy(self):
        sources = [SourceReference(title="x" * n, uri="") for n in range(1, 12)]
        candidates = build_candidates(sources, SF, NOW, random.Random(3))

        for c in candidates:
            if c.occupancy > 90:
                assert c.availability is Availability.FULL
            elif c.occupancy > 60:
                assert c.availability is Availability.LIMITED
            else:
                assert c.availability is Availability.AVAILABLE

    def test_ids_embed_rank_and_timestamp(self):
        sources = [SourceReference(title="A", uri=""), SourceReference(title="B", uri="u")]
        candidates = build_candidates(sources, SF, NOW, random.Random(3))

        stamp = int(NOW.timestamp() * 1000)
        assert [c.id for c in candidates] == [f"slot-0-{stamp}", f"slot-1-{stamp}"]
        assert candidates[0].maps_uri is None
        assert candidates[1].maps_uri == "u"

    def test_coordinates_fan_out_from_origin(self):
        sources = [SourceReference(title="A", uri=""), SourceReference(title="B", uri="")]
        first, second = build_candidates(sources, SF, NOW, random.Random(3))

        assert first.coordinate.latitude == pytest.approx(SF.latitude + 0.0015)
        assert second.coordinate.longitude == pytest.approx(SF.longitude + 0.003)
