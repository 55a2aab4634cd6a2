"""Shared fixtures for the ParkSmart test suite.

Provides a scripted stand-in for the Gemini lookup client so session and
route tests never touch the network.
"""

import asyncio
from datetime import datetime

import pytest

from parksmart.gemini import LookupFailed
from parksmart.models import (
    Availability,
    Coordinate,
    ParkingCandidate,
    SearchOutcome,
    SourceReference,
)

SF = Coordinate(37.7749, -122.4194)
FIXED_NOW = datetime(2025, 3, 1, 9, 5, 0)


def make_outcome(*names, origin=SF, narrative="Try the first one."):
    candidates = tuple(
        ParkingCandidate(
            id=f"slot-{i}-1",
            name=name,
            address="Address available on map",
            distance_label=f"{0.1 + i * 0.25:.1f} km",
            coordinate=origin,
            availability=Availability.AVAILABLE,
            occupancy=10,
            rating=4.4,
            price_estimate="$$",
            last_updated="9:05",
            maps_uri=f"https://maps.google.com/?cid={i}" if i % 2 == 0 else None,
        )
        for i, name in enumerate(names)
    )
    sources = tuple(SourceReference(title=n, uri="") for n in names)
    return SearchOutcome(candidates=candidates, narrative=narrative, sources=sources)


class FakeLookup:
    """Scripted lookup client.

    ``outcomes`` is consumed one per search call; an Exception instance in
    the list is raised instead. ``gates`` (optional) holds one asyncio.Event
    per search call; the call waits on it before answering.
    """

    def __init__(self, outcomes=None, address="1 Market St, San Francisco"):
        self.outcomes = list(outcomes or [])
        self.address = address
        self.gates = []
        self.search_calls = []
        self.address_calls = []

    async def search_parking(self, coordinate):
        index = len(self.search_calls)
        self.search_calls.append(coordinate)
        if index < len(self.gates):
            await self.gates[index].wait()
        result = self.outcomes[index] if index < len(self.outcomes) else make_outcome("Default Garage")
        if isinstance(result, Exception):
            raise result
        return result

    async def resolve_address(self, coordinate):
        self.address_calls.append(coordinate)
        await asyncio.sleep(0)
        return self.address


@pytest.fixture()
def fake_lookup():
    return FakeLookup()


@pytest.fixture()
def failing_lookup():
    return FakeLookup(outcomes=[LookupFailed("quota exceeded")])
