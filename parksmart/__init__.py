# ParkSmart — live parking finder core
#
# Position tracking, movement gate, Gemini lookups and the refresh
# session that ties them together. The HTTP surface lives in api/.

from parksmart.gemini import GeminiClient, LookupFailed
from parksmart.location import LocationTracker, PushPositionSource
from parksmart.movement import should_query
from parksmart.navigation import directions_url
from parksmart.session import TrackingSession

__all__ = [
    "GeminiClient",
    "LocationTracker",
    "LookupFailed",
    "PushPositionSource",
    "TrackingSession",
    "directions_url",
    "should_query",
]
