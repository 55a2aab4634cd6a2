"""
Location tracking — continuous position fixes from the device sensor.

The sensor lives in the browser (``navigator.geolocation.watchPosition``);
the page pushes every fix or error to the service, which fans it out to
whichever watches are currently registered on a ``PushPositionSource``.
``LocationTracker`` keeps at most one watch alive and normalises sensor
errors into a single user-facing message.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Protocol

from parksmart.config import POSITION_TIMEOUT_S
from parksmart.models import Coordinate

logger = logging.getLogger(__name__)

TRACKING_ERROR_MESSAGE = "GPS signal weak or permission denied."
UNSUPPORTED_MESSAGE = "Geolocation is not supported by this device."


class PositionErrorCode(IntEnum):
    # Same numbering as the W3C GeolocationPositionError codes.
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True)
class PositionError:
    code: PositionErrorCode
    message: str = ""


@dataclass(frozen=True)
class WatchOptions:
    enable_high_accuracy: bool = True
    timeout_s: float = POSITION_TIMEOUT_S
    maximum_age_s: float = 0


FixCallback = Callable[[Coordinate], None]
ErrorCallback = Callable[[PositionError], None]


class GeolocationUnsupported(RuntimeError):
    """No position source is available at all."""


class PositionSource(Protocol):
    def watch(
        self, on_fix: FixCallback, on_error: ErrorCallback, options: WatchOptions
    ) -> int: ...

    def clear_watch(self, handle: int) -> None: ...


class PushPositionSource:
    """Position source fed from outside (the browser page via the HTTP API)."""

    def __init__(self) -> None:
        self._watches: dict[int, tuple[FixCallback, ErrorCallback, WatchOptions]] = {}
        self._ids = itertools.count(1)

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    def watch(
        self, on_fix: FixCallback, on_error: ErrorCallback, options: WatchOptions
    ) -> int:
        handle = next(self._ids)
        self._watches[handle] = (on_fix, on_error, options)
        return handle

    def clear_watch(self, handle: int) -> None:
        self._watches.pop(handle, None)

    def push_fix(self, coordinate: Coordinate) -> int:
        """Deliver a fix to every active watch. Returns the number of deliveries."""
        watches = list(self._watches.values())
        for on_fix, _, _ in watches:
            on_fix(coordinate)
        return len(watches)

    def push_error(self, error: PositionError) -> int:
        watches = list(self._watches.values())
        for _, on_error, _ in watches:
            on_error(error)
        return len(watches)


class LocationTracker:
    """Owns the single watch handle on a ``PositionSource``.

    *on_coordinate* receives every fix; *on_failure* receives the fixed
    user-facing message whenever the sensor reports an error. Neither is
    retried automatically: callers retry by calling ``start_tracking`` again.
    """

    def __init__(
        self,
        source: PositionSource | None,
        on_coordinate: Callable[[Coordinate], None],
        on_failure: Callable[[str], None],
        options: WatchOptions | None = None,
    ) -> None:
        self._source = source
        self._on_coordinate = on_coordinate
        self._on_failure = on_failure
        self._options = options or WatchOptions()
        self._handle: int | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def options(self) -> WatchOptions:
        return self._options

    def start_tracking(self) -> None:
        if self._source is None:
            raise GeolocationUnsupported(UNSUPPORTED_MESSAGE)

        # Never leave two watches delivering the same fix twice.
        self.stop_tracking()
        self._handle = self._source.watch(self._handle_fix, self._handle_error, self._options)
        logger.info("Position watch %s started", self._handle)

    def stop_tracking(self) -> None:
        if self._handle is None:
            return
        if self._source is not None:
            self._source.clear_watch(self._handle)
        logger.info("Position watch %s cleared", self._handle)
        self._handle = None

    def _handle_fix(self, coordinate: Coordinate) -> None:
        self._on_coordinate(coordinate)

    def _handle_error(self, error: PositionError) -> None:
        logger.warning("Geolocation error (code=%s): %s", int(error.code), error.message)
        self._on_failure(TRACKING_ERROR_MESSAGE)
