"""
Tracking session — the refresh scheduler and the only writer of TrackingState.

Triggers:
  * every new fix from the LocationTracker → non-forced query (movement gate)
  * periodic timer, while the page is visible → forced query
  * manual refresh → forced query

Each query runs the parking search and the address lookup concurrently.
Overlapping queries are allowed; every query carries a sequence number and
a response older than the newest one already applied is dropped, so a slow
earlier answer can never overwrite a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from parksmart.config import MOVEMENT_THRESHOLD_DEG, REFRESH_INTERVAL_S
from parksmart.gemini import GeminiClient
from parksmart.location import (
    GeolocationUnsupported,
    LocationTracker,
    PositionSource,
    UNSUPPORTED_MESSAGE,
    WatchOptions,
)
from parksmart.models import Coordinate, TrackingState
from parksmart.movement import should_query

logger = logging.getLogger(__name__)

SEARCH_ERROR_MESSAGE = "Unable to update nearby parking spots."


class TrackingSession:
    def __init__(
        self,
        lookup: GeminiClient,
        source: PositionSource | None,
        refresh_interval: float = REFRESH_INTERVAL_S,
        threshold: float = MOVEMENT_THRESHOLD_DEG,
        watch_options: WatchOptions | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.state = TrackingState()
        self._lookup = lookup
        self._tracker = LocationTracker(
            source, self.on_coordinate, self._on_tracking_failure, watch_options
        )
        self._refresh_interval = refresh_interval
        self._threshold = threshold
        self._clock = clock

        self._issued = 0
        self._applied = 0
        self._pending: set[asyncio.Task] = set()
        self._timer: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def watch_options(self) -> WatchOptions:
        return self._tracker.options

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        if self.start_tracking():
            self._arm_timer()

    def start_tracking(self) -> bool:
        """(Re)start the position watch. Also the user-facing retry action."""
        try:
            self._tracker.start_tracking()
        except GeolocationUnsupported as exc:
            logger.error("Tracking not started: %s", exc)
            self.state.error = str(exc)
            self.state.tracking = False
            return False
        self.state.loading = True
        self.state.tracking = True
        return True

    def mark_unsupported(self) -> None:
        """The device has no location capability at all. Terminal until retried."""
        logger.error("Tracking stopped: %s", UNSUPPORTED_MESSAGE)
        self._tracker.stop_tracking()
        self._cancel_timer()
        self.state.tracking = False
        self.state.loading = False
        self.state.permission_denied = False
        self.state.error = UNSUPPORTED_MESSAGE

    async def shutdown(self) -> None:
        self._tracker.stop_tracking()
        self.state.tracking = False
        timer = self._cancel_timer()
        if timer is not None:
            await asyncio.gather(timer, return_exceptions=True)
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Tracking session shut down (%d queries cancelled)", len(pending))

    # ------------------------------------------------------------------
    # Tracker events
    # ------------------------------------------------------------------

    def on_coordinate(self, coordinate: Coordinate) -> asyncio.Task:
        changed = coordinate != self.state.last_coordinate
        self.state.last_coordinate = coordinate
        self.state.last_sync = self._clock()
        self.state.permission_denied = False
        self.state.loading = False
        if changed:
            self._arm_timer()
        return self.schedule_query(coordinate, forced=False)

    def _on_tracking_failure(self, message: str) -> None:
        self.state.permission_denied = True
        self.state.loading = False
        self.state.error = message

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def set_visibility(self, visible: bool) -> None:
        self.state.visible = visible

    def refresh(self) -> asyncio.Task | None:
        """Manual refresh: forced query at the last known position."""
        if self.state.last_coordinate is None:
            return None
        return self.schedule_query(self.state.last_coordinate, forced=True)

    def tick(self) -> asyncio.Task | None:
        """One period of the refresh timer."""
        coordinate = self.state.last_coordinate
        if coordinate is None:
            return None
        if not self.state.visible:
            logger.debug("Periodic refresh skipped: page hidden")
            return None
        return self.schedule_query(coordinate, forced=True)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._timer_loop())

    def _cancel_timer(self) -> asyncio.Task | None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        return timer

    async def _timer_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            self.tick()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def schedule_query(self, coordinate: Coordinate, forced: bool) -> asyncio.Task:
        task = asyncio.create_task(self.run_query(coordinate, forced))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def run_query(self, coordinate: Coordinate, forced: bool = False) -> bool:
        """Look up parking + address for *coordinate*.

        Returns True if the result was applied to the state, False if the
        movement gate skipped it, it failed, or a newer query won.
        """
        if not should_query(self.state.last_query_coordinate, coordinate, forced, self._threshold):
            return False

        self._issued += 1
        seq = self._issued
        if forced:
            self.state.refreshing = True
        else:
            self.state.loading = True

        try:
            outcome, address = await asyncio.gather(
                self._lookup.search_parking(coordinate),
                self._lookup.resolve_address(coordinate),
            )
        except Exception as exc:
            if seq < self._applied:
                logger.info("Dropping failure of superseded query #%d", seq)
                return False
            logger.error("Query #%d failed: %s", seq, exc)
            self._applied = seq
            self.state.error = SEARCH_ERROR_MESSAGE
            return False
        else:
            if seq < self._applied:
                logger.info("Dropping stale result of query #%d (newest applied #%d)",
                            seq, self._applied)
                return False
            self._applied = seq
            self.state.outcome = outcome
            self.state.address = address
            self.state.last_query_coordinate = coordinate
            self.state.last_sync = self._clock()
            self.state.error = None
            return True
        finally:
            self.state.loading = False
            self.state.refreshing = False
