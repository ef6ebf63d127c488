"""
Observable trip list.

Each driver has one board holding the last successfully fetched trips and
a single user-visible error. Subscribers (live WebSocket clients) are
called with the new list after every successful refresh.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from driver_portal.app.core.exceptions import QueryError
from driver_portal.app.models.trip import Driver, Trip
from driver_portal.app.services.trip_store import TripStoreClient

logger = logging.getLogger("driver_portal.board")

Listener = Callable[[List[Trip]], Awaitable[None]]


class TripBoard:

    def __init__(self, driver: Driver):
        self.driver = driver
        self.trips: List[Trip] = []
        self.error: Optional[str] = None
        self.loaded = False
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get(self, trip_id: str) -> Optional[Trip]:
        return next((trip for trip in self.trips if trip.id == trip_id), None)

    async def refresh(self, store: TripStoreClient) -> bool:
        """
        Re-fetch the driver's trips and publish them.

        On failure the previous list stays in place and the backend message
        becomes the board's error.
        """
        try:
            trips = await store.fetch_assigned_trips(self.driver.id)
        except QueryError as e:
            self.error = e.message
            logger.warning(f"Trip refresh failed for driver {self.driver.id}: {e.message}")
            return False

        self.trips = trips
        self.loaded = True
        await self._publish()
        return True

    async def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                await listener(self.trips)
            except Exception:
                logger.exception(f"Trip listener failed for driver {self.driver.id}")


class TripBoards:
    """Per-process registry of boards keyed by driver id."""

    def __init__(self):
        self._boards: Dict[str, TripBoard] = {}

    def for_driver(self, driver: Driver) -> TripBoard:
        board = self._boards.get(driver.id)
        if board is None:
            board = self._boards[driver.id] = TripBoard(driver)
        return board
