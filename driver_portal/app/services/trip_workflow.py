"""
Trip status workflow.

State machine for the driver's actions on a trip:

    pending   -> collected (scan), cancelled
    collected -> arrived, delayed, cancelled
    delayed   -> collected (scan), arrived, cancelled
    arrived, cancelled: no further actions offered

Every action validates locally first, then writes the status patch, then
spawns the checkpoint and notification side calls and refreshes the board.
"""

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, List, Optional

from driver_portal.app.core.exceptions import AppException, MismatchError, QueryError, ResourceNotFoundError, ValidationError
from driver_portal.app.models.trip import Driver, StatusPatch, Trip
from driver_portal.app.models.trip_enums import CheckpointType, TripAction, TripStatus
from driver_portal.app.schemas.trip import TripStatusChange
from driver_portal.app.services.background import BackgroundTasks
from driver_portal.app.services.checkpoint_service import CheckpointRecorder
from driver_portal.app.services.notification_service import NotificationDispatcher
from driver_portal.app.services.qr_decoder import INVALID_QR_MESSAGE, ScannedIdentifier, decode
from driver_portal.app.services.scanner import FrameReader, ScanSession
from driver_portal.app.services.trip_board import TripBoard
from driver_portal.app.services.trip_store import TripStoreClient

logger = logging.getLogger("driver_portal.workflow")

ALLOWED_ACTIONS = {
    TripStatus.PENDING: (TripAction.SCAN, TripAction.CANCEL),
    TripStatus.COLLECTED: (TripAction.ARRIVE, TripAction.DELAY, TripAction.CANCEL),
    TripStatus.DELAYED: (TripAction.SCAN, TripAction.ARRIVE, TripAction.CANCEL),
    TripStatus.ARRIVED: (),
    TripStatus.CANCELLED: (),
}

ACTION_VERBS = {
    TripAction.SCAN: "confirm collection for",
    TripAction.ARRIVE: "mark arrival for",
    TripAction.DELAY: "report a delay for",
}


def available_actions(trip: Trip) -> List[TripAction]:
    return list(ALLOWED_ACTIONS[trip.status])


def surfaces_errors(action):
    """Clear the board's error, and record any failure of the action on it."""

    @wraps(action)
    async def wrapper(self, *args, **kwargs):
        self.board.error = None
        try:
            return await action(self, *args, **kwargs)
        except AppException as e:
            self.board.error = e.message
            raise

    return wrapper


class TripWorkflow:

    def __init__(
        self,
        driver: Driver,
        store: TripStoreClient,
        notifier: NotificationDispatcher,
        checkpoints: CheckpointRecorder,
        board: TripBoard,
        tasks: BackgroundTasks,
        clock: Callable[[], datetime] = None
    ):
        self.driver = driver
        self.store = store
        self.notifier = notifier
        self.checkpoints = checkpoints
        self.board = board
        self.tasks = tasks
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def refresh(self) -> List[Trip]:
        await self.board.refresh(self.store)
        return self.board.trips

    async def _selected(self, trip_id: str) -> Trip:
        if not self.board.loaded and not await self.board.refresh(self.store):
            raise QueryError(self.board.error)
        trip = self.board.get(trip_id)
        if trip is None:
            raise ResourceNotFoundError("Trip", trip_id)
        return trip

    def _require(self, trip: Trip, action: TripAction) -> None:
        if action not in ALLOWED_ACTIONS[trip.status]:
            raise ValidationError(
                f"Cannot {ACTION_VERBS[action]} a trip that is {trip.status.value}",
                details={"trip_id": trip.id, "status": trip.status.value, "action": action.value}
            )

    @surfaces_errors
    async def scan_guest(self, trip_id: str, raw_text: str) -> TripStatusChange:
        """Confirm collection from scanned QR text."""
        return await self._confirm(trip_id, decode(raw_text))

    @surfaces_errors
    async def scan_with_camera(self, trip_id: str, reader: FrameReader) -> TripStatusChange:
        """
        Run a camera scan for the selected trip, then confirm collection.

        The camera is released before the backend write starts.
        """
        async with ScanSession(reader) as session:
            scanned = await session.next_identifier()
        return await self._confirm(trip_id, scanned)

    async def _confirm(self, trip_id: str, scanned: ScannedIdentifier) -> TripStatusChange:
        if not scanned.valid:
            raise ValidationError(INVALID_QR_MESSAGE)

        trip = await self._selected(trip_id)

        # Only the selected trip's guest counts, even if the scanned guest
        # rides on another of this driver's trips.
        if scanned.candidate.lower() != trip.guest_id.lower():
            logger.info(f"Guest mismatch on trip {trip.id}: scanned {scanned.candidate}")
            raise MismatchError(trip.id, scanned.candidate)

        self._require(trip, TripAction.SCAN)

        now = self.clock()
        return await self._transition(
            trip, StatusPatch.collected(now), now,
            checkpoint=CheckpointType.COLLECTED_BY_DRIVER,
        )

    @surfaces_errors
    async def mark_arrived(self, trip_id: str) -> TripStatusChange:
        trip = await self._selected(trip_id)
        self._require(trip, TripAction.ARRIVE)
        now = self.clock()
        return await self._transition(
            trip, StatusPatch.arrived(now), now,
            checkpoint=CheckpointType.ARRIVED_AT_DESTINATION,
        )

    @surfaces_errors
    async def set_delay(
        self,
        trip_id: str,
        delay_minutes: Optional[int],
        delay_reason: Optional[str]
    ) -> TripStatusChange:
        if isinstance(delay_minutes, bool) or not isinstance(delay_minutes, int) or delay_minutes <= 0:
            raise ValidationError("Please enter the delay in whole minutes, greater than zero.")
        reason = (delay_reason or "").strip()
        if not reason:
            raise ValidationError("Please enter a reason for the delay.")

        trip = await self._selected(trip_id)
        self._require(trip, TripAction.DELAY)

        return await self._transition(
            trip, StatusPatch.delayed(delay_minutes, reason), self.clock(),
            reason=reason, delay_minutes=delay_minutes,
        )

    @surfaces_errors
    async def cancel_trip(self, trip_id: str, cancellation_reason: Optional[str]) -> TripStatusChange:
        reason = (cancellation_reason or "").strip()
        if not reason:
            raise ValidationError("Please enter a reason for cancelling the trip.")

        trip = await self._selected(trip_id)
        if trip.status == TripStatus.CANCELLED:
            raise ValidationError("This trip is already cancelled.", details={"trip_id": trip.id})

        now = self.clock()
        return await self._transition(
            trip, StatusPatch.cancelled(reason, now), now,
            reason=reason,
        )

    async def _transition(
        self,
        trip: Trip,
        patch: StatusPatch,
        changed_at: datetime,
        checkpoint: Optional[CheckpointType] = None,
        reason: Optional[str] = None,
        delay_minutes: Optional[int] = None
    ) -> TripStatusChange:
        # A failed write propagates; nothing below runs.
        await self.store.update_trip_status(trip.id, patch)

        if checkpoint is not None:
            self.tasks.spawn(self.checkpoints.record(trip, checkpoint), f"checkpoint:{trip.id}")
        self.tasks.spawn(
            self.notifier.notify(trip, patch.status, self.driver, reason=reason, delay_minutes=delay_minutes),
            f"notify:{trip.id}"
        )

        await self.refresh()

        logger.info(
            "Trip transitioned",
            extra={"trip_id": trip.id, "from": trip.status.value, "to": patch.status.value, "driver_id": self.driver.id}
        )
        return TripStatusChange(
            trip_id=trip.id,
            previous_status=trip.status,
            status=patch.status,
            changed_at=changed_at,
        )
