"""
Notification Service.

Builds and submits status-change notifications for a guest's trip.
Delivery is best-effort: nothing here may fail the status change that
triggered it.
"""

import logging
from typing import Optional, Tuple

from driver_portal.app.core.config import settings
from driver_portal.app.core.exceptions import NotificationError, QueryError
from driver_portal.app.db.client import BackendClient
from driver_portal.app.models.notification import NotificationRecord
from driver_portal.app.models.trip import Driver, Trip
from driver_portal.app.models.trip_enums import TripStatus

logger = logging.getLogger("driver_portal.notifications")


def build_message(
    trip: Trip,
    status: TripStatus,
    driver: Driver,
    reason: Optional[str] = None,
    delay_minutes: Optional[int] = None
) -> Optional[Tuple[str, str]]:
    """Title and body for a status change, or None if the status is not announced."""
    guest = trip.guest_name
    if status == TripStatus.COLLECTED:
        return "Guest collected", f"{guest} has been collected by {driver.full_name}."
    if status == TripStatus.ARRIVED:
        destination = trip.dropoff_location or "their destination"
        return "Guest arrived", f"{guest} has arrived at {destination} with {driver.full_name}."
    if status == TripStatus.DELAYED:
        return (
            "Trip delayed",
            f"{guest}'s trip with {driver.full_name} is delayed by {delay_minutes} minutes. Reason: {reason}",
        )
    if status == TripStatus.CANCELLED:
        return (
            "Trip cancelled",
            f"{guest}'s trip with {driver.full_name} was cancelled. Reason: {reason}",
        )
    return None


class NotificationDispatcher:

    def __init__(self, backend: BackendClient, access_token: str):
        self.backend = backend
        self.access_token = access_token

    async def _send(self, record: NotificationRecord) -> None:
        try:
            await self.backend.insert(settings.notifications_table, self.access_token, record.model_dump(mode="json"))
        except QueryError as e:
            raise NotificationError(e.message) from e

    async def notify(
        self,
        trip: Trip,
        status: TripStatus,
        driver: Driver,
        reason: Optional[str] = None,
        delay_minutes: Optional[int] = None
    ) -> None:
        """Create a notification record for the change. Never raises."""
        try:
            message = build_message(trip, status, driver, reason, delay_minutes)
            if message is None:
                return
            title, body = message
            await self._send(NotificationRecord(
                event_id=trip.event_id,
                guest_id=trip.guest_id,
                title=title,
                body=body,
                notification_type=settings.notification_type,
                module=settings.notification_module,
            ))
            logger.info("Notification sent", extra={"trip_id": trip.id, "status": status.value})
        except NotificationError as e:
            logger.warning(f"Notification for trip {trip.id} not delivered: {e.message}")
        except Exception:
            logger.exception(f"Notification for trip {trip.id} failed unexpectedly")
