"""
Trip store client.

Reads the driver's assigned trips from the backend's driver-scoped view and
writes status changes back. Nothing is cached: every read reflects the
backend at call time.
"""

import logging
from typing import List

import pydantic

from driver_portal.app.core.config import settings
from driver_portal.app.core.exceptions import AuthenticationError, QueryError
from driver_portal.app.core.jwt import decode_access_token
from driver_portal.app.db.client import BackendClient
from driver_portal.app.models.trip import Driver, StatusPatch, Trip, order_trips

logger = logging.getLogger("driver_portal.trips")

TRIP_COLUMNS = ",".join([
    "id", "guest_id", "event_id", "driver_id",
    "guest_first_name", "guest_last_name", "guest_contact_number", "host_contact_number",
    "pickup_time", "dropoff_time", "pickup_location", "dropoff_location",
    "status", "collected_at", "arrived_at", "cancelled_at",
    "delay_reason", "delay_minutes", "cancellation_reason",
])


class TripStoreClient:
    """Driver-scoped access to the backend trip collection."""

    def __init__(self, backend: BackendClient, access_token: str):
        self.backend = backend
        self.access_token = access_token

    async def fetch_assigned_trips(self, driver_id: str) -> List[Trip]:
        """
        Fetch the driver's trips in display order.

        Raises:
            QueryError: transport, auth or query failure, or a row that is not a valid trip
        """
        rows = await self.backend.select(
            settings.trips_source,
            self.access_token,
            params={
                "select": TRIP_COLUMNS,
                "driver_id": f"eq.{driver_id}",
                "order": "pickup_time.asc.nullslast",
            },
        )
        try:
            trips = order_trips([Trip.model_validate(row) for row in rows or []])
        except pydantic.ValidationError as e:
            logger.warning(f"Malformed trip row for driver {driver_id}: {e.errors()[0]['msg']}")
            raise QueryError(
                "Backend returned a malformed trip row",
                details={"driver_id": driver_id, "errors": e.error_count()}
            )
        logger.debug("Fetched trips", extra={"driver_id": driver_id, "count": len(trips)})
        return trips

    async def update_trip_status(self, trip_id: str, patch: StatusPatch) -> None:
        """
        Apply a status patch to exactly one trip. Last write wins.

        Raises:
            QueryError: backend failure, or the trip is not visible to this driver
        """
        rows = await self.backend.update(
            settings.trips_table,
            self.access_token,
            filters={"id": f"eq.{trip_id}"},
            values=patch.to_payload(),
        )
        if not rows:
            raise QueryError("Trip not found or not assigned to you", details={"trip_id": trip_id})
        logger.info("Trip status updated", extra={"trip_id": trip_id, "status": patch.status.value})

    async def resolve_driver(self) -> Driver:
        """
        Resolve the driver behind the access token.

        Raises:
            AuthenticationError: token invalid, or its user is not a registered driver
        """
        payload = decode_access_token(self.access_token)
        if payload is None or not payload.get("sub"):
            raise AuthenticationError("Could not validate credentials")

        rows = await self.backend.select(
            settings.drivers_table,
            self.access_token,
            params={
                "select": "id,full_name",
                "auth_user_id": f"eq.{payload['sub']}",
                "limit": "1",
            },
        )
        if not rows:
            raise AuthenticationError("This account is not registered as a driver")
        return Driver.model_validate(rows[0])
