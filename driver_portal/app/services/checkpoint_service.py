"""
Journey checkpoint recording.

Checkpoints are an optional audit trail. Deployments without the
checkpoint table are normal and only logged at debug level.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from driver_portal.app.core.config import settings
from driver_portal.app.core.exceptions import CheckpointError, QueryError
from driver_portal.app.db.client import BackendClient
from driver_portal.app.models.notification import CheckpointRecord
from driver_portal.app.models.trip import Trip
from driver_portal.app.models.trip_enums import CheckpointType

logger = logging.getLogger("driver_portal.checkpoints")

# PostgREST codes for an undefined relation
MISSING_TABLE_CODES = {"42P01", "PGRST205"}


def _table_missing(error: QueryError) -> bool:
    return error.details.get("status_code") == 404 or error.details.get("code") in MISSING_TABLE_CODES


class CheckpointRecorder:

    def __init__(self, backend: BackendClient, access_token: str, clock: Callable[[], datetime] = None):
        self.backend = backend
        self.access_token = access_token
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _write(self, record: CheckpointRecord) -> None:
        try:
            await self.backend.insert(settings.checkpoints_table, self.access_token, record.model_dump(mode="json"))
        except QueryError as e:
            if _table_missing(e):
                logger.debug("Checkpoint table not available, skipping")
                return
            raise CheckpointError(e.message) from e

    async def record(self, trip: Trip, checkpoint_type: CheckpointType) -> None:
        """Write a completed checkpoint for the trip's guest. Never raises."""
        try:
            await self._write(CheckpointRecord(
                guest_id=trip.guest_id,
                event_id=trip.event_id,
                checkpoint_type=checkpoint_type,
                completed_at=self.clock(),
                completion_method=settings.checkpoint_completion_method,
            ))
        except CheckpointError as e:
            logger.warning(f"Checkpoint {checkpoint_type.value} for trip {trip.id} not recorded: {e.message}")
        except Exception:
            logger.exception(f"Checkpoint {checkpoint_type.value} for trip {trip.id} failed unexpectedly")
