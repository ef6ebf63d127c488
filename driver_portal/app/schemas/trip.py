"""
Trip schemas.

Request bodies for driver actions and responses for the trip board.
"""

from pydantic import BaseModel, StrictInt
from typing import List, Optional
from datetime import datetime

from driver_portal.app.models.trip import Trip
from driver_portal.app.models.trip_enums import TripAction, TripStatus


class TripStatusChange(BaseModel):
    """Outcome of a successful status transition."""
    trip_id: str
    previous_status: TripStatus
    status: TripStatus
    changed_at: datetime


class ScanRequest(BaseModel):
    """Text produced by the device's QR reader."""
    raw_text: str


class DelayRequest(BaseModel):
    # Only the JSON type is checked here; range and reason are checked by the workflow
    delay_minutes: Optional[StrictInt] = None
    delay_reason: Optional[str] = None


class CancelRequest(BaseModel):
    cancellation_reason: Optional[str] = None


class DriverResponse(BaseModel):
    id: str
    full_name: str


class TripCard(Trip):
    """Trip plus what its card shows."""
    available_actions: List[TripAction] = []
    pickup_label: str


class TripBoardResponse(BaseModel):
    driver: DriverResponse
    trips: List[TripCard]
    next_trip: Optional[TripCard]
    trip_count: int
    error: Optional[str]
