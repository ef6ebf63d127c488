"""
Trip and driver domain models.

Rows are owned by the hosted backend; these models are the driver-scoped
view the portal reads and the partial updates it writes back.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, field_validator

from driver_portal.app.models.trip_enums import TripStatus


class Driver(BaseModel):
    """Authenticated driver, resolved once per access token."""
    id: str
    full_name: str


class Trip(BaseModel):
    """
    Trip model.

    One guest pickup/drop-off leg assigned to a driver. Status metadata of
    earlier statuses is kept when the status moves on.
    """
    id: str

    # References
    guest_id: str
    event_id: Optional[str] = None
    driver_id: Optional[str] = None

    # Guest and host contact
    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None
    guest_contact_number: Optional[str] = None
    host_contact_number: Optional[str] = None

    # Scheduling
    pickup_time: Optional[datetime] = None
    dropoff_time: Optional[datetime] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None

    # Status
    status: TripStatus = TripStatus.PENDING

    # Status metadata
    collected_at: Optional[datetime] = None
    arrived_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    delay_reason: Optional[str] = None
    delay_minutes: Optional[int] = None
    cancellation_reason: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def missing_status_is_pending(cls, value):
        return value or TripStatus.PENDING

    @field_validator(
        "pickup_time", "dropoff_time", "collected_at", "arrived_at", "cancelled_at",
        mode="after"
    )
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def guest_name(self) -> str:
        parts = [p for p in (self.guest_first_name, self.guest_last_name) if p]
        return " ".join(parts) if parts else "Guest"

    def sort_key(self) -> Tuple[bool, datetime, str]:
        """Pickup time ascending, unscheduled trips last, ties by id."""
        if self.pickup_time is None:
            return (True, datetime.min.replace(tzinfo=timezone.utc), self.id)
        return (False, self.pickup_time, self.id)

    def __repr__(self):
        return f"<Trip(id={self.id}, guest_id={self.guest_id}, status='{self.status.value}')>"


def order_trips(trips):
    """Return trips in display order."""
    return sorted(trips, key=lambda trip: trip.sort_key())


class StatusPatch(BaseModel):
    """
    Partial update for one status transition.

    Only the fields the target status sets are populated; the rest are left
    out of the request body.
    """
    status: TripStatus
    collected_at: Optional[datetime] = None
    arrived_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    delay_reason: Optional[str] = None
    delay_minutes: Optional[int] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def collected(cls, now: datetime) -> "StatusPatch":
        return cls(status=TripStatus.COLLECTED, collected_at=now)

    @classmethod
    def arrived(cls, now: datetime) -> "StatusPatch":
        return cls(status=TripStatus.ARRIVED, arrived_at=now)

    @classmethod
    def delayed(cls, minutes: int, reason: str) -> "StatusPatch":
        return cls(status=TripStatus.DELAYED, delay_minutes=minutes, delay_reason=reason)

    @classmethod
    def cancelled(cls, reason: str, now: datetime) -> "StatusPatch":
        return cls(status=TripStatus.CANCELLED, cancellation_reason=reason, cancelled_at=now)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
