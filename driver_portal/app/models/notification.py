"""
Notification and journey checkpoint records.

Both are written best-effort after a trip status change.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from driver_portal.app.models.trip_enums import CheckpointType


class NotificationRecord(BaseModel):
    """
    In-app notification about a guest's trip.
    Scoped to the trip's event and guest.
    """
    event_id: Optional[str]
    guest_id: str
    title: str
    body: str
    notification_type: str
    module: str


class CheckpointRecord(BaseModel):
    """Audit record of a journey milestone."""
    guest_id: str
    event_id: Optional[str]
    checkpoint_type: CheckpointType
    status: str = "completed"
    completed_at: datetime
    completion_method: str
