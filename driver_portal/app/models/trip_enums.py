"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PENDING = "pending"  # Assigned, guest not yet collected
    COLLECTED = "collected"  # Guest scanned and on board
    ARRIVED = "arrived"  # Guest dropped off
    DELAYED = "delayed"  # Running late, with minutes and reason
    CANCELLED = "cancelled"  # Trip cancelled, with reason


class TripAction(str, enum.Enum):
    """Actions a driver can take on a trip card."""
    SCAN = "scan"
    ARRIVE = "arrive"
    DELAY = "delay"
    CANCEL = "cancel"


class CheckpointType(str, enum.Enum):
    """Journey checkpoint types written on milestones."""
    COLLECTED_BY_DRIVER = "collected_by_driver"
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
