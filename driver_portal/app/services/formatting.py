"""
Pickup time labels for trip cards.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from driver_portal.app.core.config import settings


def _clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {value:%p}"


def format_pickup_time(value: Optional[datetime], now: Optional[datetime] = None, tz: Optional[str] = None) -> str:
    """
    Human label for a pickup time.

    "TBD" when unscheduled, "Today 3:05 PM" / "Tomorrow 9:00 AM" for the
    next two days, otherwise "Oct 21, 3:05 PM". Days are counted in the
    display timezone.
    """
    if value is None:
        return "TBD"

    name = tz or settings.display_timezone
    zone = timezone.utc if name.upper() == "UTC" else ZoneInfo(name)
    local = value.astimezone(zone)
    today = (now or datetime.now(timezone.utc)).astimezone(zone).date()

    if local.date() == today:
        return f"Today {_clock(local)}"
    if local.date() == today + timedelta(days=1):
        return f"Tomorrow {_clock(local)}"
    return f"{local:%b} {local.day}, {_clock(local)}"
