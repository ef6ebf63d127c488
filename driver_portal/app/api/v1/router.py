"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from driver_portal.app.api.v1.endpoints import driver_trips, live_updates

router = APIRouter()

# Driver trip board and status workflow
router.include_router(driver_trips.router)

# Live trip feed
router.include_router(live_updates.router)
