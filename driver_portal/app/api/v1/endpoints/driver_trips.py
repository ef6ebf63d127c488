"""
Driver Trip API Endpoints.

Drivers view their assigned trips and move them through the status
workflow: scan to collect, mark arrived, report a delay, cancel.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Path, Body

from driver_portal.app.core.dependencies import get_current_driver, get_workflow
from driver_portal.app.models.trip import Driver, Trip
from driver_portal.app.schemas.trip import (
    CancelRequest, DelayRequest, DriverResponse, ScanRequest,
    TripBoardResponse, TripCard, TripStatusChange
)
from driver_portal.app.services.formatting import format_pickup_time
from driver_portal.app.services.trip_board import TripBoard
from driver_portal.app.services.trip_workflow import TripWorkflow, available_actions

router = APIRouter(prefix="/driver", tags=["Driver - Trips"])


def to_card(trip: Trip, now: Optional[datetime] = None) -> TripCard:
    return TripCard(
        **trip.model_dump(),
        available_actions=available_actions(trip),
        pickup_label=format_pickup_time(trip.pickup_time, now),
    )


def board_response(board: TripBoard) -> TripBoardResponse:
    now = datetime.now(timezone.utc)
    cards = [to_card(trip, now) for trip in board.trips]
    return TripBoardResponse(
        driver=DriverResponse(id=board.driver.id, full_name=board.driver.full_name),
        trips=cards,
        next_trip=cards[0] if cards else None,
        trip_count=len(cards),
        error=board.error,
    )


@router.get("/me", response_model=DriverResponse)
async def get_me(driver: Driver = Depends(get_current_driver)):
    """Authenticated driver's profile."""
    return DriverResponse(id=driver.id, full_name=driver.full_name)


@router.get("/trips", response_model=TripBoardResponse)
async def list_driver_trips(workflow: TripWorkflow = Depends(get_workflow)):
    """
    Refresh and return the driver's trip board.

    A failed fetch keeps the previous trips and reports the backend
    message in ``error``.
    """
    workflow.board.error = None
    await workflow.refresh()
    return board_response(workflow.board)


@router.post("/trips/{trip_id}/scan", response_model=TripStatusChange)
async def scan_guest(
    trip_id: str = Path(..., description="Trip ID"),
    scan: ScanRequest = Body(...),
    workflow: TripWorkflow = Depends(get_workflow)
):
    """
    Confirm guest collection from a scanned QR code.

    Validates:
    - QR payload is a guest identifier
    - Scanned guest is the guest on this trip
    """
    return await workflow.scan_guest(trip_id, scan.raw_text)


@router.post("/trips/{trip_id}/arrive", response_model=TripStatusChange)
async def mark_arrived(
    trip_id: str = Path(..., description="Trip ID"),
    workflow: TripWorkflow = Depends(get_workflow)
):
    """Mark the guest as dropped off."""
    return await workflow.mark_arrived(trip_id)


@router.post("/trips/{trip_id}/delay", response_model=TripStatusChange)
async def report_delay(
    trip_id: str = Path(..., description="Trip ID"),
    delay: DelayRequest = Body(...),
    workflow: TripWorkflow = Depends(get_workflow)
):
    """Report a delay on a collected trip."""
    return await workflow.set_delay(trip_id, delay.delay_minutes, delay.delay_reason)


@router.post("/trips/{trip_id}/cancel", response_model=TripStatusChange)
async def cancel_trip(
    trip_id: str = Path(..., description="Trip ID"),
    cancel: CancelRequest = Body(...),
    workflow: TripWorkflow = Depends(get_workflow)
):
    """Cancel a trip with a reason."""
    return await workflow.cancel_trip(trip_id, cancel.cancellation_reason)
