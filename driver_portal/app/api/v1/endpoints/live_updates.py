"""
Live trip feed over WebSocket.

Each connection subscribes to its driver's trip board and receives the
full list after every refresh.
"""

import json
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from driver_portal.app.api.v1.endpoints.driver_trips import to_card
from driver_portal.app.core.dependencies import get_boards
from driver_portal.app.core.exceptions import AppException
from driver_portal.app.db.client import BackendClient, get_backend
from driver_portal.app.models.trip import Trip
from driver_portal.app.services.trip_board import TripBoards
from driver_portal.app.services.trip_store import TripStoreClient

logger = logging.getLogger("driver_portal.ws")

router = APIRouter(prefix="/ws", tags=["Driver - Live Updates"])


@router.websocket("/driver/trips")
async def trip_feed(
    websocket: WebSocket,
    token: str = Query(...),
    backend: BackendClient = Depends(get_backend),
    boards: TripBoards = Depends(get_boards)
):
    store = TripStoreClient(backend, token)
    try:
        driver = await store.resolve_driver()
    except AppException as e:
        logger.info(f"[WS REJECT] {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    board = boards.for_driver(driver)

    async def push(trips: List[Trip]) -> None:
        data = [to_card(trip).model_dump(mode="json") for trip in trips]
        await websocket.send_text(json.dumps({"type": "trips.refreshed", "data": data}))

    unsubscribe = board.subscribe(push)
    logger.info(f"[WS CONNECT] Driver {driver.id} subscribed to trip feed")
    try:
        await board.refresh(store)
        while True:
            await websocket.receive_text()
            # Heartbeat
            await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        logger.info(f"[WS DISCONNECT] Driver {driver.id} left trip feed")
