"""
Request dependencies for FastAPI.

Wires the per-process backend client, board registry and background task
set to per-request, per-driver workflow objects.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.requests import HTTPConnection

from driver_portal.app.db.client import BackendClient, get_backend
from driver_portal.app.models.trip import Driver
from driver_portal.app.services.background import BackgroundTasks
from driver_portal.app.services.checkpoint_service import CheckpointRecorder
from driver_portal.app.services.notification_service import NotificationDispatcher
from driver_portal.app.services.trip_board import TripBoard, TripBoards
from driver_portal.app.services.trip_store import TripStoreClient
from driver_portal.app.services.trip_workflow import TripWorkflow

# HTTP Bearer security scheme
security = HTTPBearer()


def get_boards(conn: HTTPConnection) -> TripBoards:
    return conn.app.state.boards


def get_tasks(conn: HTTPConnection) -> BackgroundTasks:
    return conn.app.state.tasks


def get_access_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    return credentials.credentials


def get_trip_store(
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend)
) -> TripStoreClient:
    return TripStoreClient(backend, token)


async def get_current_driver(store: TripStoreClient = Depends(get_trip_store)) -> Driver:
    """
    Resolve the authenticated driver.

    Raises:
        AuthenticationError: 401 if the token is invalid or not a driver's
    """
    return await store.resolve_driver()


def get_board(
    driver: Driver = Depends(get_current_driver),
    boards: TripBoards = Depends(get_boards)
) -> TripBoard:
    return boards.for_driver(driver)


def get_workflow(
    driver: Driver = Depends(get_current_driver),
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
    store: TripStoreClient = Depends(get_trip_store),
    board: TripBoard = Depends(get_board),
    tasks: BackgroundTasks = Depends(get_tasks)
) -> TripWorkflow:
    return TripWorkflow(
        driver=driver,
        store=store,
        notifier=NotificationDispatcher(backend, token),
        checkpoints=CheckpointRecorder(backend, token),
        board=board,
        tasks=tasks,
    )
