"""
Centralized Test Configuration.

The hosted backend is replaced by an in-memory PostgREST look-alike served
through httpx.MockTransport.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport, MockTransport, Request, Response
from jose import jwt

from driver_portal.app.core.config import settings
from driver_portal.app.db.client import BackendClient
from driver_portal.app.main import app
from driver_portal.app.models.trip import Driver
from driver_portal.app.services.background import BackgroundTasks
from driver_portal.app.services.checkpoint_service import CheckpointRecorder
from driver_portal.app.services.notification_service import NotificationDispatcher
from driver_portal.app.services.trip_board import TripBoard, TripBoards
from driver_portal.app.services.trip_store import TripStoreClient
from driver_portal.app.services.trip_workflow import TripWorkflow

AUTH_USER_ID = "8d3f6a52-1c57-4a43-9d0e-6a1f2b7e4c10"
DRIVER_ID = "d1"
FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

GUEST_1 = "1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed"
GUEST_2 = "6ec0bd7f-11c0-43da-975e-2a8ad9ebae0b"


class FakeBackend:
    """Minimal PostgREST behaviour over in-memory tables."""

    def __init__(self):
        self.tables = {
            settings.trips_table: [],
            settings.drivers_table: [],
            settings.notifications_table: [],
            settings.checkpoints_table: [],
        }
        self.requests = []
        self.failures = {}

    def fail(self, method: str, table: str, status_code: int = 500, message: str = "Backend unavailable", code: str = None):
        self.failures[(method, table)] = (status_code, {"message": message, "code": code})

    def calls(self, method: str, table: str = None):
        return [
            r for r in self.requests
            if r.method == method and (table is None or r.url.path.endswith(f"/{table}"))
        ]

    @staticmethod
    def _matches(row: dict, filters: dict) -> bool:
        for column, expr in filters.items():
            op, _, value = expr.partition(".")
            if op != "eq" or str(row.get(column)) != value:
                return False
        return True

    def handle(self, request: Request) -> Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]

        if (request.method, table) in self.failures:
            status_code, body = self.failures[(request.method, table)]
            return Response(status_code, json=body)
        if table not in self.tables:
            return Response(404, json={"code": "PGRST205", "message": f"Could not find the table 'public.{table}'"})

        rows = self.tables[table]
        params = dict(request.url.params)
        limit = params.pop("limit", None)
        for key in ("select", "order"):
            params.pop(key, None)

        if request.method == "GET":
            found = [dict(r) for r in rows if self._matches(r, params)]
            if limit:
                found = found[:int(limit)]
            return Response(200, json=found)

        if request.method == "PATCH":
            values = json.loads(request.content)
            changed = []
            for row in rows:
                if self._matches(row, params):
                    row.update(values)
                    changed.append(dict(row))
            return Response(200, json=changed)

        if request.method == "POST":
            rows.append(json.loads(request.content))
            return Response(201)

        return Response(405, json={"message": "Method not allowed"})


def make_token(sub: str = AUTH_USER_ID, secret: str = None) -> str:
    return jwt.encode(
        {
            "sub": sub,
            "aud": settings.jwt_audience,
            "role": "authenticated",
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        secret or settings.supabase_jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def trip_row(trip_id: str, guest_id: str, **fields) -> dict:
    row = {
        "id": trip_id,
        "guest_id": guest_id,
        "event_id": "evt-1",
        "driver_id": DRIVER_ID,
        "guest_first_name": "Ada",
        "guest_last_name": "Lovelace",
        "pickup_time": "2026-10-19T10:00:00+00:00",
        "pickup_location": "Terminal 2",
        "dropoff_location": "Grand Hotel",
        "status": "pending",
    }
    row.update(fields)
    return row


@pytest.fixture
def fake_backend():
    fake = FakeBackend()
    fake.tables[settings.drivers_table].append(
        {"id": DRIVER_ID, "full_name": "Sam Driver", "auth_user_id": AUTH_USER_ID}
    )
    return fake


@pytest.fixture
def seed_trips(fake_backend):
    """Driver d1 with two pending trips, as in the portal walkthrough."""
    rows = [
        trip_row("t1", GUEST_1),
        trip_row("t2", GUEST_2, guest_first_name="Grace", guest_last_name="Hopper",
                 pickup_time="2026-10-19T12:00:00+00:00"),
    ]
    fake_backend.tables[settings.trips_table].extend(rows)
    return rows


@pytest.fixture
async def backend_client(fake_backend):
    client = BackendClient(
        AsyncClient(transport=MockTransport(fake_backend.handle), base_url="http://backend.test"),
        anon_key="anon-test-key",
    )
    yield client
    await client.aclose()


@pytest.fixture
def access_token():
    return make_token()


@pytest.fixture
def driver():
    return Driver(id=DRIVER_ID, full_name="Sam Driver")


@pytest.fixture
def store(backend_client, access_token):
    return TripStoreClient(backend_client, access_token)


@pytest.fixture
def tasks():
    return BackgroundTasks()


@pytest.fixture
def board(driver):
    return TripBoard(driver)


@pytest.fixture
def workflow(driver, store, backend_client, access_token, board, tasks):
    return TripWorkflow(
        driver=driver,
        store=store,
        notifier=NotificationDispatcher(backend_client, access_token),
        checkpoints=CheckpointRecorder(backend_client, access_token, clock=lambda: FIXED_NOW),
        board=board,
        tasks=tasks,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
async def client(backend_client):
    """Async client for the portal API, wired to the fake backend."""
    app.state.backend = backend_client
    app.state.boards = TripBoards()
    app.state.tasks = BackgroundTasks()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    await app.state.tasks.drain()


@pytest.fixture
def auth_headers(access_token):
    return {"Authorization": f"Bearer {access_token}"}
