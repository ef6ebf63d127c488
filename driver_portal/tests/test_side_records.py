"""
Tests for the best-effort side records: notifications and journey checkpoints.
"""

import logging
import pytest

from driver_portal.app.core.config import settings
from driver_portal.app.models.trip import Driver, Trip
from driver_portal.app.models.trip_enums import CheckpointType, TripStatus
from driver_portal.app.services.checkpoint_service import CheckpointRecorder
from driver_portal.app.services.notification_service import NotificationDispatcher, build_message

from conftest import FIXED_NOW, GUEST_1, trip_row

DRIVER = Driver(id="d1", full_name="Sam Driver")


@pytest.fixture
def trip():
    return Trip.model_validate(trip_row("t1", GUEST_1))


def test_messages_name_guest_and_driver(trip):
    assert build_message(trip, TripStatus.COLLECTED, DRIVER) == (
        "Guest collected", "Ada Lovelace has been collected by Sam Driver."
    )
    assert build_message(trip, TripStatus.ARRIVED, DRIVER) == (
        "Guest arrived", "Ada Lovelace has arrived at Grand Hotel with Sam Driver."
    )


def test_delay_and_cancel_messages_carry_reason(trip):
    title, body = build_message(trip, TripStatus.DELAYED, DRIVER, reason="Traffic on M25", delay_minutes=15)
    assert title == "Trip delayed"
    assert "delayed by 15 minutes" in body
    assert body.endswith("Reason: Traffic on M25")

    title, body = build_message(trip, TripStatus.CANCELLED, DRIVER, reason="Flight cancelled")
    assert title == "Trip cancelled"
    assert body.endswith("Reason: Flight cancelled")


def test_unnamed_guest_and_unknown_destination():
    trip = Trip.model_validate(trip_row(
        "t1", GUEST_1, guest_first_name=None, guest_last_name=None, dropoff_location=None
    ))
    _, body = build_message(trip, TripStatus.ARRIVED, DRIVER)
    assert body == "Guest has arrived at their destination with Sam Driver."


def test_pending_is_not_announced(trip):
    assert build_message(trip, TripStatus.PENDING, DRIVER) is None


@pytest.mark.asyncio
async def test_notify_inserts_record_scoped_to_event_and_guest(trip, backend_client, access_token, fake_backend):
    await NotificationDispatcher(backend_client, access_token).notify(trip, TripStatus.COLLECTED, DRIVER)

    (record,) = fake_backend.tables[settings.notifications_table]
    assert record == {
        "event_id": "evt-1",
        "guest_id": GUEST_1,
        "title": "Guest collected",
        "body": "Ada Lovelace has been collected by Sam Driver.",
        "notification_type": settings.notification_type,
        "module": settings.notification_module,
    }


@pytest.mark.asyncio
async def test_notify_swallows_backend_failure(trip, backend_client, access_token, fake_backend, caplog):
    fake_backend.fail("POST", settings.notifications_table, 403, "new row violates row-level security policy")

    with caplog.at_level(logging.WARNING, logger="driver_portal.notifications"):
        result = await NotificationDispatcher(backend_client, access_token).notify(
            trip, TripStatus.CANCELLED, DRIVER, reason="Guest no-show"
        )

    assert result is None
    (warning,) = [r for r in caplog.records if r.name == "driver_portal.notifications"]
    assert "row-level security" in warning.getMessage()


@pytest.mark.asyncio
async def test_checkpoint_written_as_completed(trip, backend_client, access_token, fake_backend):
    recorder = CheckpointRecorder(backend_client, access_token, clock=lambda: FIXED_NOW)

    await recorder.record(trip, CheckpointType.COLLECTED_BY_DRIVER)

    (record,) = fake_backend.tables[settings.checkpoints_table]
    assert record["checkpoint_type"] == "collected_by_driver"
    assert record["status"] == "completed"
    assert record["completed_at"] == "2026-10-19T09:30:00Z"
    assert record["completion_method"] == settings.checkpoint_completion_method
    assert record["guest_id"] == GUEST_1


@pytest.mark.asyncio
async def test_missing_checkpoint_table_is_not_a_failure(trip, backend_client, access_token, fake_backend, caplog):
    del fake_backend.tables[settings.checkpoints_table]

    with caplog.at_level(logging.WARNING, logger="driver_portal.checkpoints"):
        await CheckpointRecorder(backend_client, access_token).record(trip, CheckpointType.ARRIVED_AT_DESTINATION)

    assert [r for r in caplog.records if r.name == "driver_portal.checkpoints"] == []


@pytest.mark.asyncio
async def test_checkpoint_failure_is_logged_only(trip, backend_client, access_token, fake_backend, caplog):
    fake_backend.fail("POST", settings.checkpoints_table, 500, "deadlock detected")

    with caplog.at_level(logging.WARNING, logger="driver_portal.checkpoints"):
        await CheckpointRecorder(backend_client, access_token).record(trip, CheckpointType.ARRIVED_AT_DESTINATION)

    (warning,) = [r for r in caplog.records if r.name == "driver_portal.checkpoints"]
    assert "deadlock detected" in warning.getMessage()
