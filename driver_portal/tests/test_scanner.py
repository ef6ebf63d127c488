"""
Tests for the camera scan session and camera-driven collection.
"""

import asyncio
import pytest

from driver_portal.app.core.config import settings
from driver_portal.app.core.exceptions import CameraAccessError, CameraNotFoundError, MismatchError
from driver_portal.app.models.trip_enums import TripStatus
from driver_portal.app.services.qr_decoder import INVALID_QR_MESSAGE
from driver_portal.app.services.scanner import ScanClosed, ScanSession

from conftest import GUEST_1, GUEST_2


class FakeReader:
    """Plays back decoded frames; None means no code in frame."""

    def __init__(self, frames, on_reset=None):
        self.frames = list(frames)
        self.reads = 0
        self.resets = 0
        self.on_reset = on_reset

    async def read(self):
        self.reads += 1
        if not self.frames:
            await asyncio.sleep(0)
            return None
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame

    def reset(self):
        self.resets += 1
        if self.on_reset:
            self.on_reset()


@pytest.mark.asyncio
async def test_invalid_frames_are_reported_and_scanning_continues():
    reader = FakeReader([None, "not-a-guest", None, f"guest-{GUEST_1}"])
    session = ScanSession(reader)
    errors = []

    read_frame = reader.read

    async def observing_read():
        errors.append(session.error)
        return await read_frame()

    reader.read = observing_read

    scanned = await session.next_identifier()

    assert scanned == (GUEST_1, True)
    assert INVALID_QR_MESSAGE in errors
    assert session.error is None
    assert reader.resets == 1


@pytest.mark.asyncio
async def test_closing_the_scanner_ends_the_session():
    reader = FakeReader([])
    session = ScanSession(reader)

    async def dismiss():
        await asyncio.sleep(0)
        session.close()

    closer = asyncio.ensure_future(dismiss())
    with pytest.raises(ScanClosed):
        await session.next_identifier()
    await closer

    assert reader.resets == 1


@pytest.mark.asyncio
async def test_reader_error_still_releases_camera_once():
    reader = FakeReader([RuntimeError("device unplugged")])

    with pytest.raises(RuntimeError):
        async with ScanSession(reader) as session:
            await session.next_identifier()

    assert reader.resets == 1


@pytest.mark.asyncio
async def test_release_is_idempotent():
    reader = FakeReader([GUEST_1])

    async with ScanSession(reader) as session:
        await session.next_identifier()
        session.close()

    assert reader.resets == 1


@pytest.mark.asyncio
async def test_camera_scan_releases_before_status_write(workflow, seed_trips, fake_backend, board):
    patches_at_reset = []
    reader = FakeReader(
        [None, f"guest-{GUEST_1}"],
        on_reset=lambda: patches_at_reset.append(len(fake_backend.calls("PATCH"))),
    )

    change = await workflow.scan_with_camera("t1", reader)

    assert change.status == TripStatus.COLLECTED
    assert patches_at_reset == [0]
    assert len(fake_backend.calls("PATCH", settings.trips_table)) == 1
    assert board.get("t1").status == TripStatus.COLLECTED


@pytest.mark.asyncio
async def test_camera_scan_of_wrong_guest_is_a_mismatch(workflow, seed_trips, fake_backend):
    reader = FakeReader([GUEST_2])

    with pytest.raises(MismatchError):
        await workflow.scan_with_camera("t1", reader)

    assert reader.resets == 1
    assert fake_backend.calls("PATCH") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("failure,expected", [
    (PermissionError("camera blocked"), CameraAccessError),
    (FileNotFoundError("/dev/video0"), CameraNotFoundError),
])
async def test_device_errors_map_to_camera_errors(workflow, board, failure, expected):
    reader = FakeReader([failure])

    with pytest.raises(expected) as exc_info:
        await workflow.scan_with_camera("t1", reader)

    assert board.error == exc_info.value.message
    assert reader.resets == 1
