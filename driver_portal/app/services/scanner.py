"""
Camera scan session.

The camera is the one shared device the portal holds. A session owns it
from open until a valid guest code is read, the driver closes the scanner,
or an error ends the scan; the reader is reset exactly once on every path.
"""

import asyncio
import logging
from typing import Optional, Protocol

from driver_portal.app.core.exceptions import CameraAccessError, CameraNotFoundError
from driver_portal.app.services.qr_decoder import INVALID_QR_MESSAGE, ScannedIdentifier, decode

logger = logging.getLogger("driver_portal.scanner")


class ScanClosed(Exception):
    pass


class FrameReader(Protocol):
    """Continuous decoder over a video input device."""

    async def read(self) -> Optional[str]:
        """Next decoded text, or None when no code is in frame yet."""
        ...

    def reset(self) -> None:
        """Stop decoding and release the device."""
        ...


class ScanSession:

    def __init__(self, reader: FrameReader):
        self.reader = reader
        self.error: Optional[str] = None
        self.closed = False
        self._released = False

    async def __aenter__(self) -> "ScanSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> None:
        if not self._released:
            self._released = True
            self.reader.reset()

    def close(self) -> None:
        """Driver dismissed the scanner."""
        self.closed = True
        self.release()

    async def next_identifier(self) -> ScannedIdentifier:
        """
        Read frames until a valid guest identifier is decoded.

        Invalid payloads are reported on ``error`` and scanning continues.

        Raises:
            ScanClosed: the session was closed before a valid code was read
            CameraAccessError: the reader was refused the device
            CameraNotFoundError: no video input device is present
        """
        while not self.closed:
            try:
                text = await self.reader.read()
            except PermissionError as e:
                raise CameraAccessError() from e
            except FileNotFoundError as e:
                raise CameraNotFoundError() from e

            if text is None:
                # not found yet
                await asyncio.sleep(0)
                continue

            scanned = decode(text)
            if not scanned.valid:
                self.error = INVALID_QR_MESSAGE
                logger.info(f"Rejected QR payload {scanned.candidate!r}")
                continue

            self.error = None
            self.release()
            return scanned

        raise ScanClosed("Scanner closed before a guest QR code was read")
