from __future__ import annotations

import asyncio
import threading
from typing import Callable, Optional, Protocol

from scanner.camera import Camera
from utils.errors import CameraUnavailableError, SymbolNotFoundError
from utils.logger import get_logger

_logger = get_logger(__name__)


class Decoder(Protocol):
    def decode(self, frame) -> str: ...


class ScanSession:
    """
    One scanner activation: acquire the camera, decode frames until the first
    symbol, release the camera.

    run() yields at most one payload. The camera is released on every exit
    path (payload, close(), cancellation, camera or decode error), and once
    a payload has been accepted or the session closed, accept() refuses
    anything else a decode may still produce.
    """

    def __init__(
        self,
        open_camera: Callable[[], Camera],
        decoder: Decoder,
        frame_interval: float = 0.05,
    ):
        self._open_camera = open_camera
        self._decoder = decoder
        self._frame_interval = frame_interval
        self._camera: Optional[Camera] = None
        self._delivered = False
        self._closed = False
        self._lock = threading.Lock()
        self.frames_scanned = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def camera_active(self) -> bool:
        return self._camera is not None

    def accept(self, payload: str) -> bool:
        """One-shot guard: True only for the first payload of a live session."""
        if self._delivered or self._closed:
            _logger.debug(f"Late decode {payload!r} dropped")
            return False
        self._delivered = True
        return True

    async def run(self) -> Optional[str]:
        """
        Returns the decoded payload, or None if close() was called first.
        Raises CameraUnavailableError or DecodeError on terminal failures.
        """
        if self._closed or self._delivered:
            raise RuntimeError("ScanSession objects are single use")

        try:
            camera = await asyncio.to_thread(self._acquire)
            if camera is None:
                return None
            while not self._closed:
                try:
                    frame = await asyncio.to_thread(camera.read)
                except CameraUnavailableError:
                    if self._closed:
                        return None
                    raise
                try:
                    payload = await asyncio.to_thread(self._decoder.decode, frame)
                except SymbolNotFoundError:
                    self.frames_scanned += 1
                    await asyncio.sleep(self._frame_interval)
                    continue
                if self.accept(payload):
                    _logger.info(f"Decoded {payload!r} after {self.frames_scanned} frames")
                    return payload
            return None
        finally:
            self.close()

    def _acquire(self) -> Optional[Camera]:
        # runs in a worker thread; a session closed while the device was
        # opening never sees the camera, so it is released here
        camera = self._open_camera()
        with self._lock:
            if not self._closed:
                self._camera = camera
                return camera
        _logger.debug("Session closed while opening camera, releasing it")
        camera.release()
        return None

    def close(self) -> None:
        """Stop scanning and release the camera. Safe to call more than once."""
        with self._lock:
            self._closed = True
            camera, self._camera = self._camera, None
        if camera is not None:
            camera.release()
