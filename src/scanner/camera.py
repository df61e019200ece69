from __future__ import annotations

import threading

import cv2

from utils.errors import CameraUnavailableError
from utils.logger import get_logger

_logger = get_logger(__name__)


class Camera:
    """A single opened capture device. Always release() it."""

    def __init__(self, capture: cv2.VideoCapture, index: int):
        self._capture = capture
        self.index = index
        # read() runs on a worker thread, release() on the event loop
        self._lock = threading.Lock()

    def read(self):
        with self._lock:
            if self._capture is None:
                raise CameraUnavailableError(f"Camera {self.index} already released")
            ok, frame = self._capture.read()
        if not ok or frame is None:
            raise CameraUnavailableError(f"Camera {self.index} stopped delivering frames")
        return frame

    def release(self) -> None:
        with self._lock:
            if self._capture is None:
                return
            self._capture.release()
            self._capture = None
        _logger.debug(f"Camera {self.index} released")


def open_camera(index: int = 0, width: int = 1280, height: int = 720) -> Camera:
    """
    Open the capture device. Raises CameraUnavailableError when the device is
    missing or access is denied.
    """
    capture = cv2.VideoCapture(index)
    if not capture.isOpened():
        capture.release()
        raise CameraUnavailableError(
            "Could not access the camera. Please check the camera permissions."
        )
    capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    capture.set(cv2.CAP_PROP_AUTOFOCUS, 1)
    _logger.debug(f"Camera {index} opened")
    return Camera(capture, index)
