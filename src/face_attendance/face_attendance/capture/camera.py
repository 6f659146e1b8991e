"""Camera resources used by a capture session.

Every camera hands out RGB frames and must be released on every exit path;
``release`` is idempotent.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

import cv2
import numpy as np

from ..core.exceptions import ResourceUnavailableError, ValidationError
from .frames import to_rgb

logger = logging.getLogger(__name__)

BROWSER_SOURCE = "browser"


class Camera(Protocol):
    def read(self) -> Optional[np.ndarray]:
        """Next RGB frame, or None when no frame is available yet."""

        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class OpenCVCamera:
    """Server-attached camera opened by device index."""

    def __init__(self, index: int):
        self.index = int(index)
        self._capture = cv2.VideoCapture(self.index)
        if not self._capture.isOpened():
            self._capture.release()
            raise ResourceUnavailableError(f"Camera {self.index} could not be opened")
        self._released = False
        logger.debug("Opened camera %s", self.index)

    def read(self) -> Optional[np.ndarray]:
        if self._released:
            return None
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return to_rgb(frame)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._capture.release()
        logger.debug("Released camera %s", self.index)


class PushedFrameCamera:
    """Frames pushed by a browser over HTTP; each frame is handed out once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def push(self, frame: np.ndarray) -> None:
        with self._lock:
            if not self._released:
                self._frame = frame

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            frame, self._frame = self._frame, None
            return frame

    def release(self) -> None:
        with self._lock:
            self._released = True
            self._frame = None


def open_camera(source: str) -> Camera:
    """Camera factory: "browser" for pushed frames, a device index otherwise."""

    source = str(source).strip()
    if source == BROWSER_SOURCE:
        return PushedFrameCamera()
    if source.isdigit():
        return OpenCVCamera(int(source))
    raise ValidationError('Video source must be "browser" or a camera index')
