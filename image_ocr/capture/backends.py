"""
Capture backends.

Each handle wraps one platform capture object:
- CameraHandle: OpenCV VideoCapture (webcams, capture cards)
- ScreenHandle: mss monitor grabs (screen capture)

All methods are blocking; the stream manager runs them on a dedicated
single-worker executor so the platform object is only touched from one thread.
"""

from __future__ import annotations

import sys
import time
from typing import Optional, Tuple

import cv2
import mss
from mss.exception import ScreenShotError
import numpy as np

from image_ocr.core.errors import StreamOpenError
from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger

from .devices import CAMERA_PREFIX, SCREEN_PREFIX

Resolution = Tuple[int, int]


class CaptureHandle:
    """Abstract base for a live capture stream."""

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id

    @property
    def resolution(self) -> Resolution:
        raise NotImplementedError

    def open(self) -> None:
        raise NotImplementedError

    def read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class CameraHandle(CaptureHandle):
    """OpenCV-based capture for camera devices."""

    WARMUP_ATTEMPTS = 3

    def __init__(
        self,
        device_id: str,
        target: str,
        preferred_resolution: Resolution,
        *,
        logger: LoggerLike = None,
    ) -> None:
        super().__init__(device_id)
        self._target = target
        self._preferred = preferred_resolution
        self._resolution: Resolution = (0, 0)
        self._cap = None
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)

    @property
    def resolution(self) -> Resolution:
        return self._resolution

    def open(self) -> None:
        device = int(self._target) if self._target.isdigit() else self._target
        self._logger.info("Opening camera %s", device)

        # Prefer V4L2 on Linux
        backend = getattr(cv2, "CAP_V4L2", None) if sys.platform.startswith("linux") else None
        if backend is not None:
            self._cap = cv2.VideoCapture(device, backend)
        else:
            self._cap = cv2.VideoCapture(device)

        if not self._cap or not self._cap.isOpened():
            self._release()
            raise StreamOpenError(self.device_id, "device could not be opened")

        # Ideal resolution only; whatever the camera settles on is accepted
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._preferred[0])
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._preferred[1])

        success = False
        for attempt in range(self.WARMUP_ATTEMPTS):
            if attempt > 0:
                time.sleep(0.2)
            success, _ = self._cap.read()
            if success:
                break
            self._logger.debug("Camera %s test frame attempt %d failed", self._target, attempt + 1)
        if not success:
            self._release()
            raise StreamOpenError(self.device_id, "device opened but delivers no frames")

        self._resolution = (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        if self._resolution != tuple(self._preferred):
            self._logger.info(
                "Camera %s runs at %dx%d (preferred %dx%d)",
                self._target, *self._resolution, *self._preferred,
            )

    def read(self) -> Optional[np.ndarray]:
        if not self._cap:
            return None
        success, frame = self._cap.read()
        if not success or frame is None:
            return None
        return frame

    def stop(self) -> None:
        if self._cap is not None:
            self._release()
            self._logger.info("Camera %s released", self._target)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class ScreenHandle(CaptureHandle):
    """mss-based capture of one physical monitor."""

    def __init__(self, device_id: str, monitor: int, *, logger: LoggerLike = None) -> None:
        super().__init__(device_id)
        self._monitor_number = monitor
        self._monitor: Optional[dict] = None
        self._grabber = None
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)

    @property
    def resolution(self) -> Resolution:
        if not self._monitor:
            return (0, 0)
        return (int(self._monitor["width"]), int(self._monitor["height"]))

    def open(self) -> None:
        try:
            self._grabber = mss.mss()
        except ScreenShotError as exc:
            raise StreamOpenError(self.device_id, str(exc)) from exc

        monitors = self._grabber.monitors
        if self._monitor_number < 1 or self._monitor_number >= len(monitors):
            self.stop()
            raise StreamOpenError(self.device_id, f"no screen number {self._monitor_number}")
        self._monitor = monitors[self._monitor_number]
        self._logger.info("Capturing screen %d at %dx%d", self._monitor_number, *self.resolution)

    def read(self) -> Optional[np.ndarray]:
        if not self._grabber or not self._monitor:
            return None
        shot = self._grabber.grab(self._monitor)
        return cv2.cvtColor(np.asarray(shot), cv2.COLOR_BGRA2BGR)

    def stop(self) -> None:
        if self._grabber is not None:
            self._grabber.close()
            self._grabber = None
        self._monitor = None


def create_handle(
    device_id: str,
    preferred_resolution: Resolution,
    *,
    logger: LoggerLike = None,
) -> CaptureHandle:
    """Build the handle matching the device identifier's prefix."""
    if device_id.startswith(SCREEN_PREFIX):
        target = device_id[len(SCREEN_PREFIX):]
        if not target.isdigit():
            raise StreamOpenError(device_id, "screen identifier must be a monitor number")
        return ScreenHandle(device_id, int(target), logger=logger)
    if device_id.startswith(CAMERA_PREFIX):
        return CameraHandle(device_id, device_id[len(CAMERA_PREFIX):], preferred_resolution, logger=logger)
    # Bare indices and paths are treated as cameras
    return CameraHandle(device_id, device_id, preferred_resolution, logger=logger)


__all__ = [
    "CameraHandle",
    "CaptureHandle",
    "Resolution",
    "ScreenHandle",
    "create_handle",
]
