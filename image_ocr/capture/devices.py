"""
Capture device discovery.

Enumerates the devices a live capture session can bind to:
- Linux: video4linux nodes from sysfs (real device names from the kernel)
- Other platforms: OpenCV index probing (generic names)
- Every platform: physical screens via mss
"""

from __future__ import annotations

import asyncio
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

# Disable MSMF hardware transforms on Windows to fix slow camera initialization.
# Must be set BEFORE importing cv2. See: https://github.com/opencv/opencv/issues/17687
if sys.platform == "win32":
    os.environ.setdefault("OPENCV_VIDEOIO_MSMF_ENABLE_HW_TRANSFORMS", "0")

import cv2
import mss
from mss.exception import ScreenShotError

from image_ocr.core.logging_utils import get_module_logger

logger = get_module_logger("DeviceDiscovery")

CAMERA_PREFIX = "camera:"
SCREEN_PREFIX = "screen:"
MAX_PROBED_CAMERAS = 8
VIDEO4LINUX_DIR = Path("/sys/class/video4linux")


@dataclass(frozen=True)
class DeviceDescriptor:
    """A capture device as listed to the user."""

    id: str
    label: str

    @property
    def is_screen(self) -> bool:
        return self.id.startswith(SCREEN_PREFIX)

    @property
    def target(self) -> str:
        """The backend-specific part of the identifier."""
        return self.id.split(":", 1)[1] if ":" in self.id else self.id


def camera_device_id(target: int | str) -> str:
    return f"{CAMERA_PREFIX}{target}"


def screen_device_id(monitor: int) -> str:
    return f"{SCREEN_PREFIX}{monitor}"


class LinuxCameraScanner:
    """Reads video4linux capture nodes from sysfs."""

    def __init__(self, video_dir: Path = VIDEO4LINUX_DIR) -> None:
        self._video_dir = video_dir

    def scan(self) -> List[DeviceDescriptor]:
        devices: List[DeviceDescriptor] = []
        if not self._video_dir.exists():
            return devices

        for video_dev in sorted(self._video_dir.iterdir(), key=lambda p: self._dev_index(p.name)):
            if not video_dev.name.startswith("video"):
                continue

            # Each UVC camera exposes a second metadata node with index 1
            index_path = video_dev / "index"
            if index_path.exists():
                try:
                    if int(index_path.read_text().strip()) != 0:
                        continue
                except (ValueError, OSError):
                    pass

            dev_path = f"/dev/{video_dev.name}"
            name = self._read_name(video_dev)
            devices.append(DeviceDescriptor(
                id=camera_device_id(dev_path),
                label=name or f"Camera ({dev_path})",
            ))

        return devices

    @staticmethod
    def _read_name(video_dev: Path) -> str:
        try:
            return (video_dev / "name").read_text(encoding="utf-8").strip()
        except OSError:
            return ""

    @staticmethod
    def _dev_index(name: str) -> int:
        match = re.search(r'video(\d+)', name)
        return int(match.group(1)) if match else 0


class OpenCVCameraScanner:
    """Probes OpenCV device indices until one fails to open."""

    def __init__(self, max_devices: int = MAX_PROBED_CAMERAS) -> None:
        self._max_devices = max_devices

    def scan(self) -> List[DeviceDescriptor]:
        devices: List[DeviceDescriptor] = []
        backend = getattr(cv2, "CAP_DSHOW", None) if sys.platform == "win32" else None

        for index in range(self._max_devices):
            cap = cv2.VideoCapture(index, backend) if backend is not None else cv2.VideoCapture(index)
            try:
                if not cap or not cap.isOpened():
                    break
                devices.append(DeviceDescriptor(
                    id=camera_device_id(index),
                    label=f"Camera {index}",
                ))
            finally:
                if cap:
                    cap.release()

        return devices


def scan_screens() -> List[DeviceDescriptor]:
    """List physical monitors (mss index 0 is the union of all screens)."""
    with mss.mss() as grabber:
        monitors = grabber.monitors[1:]
    return [
        DeviceDescriptor(
            id=screen_device_id(number),
            label=f"Screen {number} ({monitor['width']}x{monitor['height']})",
        )
        for number, monitor in enumerate(monitors, start=1)
    ]


def _camera_scanner():
    if sys.platform.startswith("linux") and VIDEO4LINUX_DIR.exists():
        return LinuxCameraScanner()
    return OpenCVCameraScanner()


def list_devices(*, include_screens: bool = True) -> List[DeviceDescriptor]:
    """Synchronously enumerate cameras and screens."""
    devices: List[DeviceDescriptor] = []
    try:
        devices.extend(_camera_scanner().scan())
    except Exception as exc:
        logger.warning("Camera discovery failed: %s", exc)

    if include_screens:
        try:
            devices.extend(scan_screens())
        except ScreenShotError as exc:
            logger.warning("Screen discovery failed: %s", exc)

    logger.debug("Discovered %d capture device(s)", len(devices))
    return devices


async def discover_devices(*, include_screens: bool = True) -> List[DeviceDescriptor]:
    """Enumerate devices without blocking the event loop."""
    return await asyncio.to_thread(list_devices, include_screens=include_screens)


__all__ = [
    "CAMERA_PREFIX",
    "SCREEN_PREFIX",
    "DeviceDescriptor",
    "LinuxCameraScanner",
    "OpenCVCameraScanner",
    "camera_device_id",
    "discover_devices",
    "list_devices",
    "scan_screens",
    "screen_device_id",
]
