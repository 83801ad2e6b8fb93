"""Unit test fixtures: fake capture handles, sinks and notifiers.

Everything here runs without cameras, screens, a display or a real
recognition engine.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pytest

from image_ocr.capture.backends import CaptureHandle
from image_ocr.capture.stream import DeviceStreamManager, VideoSurface
from image_ocr.core.config_manager import ConfigManager
from image_ocr.core.errors import StreamOpenError
from image_ocr.core.settings import OcrSettings
from image_ocr.ocr.router import NotificationLevel


# =============================================================================
# Capture fakes
# =============================================================================

class FakeHandle(CaptureHandle):
    """In-memory capture handle that records lifecycle events."""

    def __init__(self, device_id: str, events: List[Tuple[str, str]], *, fail: bool = False,
                 fail_after_acquire: bool = False,
                 shape: Tuple[int, int, int] = (48, 64, 3)) -> None:
        super().__init__(device_id)
        self._events = events
        self._fail = fail
        self._fail_after_acquire = fail_after_acquire
        self._shape = shape
        self.opened = False
        # Device held, whether or not open() completed
        self.acquired = False
        self.reads = 0

    @property
    def resolution(self):
        return (self._shape[1], self._shape[0])

    def open(self) -> None:
        if self._fail:
            self._events.append(("open_failed", self.device_id))
            raise StreamOpenError(self.device_id, "permission denied")
        self.acquired = True
        if self._fail_after_acquire:
            self._events.append(("open_failed", self.device_id))
            raise RuntimeError("configuring the device failed")
        self.opened = True
        self._events.append(("open", self.device_id))

    def read(self) -> Optional[np.ndarray]:
        if not self.opened:
            return None
        self.reads += 1
        frame = np.zeros(self._shape, dtype=np.uint8)
        frame[:, :, 1] = self.reads % 256
        return frame

    def stop(self) -> None:
        if not self.acquired:
            return
        self.opened = False
        self.acquired = False
        self._events.append(("close", self.device_id))


class FakeHandleFactory:
    def __init__(self, failing: Tuple[str, ...] = (), half_open: Tuple[str, ...] = ()) -> None:
        self.events: List[Tuple[str, str]] = []
        self.handles: List[FakeHandle] = []
        self.failing = set(failing)
        self.half_open = set(half_open)
        self.resolutions: List[Tuple[int, int]] = []

    def __call__(self, device_id: str, resolution):
        self.resolutions.append(tuple(resolution))
        handle = FakeHandle(device_id, self.events, fail=device_id in self.failing,
                            fail_after_acquire=device_id in self.half_open)
        self.handles.append(handle)
        return handle

    @property
    def open_handles(self) -> List[FakeHandle]:
        return [handle for handle in self.handles if handle.opened]

    @property
    def held_handles(self) -> List[FakeHandle]:
        return [handle for handle in self.handles if handle.acquired]


@pytest.fixture
def handle_factory() -> FakeHandleFactory:
    return FakeHandleFactory()


@pytest.fixture
def stream_manager(handle_factory) -> DeviceStreamManager:
    return DeviceStreamManager(VideoSurface(), handle_factory=handle_factory)


# =============================================================================
# Host fakes
# =============================================================================

class FakeEditor:
    def __init__(self, active: bool = True) -> None:
        self.active = active
        self.inserted: List[str] = []

    def has_active_sink(self) -> bool:
        return self.active

    def insert_at_cursor(self, text: str) -> None:
        self.inserted.append(text)


class FakeClipboard:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.written: List[str] = []
        self.error = error

    async def write_text(self, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.written.append(text)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: List[Tuple[NotificationLevel, str]] = []

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.messages.append((level, message))

    @property
    def errors(self) -> List[str]:
        return [message for level, message in self.messages if level is NotificationLevel.ERROR]

    @property
    def texts(self) -> List[str]:
        return [message for _, message in self.messages]


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings() -> OcrSettings:
    return OcrSettings(recognition_engine_path="fake-engine")


# =============================================================================
# Config fixtures
# =============================================================================

@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(state_dir=tmp_path / "state", overrides_dir=tmp_path / "state" / "overrides")


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "config.txt"
