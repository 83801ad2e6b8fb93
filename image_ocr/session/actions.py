"""Actions for the capture session state machine."""

from dataclasses import dataclass
from typing import Union

from image_ocr.capture.devices import DeviceDescriptor

from .state import AcquisitionMode


# Source selection

@dataclass(frozen=True)
class ChangeMode:
    """User picked an acquisition mode."""
    mode: AcquisitionMode


@dataclass(frozen=True)
class SelectDevice:
    """User picked a capture device (empty string clears the selection)."""
    device_id: str


@dataclass(frozen=True)
class DevicesListed:
    devices: tuple[DeviceDescriptor, ...]


# Stream lifecycle

@dataclass(frozen=True)
class StreamOpened:
    device_id: str


@dataclass(frozen=True)
class StreamFailed:
    device_id: str
    message: str


# Recognition

@dataclass(frozen=True)
class RecognitionStarted:
    pass


@dataclass(frozen=True)
class RecognitionFinished:
    pass


# Lifecycle

@dataclass(frozen=True)
class CloseSession:
    pass


Action = Union[
    ChangeMode, SelectDevice, DevicesListed,
    StreamOpened, StreamFailed,
    RecognitionStarted, RecognitionFinished,
    CloseSession,
]
