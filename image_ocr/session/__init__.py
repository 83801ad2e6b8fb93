"""Capture session: source selection state machine and event handlers."""

from .controller import CaptureSession
from .sources import RemoteImageFetcher, read_local_file
from .state import AcquisitionMode, ControlVisibility, SelectorState
from .update import update

__all__ = [
    "AcquisitionMode",
    "CaptureSession",
    "ControlVisibility",
    "RemoteImageFetcher",
    "SelectorState",
    "read_local_file",
    "update",
]
