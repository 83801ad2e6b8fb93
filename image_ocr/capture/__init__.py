"""Live capture: device discovery, stream lifecycle and snapshots."""

from .backends import CameraHandle, CaptureHandle, ScreenHandle, create_handle
from .devices import DeviceDescriptor, discover_devices, list_devices
from .frame import CapturedFrame
from .snapshot import snapshot, snapshot_async
from .stream import DeviceStreamManager, VideoSurface

__all__ = [
    "CameraHandle",
    "CaptureHandle",
    "CapturedFrame",
    "DeviceDescriptor",
    "DeviceStreamManager",
    "ScreenHandle",
    "VideoSurface",
    "create_handle",
    "discover_devices",
    "list_devices",
    "snapshot",
    "snapshot_async",
]
