from dataclasses import dataclass
from enum import Enum
from typing import Optional

from image_ocr.capture.devices import DeviceDescriptor


class AcquisitionMode(Enum):
    LOCAL_FILE = "local"
    REMOTE_URL = "url"
    LIVE_CAPTURE = "camera"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]

    @classmethod
    def parse(cls, value: "str | AcquisitionMode") -> "AcquisitionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown acquisition mode: {value!r}") from None


_MODE_LABELS = {
    AcquisitionMode.LOCAL_FILE: "Local file",
    AcquisitionMode.REMOTE_URL: "URL",
    AcquisitionMode.LIVE_CAPTURE: "Camera / screen",
}


@dataclass(frozen=True)
class ControlVisibility:
    """Which control set the capture modal shows.

    Derived from the mode alone, so exactly one set is visible.
    """
    file_picker: bool
    url_input: bool
    device_picker: bool

    @property
    def capture_trigger(self) -> bool:
        return self.device_picker

    @classmethod
    def for_mode(cls, mode: AcquisitionMode) -> "ControlVisibility":
        return cls(
            file_picker=mode is AcquisitionMode.LOCAL_FILE,
            url_input=mode is AcquisitionMode.REMOTE_URL,
            device_picker=mode is AcquisitionMode.LIVE_CAPTURE,
        )


@dataclass(frozen=True)
class SelectorState:
    mode: AcquisitionMode = AcquisitionMode.LOCAL_FILE
    devices: tuple[DeviceDescriptor, ...] = ()
    selected_device: Optional[str] = None
    # Device the stream manager has been told to open and has not lost
    stream_device: Optional[str] = None
    busy: bool = False
    closed: bool = False

    @property
    def visibility(self) -> ControlVisibility:
        return ControlVisibility.for_mode(self.mode)

    @property
    def is_live(self) -> bool:
        return self.mode is AcquisitionMode.LIVE_CAPTURE

    @property
    def capture_enabled(self) -> bool:
        return self.is_live and self.stream_device is not None and not self.busy and not self.closed

    def device(self, device_id: Optional[str]) -> Optional[DeviceDescriptor]:
        for descriptor in self.devices:
            if descriptor.id == device_id:
                return descriptor
        return None
