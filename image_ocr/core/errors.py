"""Exception hierarchy shared by the capture and recognition pipeline."""

from __future__ import annotations


class ImageOcrError(Exception):
    """Base class for errors raised by Image OCR."""


class AcquisitionError(ImageOcrError):
    """No usable image could be obtained (no file, bad URL, no surface, ...)."""


class StreamOpenError(ImageOcrError):
    """The platform refused or failed to open a capture device."""

    def __init__(self, device_id: str, reason: str) -> None:
        super().__init__(f"Could not open capture device {device_id}: {reason}")
        self.device_id = device_id
        self.reason = reason


class ClipboardError(ImageOcrError):
    """Writing to the system clipboard failed."""


__all__ = [
    "AcquisitionError",
    "ClipboardError",
    "ImageOcrError",
    "StreamOpenError",
]
