"""Encoded image bytes handed to the recognition engine."""

from __future__ import annotations

from dataclasses import dataclass

PNG_CONTENT_TYPE = "image/png"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ImageBuffer:
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE
    source: str = ""

    def __len__(self) -> int:
        return len(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.data

    def describe(self) -> str:
        origin = f" from {self.source}" if self.source else ""
        return f"{len(self.data)} bytes ({self.content_type}){origin}"


__all__ = ["DEFAULT_CONTENT_TYPE", "ImageBuffer", "PNG_CONTENT_TYPE"]
