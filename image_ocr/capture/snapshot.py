"""Still PNG snapshots from the live video surface."""

from __future__ import annotations

import asyncio
from typing import Optional

import cv2

from image_ocr.core.logging_utils import get_module_logger
from image_ocr.ocr.buffer import PNG_CONTENT_TYPE, ImageBuffer

from .stream import VideoSurface

logger = get_module_logger("Snapshot")


def snapshot(surface: VideoSurface) -> Optional[ImageBuffer]:
    """Encode the surface's current frame as PNG at native resolution.

    Returns ``None`` when the surface has no dimensions (no active stream).
    """
    frame = surface.frame
    if frame is None or surface.width == 0 or surface.height == 0:
        logger.debug("Snapshot requested without an active capture surface")
        return None

    ok, encoded = cv2.imencode(".png", frame.data)
    if not ok:
        logger.error("PNG encoding failed for %dx%d frame", surface.width, surface.height)
        return None

    return ImageBuffer(
        data=encoded.tobytes(),
        content_type=PNG_CONTENT_TYPE,
        source=f"{surface.device_id} frame {frame.frame_number}",
    )


async def snapshot_async(surface: VideoSurface) -> Optional[ImageBuffer]:
    """``snapshot`` with the PNG encode moved off the event loop."""
    return await asyncio.to_thread(snapshot, surface)


__all__ = ["snapshot", "snapshot_async"]
