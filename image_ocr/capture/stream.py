"""Device stream lifecycle: the only code that touches capture devices."""

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import time
from typing import Callable, List, Optional

from image_ocr.core.errors import StreamOpenError
from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger
from image_ocr.core.settings import DEFAULT_CAPTURE_RESOLUTION

from .backends import CaptureHandle, Resolution, create_handle
from .frame import CapturedFrame

HandleFactory = Callable[[str, Resolution], CaptureHandle]
FrameListener = Callable[[Optional[CapturedFrame]], None]


class VideoSurface:
    """Display surface a live stream is bound to.

    Holds the most recent frame; listeners (e.g. a preview canvas) are told
    about every new frame and receive ``None`` when the stream is unbound.
    """

    def __init__(self) -> None:
        self._device_id: Optional[str] = None
        self._frame: Optional[CapturedFrame] = None
        self._listeners: List[FrameListener] = []

    @property
    def device_id(self) -> Optional[str]:
        return self._device_id

    @property
    def is_bound(self) -> bool:
        return self._device_id is not None

    @property
    def frame(self) -> Optional[CapturedFrame]:
        return self._frame

    @property
    def width(self) -> int:
        return self._frame.size[0] if self._frame is not None else 0

    @property
    def height(self) -> int:
        return self._frame.size[1] if self._frame is not None else 0

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def bind(self, device_id: str) -> None:
        self._device_id = device_id
        self._frame = None

    def unbind(self) -> None:
        self._device_id = None
        self._frame = None
        self._emit(None)

    def present(self, frame: CapturedFrame) -> None:
        if not self.is_bound:
            return
        self._frame = frame
        self._emit(frame)

    def _emit(self, frame: Optional[CapturedFrame]) -> None:
        for listener in list(self._listeners):
            listener(frame)


class DeviceStreamManager:
    """Owns zero-or-one live stream and binds it to a ``VideoSurface``.

    ``open_stream`` and ``close_stream`` are serialized, so a close triggered
    by a device switch always completes before the next open starts.
    """

    def __init__(
        self,
        surface: Optional[VideoSurface] = None,
        *,
        resolution: Resolution = DEFAULT_CAPTURE_RESOLUTION,
        handle_factory: Optional[HandleFactory] = None,
        logger: LoggerLike = None,
    ) -> None:
        self._surface = surface or VideoSurface()
        self._resolution = resolution
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._handle_factory = handle_factory or (
            lambda device_id, res: create_handle(device_id, res, logger=self._logger)
        )
        self._handle: Optional[CaptureHandle] = None
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._frame_number = 0
        self._lock = asyncio.Lock()

    @property
    def surface(self) -> VideoSurface:
        return self._surface

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def device_id(self) -> Optional[str]:
        return self._handle.device_id if self._handle else None

    @property
    def resolution(self) -> Resolution:
        return self._resolution

    @resolution.setter
    def resolution(self, value: Resolution) -> None:
        self._resolution = value

    def current_frame(self) -> Optional[CapturedFrame]:
        return self._surface.frame

    async def open_stream(self, device_id: str) -> None:
        """Bind a live stream for ``device_id``; raises StreamOpenError on denial."""
        if not device_id:
            raise ValueError("open_stream requires a device identifier")

        async with self._lock:
            await self._close_locked()

            loop = asyncio.get_running_loop()
            executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="capture")
            handle: Optional[CaptureHandle] = None
            try:
                handle = self._handle_factory(device_id, self._resolution)
                await loop.run_in_executor(executor, handle.open)
            except StreamOpenError:
                await self._release_failed(handle, executor)
                raise
            except asyncio.CancelledError:
                await self._release_failed(handle, executor)
                raise
            except Exception as exc:
                await self._release_failed(handle, executor)
                raise StreamOpenError(device_id, str(exc)) from exc

            self._handle = handle
            self._executor = executor
            self._frame_number = 0
            self._surface.bind(device_id)
            self._logger.info("Stream opened for %s", device_id)

    async def close_stream(self) -> None:
        """Stop and unbind the current stream; a no-op when nothing is bound."""
        async with self._lock:
            await self._close_locked()

    async def refresh(self) -> Optional[CapturedFrame]:
        """Read the next frame from the bound stream into the surface."""
        handle, executor = self._handle, self._executor
        if handle is None or executor is None:
            return None

        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(executor, handle.read)
        except RuntimeError:
            # Executor shut down by a concurrent close
            return None
        except Exception as exc:
            self._logger.warning("Frame read failed on %s: %s", handle.device_id, exc)
            return None

        if data is None or self._handle is not handle:
            return None

        self._frame_number += 1
        frame = CapturedFrame(
            data=data,
            frame_number=self._frame_number,
            monotonic_time=time.perf_counter(),
            wall_time=time.time(),
        )
        self._surface.present(frame)
        return frame

    async def _release_failed(
        self,
        handle: Optional[CaptureHandle],
        executor: concurrent.futures.ThreadPoolExecutor,
    ) -> None:
        """Stop a handle whose open failed part way; it may already hold the device."""
        if handle is not None:
            try:
                await asyncio.shield(asyncio.get_running_loop().run_in_executor(executor, handle.stop))
            except Exception as exc:
                self._logger.debug("Cleanup after failed open of %s: %s", handle.device_id, exc)
        executor.shutdown(wait=False)

    async def _close_locked(self) -> None:
        handle, executor = self._handle, self._executor
        if handle is None:
            return

        self._handle = None
        self._executor = None
        self._surface.unbind()

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(executor, handle.stop)
        except Exception as exc:
            self._logger.warning("Error while stopping %s: %s", handle.device_id, exc)
        finally:
            with contextlib.suppress(Exception):
                executor.shutdown(wait=False)
        self._logger.info("Stream closed for %s", handle.device_id)


__all__ = ["DeviceStreamManager", "VideoSurface"]
