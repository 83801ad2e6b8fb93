"""
Capture session: one open capture modal.

Each public coroutine is the handler for one user event. The session owns its
stream manager, so closing the session always releases the capture device.
"""

from __future__ import annotations

from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from image_ocr.capture.devices import DeviceDescriptor, discover_devices
from image_ocr.capture.snapshot import snapshot_async
from image_ocr.capture.stream import DeviceStreamManager
from image_ocr.core.errors import AcquisitionError, ImageOcrError, StreamOpenError
from image_ocr.core.logging_utils import get_module_logger
from image_ocr.core.settings import OcrSettings
from image_ocr.ocr.buffer import ImageBuffer
from image_ocr.ocr.invoker import RecognitionInvoker
from image_ocr.ocr.router import (
    Clipboard,
    Delivery,
    EditorSink,
    NotificationLevel,
    Notifier,
    ResultRouter,
)

from .actions import (
    Action,
    ChangeMode,
    CloseSession,
    DevicesListed,
    RecognitionFinished,
    RecognitionStarted,
    SelectDevice,
    StreamFailed,
    StreamOpened,
)
from .effects import CloseStream, Effect, EndSession, OpenStream
from .sources import RemoteImageFetcher, read_local_file
from .state import AcquisitionMode, SelectorState
from .update import update

logger = get_module_logger("CaptureSession")

BUSY_MESSAGE = "Recognition already in progress"
NO_STREAM_MESSAGE = "No active video stream to capture"

SettingsProvider = Callable[[], OcrSettings]
DeviceLister = Callable[[], Awaitable[Sequence[DeviceDescriptor]]]


class CaptureSession:
    def __init__(
        self,
        editor: EditorSink,
        *,
        settings: Union[OcrSettings, SettingsProvider],
        notifier: Notifier,
        clipboard: Clipboard,
        stream_manager: Optional[DeviceStreamManager] = None,
        invoker: Optional[RecognitionInvoker] = None,
        fetcher: Optional[RemoteImageFetcher] = None,
        device_lister: Optional[DeviceLister] = None,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._editor = editor
        self._settings = settings if callable(settings) else (lambda: settings)
        self._notifier = notifier

        current = self._settings()
        self._streams = stream_manager or DeviceStreamManager(resolution=current.capture_resolution)
        self._invoker = invoker or RecognitionInvoker(timeout=current.engine_timeout)
        self._fetcher = fetcher or RemoteImageFetcher(current.fetch_timeout)
        self._device_lister = device_lister or discover_devices
        self._on_close = on_close
        self._router = ResultRouter(editor, clipboard, notifier, on_inserted=self.close)

        self._state = SelectorState()
        self._subscribers: List[Callable[[SelectorState], None]] = []
        self.last_delivery: Optional[Delivery] = None

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def streams(self) -> DeviceStreamManager:
        return self._streams

    @property
    def is_closed(self) -> bool:
        return self._state.closed

    def subscribe(self, callback: Callable[[SelectorState], None]) -> Callable[[], None]:
        self._subscribers.append(callback)
        callback(self._state)
        return lambda: self._subscribers.remove(callback)

    def _notify_subscribers(self) -> None:
        for sub in list(self._subscribers):
            try:
                sub(self._state)
            except Exception as e:
                logger.warning("Subscriber error: %s", e)

    # ================================================================
    # DISPATCH
    # ================================================================

    async def dispatch(self, action: Action) -> None:
        self._state, effects = update(self._state, action)
        self._notify_subscribers()
        for effect in effects:
            await self._execute(effect)

    async def _execute(self, effect: Effect) -> None:
        match effect:
            case OpenStream(device_id):
                await self._open_stream(device_id)
            case CloseStream():
                await self._streams.close_stream()
            case EndSession():
                logger.info("Capture session closed")
                if self._on_close is not None:
                    self._on_close()

    async def _open_stream(self, device_id: str) -> None:
        try:
            await self._streams.open_stream(device_id)
        except StreamOpenError as exc:
            logger.error("%s", exc)
            self._notifier.notify(str(exc), NotificationLevel.ERROR)
            await self.dispatch(StreamFailed(device_id, exc.reason))
            return
        await self.dispatch(StreamOpened(device_id))
        # Selection may have moved on while the device was opening
        if self._state.stream_device != device_id and self._streams.device_id == device_id:
            await self._streams.close_stream()

    # ================================================================
    # USER EVENTS
    # ================================================================

    async def refresh_devices(self) -> None:
        try:
            devices = await self._device_lister()
        except Exception as exc:
            logger.exception("Device enumeration failed")
            self._notifier.notify(f"Could not list capture devices: {exc}", NotificationLevel.ERROR)
            devices = ()
        await self.dispatch(DevicesListed(tuple(devices)))

    async def select_mode(self, mode: Union[AcquisitionMode, str]) -> None:
        await self.dispatch(ChangeMode(AcquisitionMode.parse(mode)))

    async def select_device(self, device_id: str) -> None:
        await self.dispatch(SelectDevice(device_id or ""))

    async def submit_file(self, path: Union[str, Path, None]) -> Optional[Delivery]:
        return await self._recognize(lambda: read_local_file(path))

    async def submit_url(self, url: Optional[str]) -> Optional[Delivery]:
        return await self._recognize(lambda: self._fetcher.fetch(url))

    async def capture(self) -> Optional[Delivery]:
        return await self._recognize(self._snapshot)

    async def refresh_preview(self) -> None:
        """Pull the next live frame; called from the host's UI pump."""
        if self._state.is_live and self._streams.is_open:
            await self._streams.refresh()

    async def close(self) -> None:
        await self.dispatch(CloseSession())

    # ================================================================
    # PIPELINE
    # ================================================================

    async def _snapshot(self) -> ImageBuffer:
        buffer = await snapshot_async(self._streams.surface)
        if buffer is None:
            raise AcquisitionError(NO_STREAM_MESSAGE)
        return buffer

    async def _recognize(self, acquire: Callable[[], Awaitable[ImageBuffer]]) -> Optional[Delivery]:
        """acquire bytes, recognize, route the result; strictly in that order.

        Engine path and timeout are read from settings on every trigger.
        """
        if self._state.closed:
            return None
        if self._state.busy:
            self._notifier.notify(BUSY_MESSAGE)
            return None

        await self.dispatch(RecognitionStarted())
        delivery: Optional[Delivery] = None
        try:
            buffer = await acquire()
            settings = self._settings()
            self._invoker.timeout = settings.engine_timeout
            outcome = await self._invoker.recognize(buffer, settings.recognition_engine_path)
            delivery = await self._router.deliver(outcome, self._editor.has_active_sink())
        except ImageOcrError as exc:
            logger.warning("Acquisition failed: %s", exc)
            self._notifier.notify(str(exc), NotificationLevel.ERROR)
            delivery = Delivery.FAILED
        except Exception as exc:
            logger.exception("Unexpected error during recognition")
            self._notifier.notify(f"Unexpected error: {exc}", NotificationLevel.ERROR)
            delivery = Delivery.FAILED
        finally:
            await self.dispatch(RecognitionFinished())

        self.last_delivery = delivery
        return delivery


__all__ = ["BUSY_MESSAGE", "CaptureSession", "NO_STREAM_MESSAGE"]
