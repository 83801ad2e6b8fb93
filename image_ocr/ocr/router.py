"""Delivery of recognition outcomes to the document or the clipboard."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

import pyperclip

from image_ocr.core.errors import ClipboardError
from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger

from .outcome import Empty, EngineFailure, NoTextDetected, RecognitionOutcome, Success

NO_TEXT_MESSAGE = "No text detected in image"
NO_EDITOR_MESSAGE = (
    "No active document. Please open a document before running Image OCR. "
    "Text has been copied to clipboard."
)
ENGINE_ERROR_MESSAGE = "Error running the recognition engine, check the log for more information"
EMPTY_MESSAGE = "No image data to recognize"


class NotificationLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class EditorSink(Protocol):
    """The host document: one query and one mutation."""

    def has_active_sink(self) -> bool: ...

    def insert_at_cursor(self, text: str) -> None: ...


class Clipboard(Protocol):
    async def write_text(self, text: str) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None: ...


class PyperclipClipboard:
    """System clipboard via pyperclip, run off the event loop."""

    async def write_text(self, text: str) -> None:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(str(exc)) from exc


class Delivery(str, Enum):
    INSERTED = "inserted"
    COPIED = "copied"
    NO_TEXT = "no_text"
    FAILED = "failed"

    @property
    def delivered(self) -> bool:
        return self in (Delivery.INSERTED, Delivery.COPIED)


class ResultRouter:
    """Routes an outcome and raises a notification for every case.

    ``on_inserted`` runs after text lands in the document; the capture
    session uses it to release the device stream and close itself.
    """

    def __init__(
        self,
        editor: EditorSink,
        clipboard: Clipboard,
        notifier: Notifier,
        *,
        on_inserted: Optional[Callable[[], Awaitable[None]]] = None,
        logger: LoggerLike = None,
    ) -> None:
        self.editor = editor
        self.clipboard = clipboard
        self.notifier = notifier
        self.on_inserted = on_inserted
        self.logger = ensure_structured_logger(logger, fallback_name=__name__)

    async def deliver(self, outcome: RecognitionOutcome, has_active_editor: bool) -> Delivery:
        match outcome:
            case EngineFailure(detail=detail):
                self.logger.error("Recognition failed: %s", detail)
                self.notifier.notify(f"{ENGINE_ERROR_MESSAGE} ({detail})", NotificationLevel.ERROR)
                return Delivery.FAILED
            case NoTextDetected():
                self.notifier.notify(NO_TEXT_MESSAGE)
                return Delivery.NO_TEXT
            case Success(text=text) if has_active_editor:
                self.editor.insert_at_cursor(text)
                self.logger.info("Inserted %d characters into the document", len(text))
                if self.on_inserted is not None:
                    await self.on_inserted()
                return Delivery.INSERTED
            case Success(text=text):
                try:
                    await self.clipboard.write_text(text)
                except ClipboardError as exc:
                    self.logger.error("Clipboard write failed: %s", exc)
                    self.notifier.notify(f"Error: could not copy text to clipboard ({exc})", NotificationLevel.ERROR)
                    return Delivery.FAILED
                self.notifier.notify(NO_EDITOR_MESSAGE)
                return Delivery.COPIED
            case Empty():
                self.logger.warning("Empty outcome reached the result router")
                self.notifier.notify(EMPTY_MESSAGE, NotificationLevel.ERROR)
                return Delivery.FAILED
            case _:
                raise TypeError(f"Unknown recognition outcome: {outcome!r}")


__all__ = [
    "Clipboard",
    "Delivery",
    "EditorSink",
    "NO_EDITOR_MESSAGE",
    "NO_TEXT_MESSAGE",
    "NotificationLevel",
    "Notifier",
    "PyperclipClipboard",
    "ResultRouter",
]
