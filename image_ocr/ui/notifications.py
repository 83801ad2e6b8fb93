"""User-visible notifications for the Tk host."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

try:  # pragma: no cover - GUI availability varies
    import tkinter as tk  # type: ignore
except Exception:  # pragma: no cover
    tk = None  # type: ignore

from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger
from image_ocr.ocr.router import NotificationLevel

ERROR_FOREGROUND = "#b00020"
INFO_FOREGROUND = ""
NOTICE_TIMEOUT_MS = 8000


class StatusNotifier:
    """Shows notices in a status label; clears them after a timeout.

    Every notice is also written to the log, which keeps the full detail.
    """

    def __init__(
        self,
        label: Optional["tk.Label"] = None,
        *,
        logger: LoggerLike = None,
        timeout_ms: int = NOTICE_TIMEOUT_MS,
    ) -> None:
        self._labels: List["tk.Label"] = [label] if label is not None else []
        self._timeout_ms = timeout_ms
        self._clear_ids: dict = {}
        self._listeners: List[Callable[[str, NotificationLevel], None]] = []
        self.history: List[Tuple[NotificationLevel, str]] = []
        self.logger = ensure_structured_logger(logger, fallback_name=__name__)

    def attach(self, label: "tk.Label") -> Callable[[], None]:
        self._labels.append(label)
        return lambda: self._labels.remove(label) if label in self._labels else None

    def add_listener(self, listener: Callable[[str, NotificationLevel], None]) -> None:
        self._listeners.append(listener)

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.history.append((level, message))
        if level is NotificationLevel.ERROR:
            self.logger.warning("Notice: %s", message)
        else:
            self.logger.info("Notice: %s", message)

        for label in list(self._labels):
            self._show(label, message, level)
        for listener in list(self._listeners):
            listener(message, level)

    def _show(self, label: "tk.Label", message: str, level: NotificationLevel) -> None:
        try:
            if not label.winfo_exists():
                self._labels.remove(label)
                return
            foreground = ERROR_FOREGROUND if level is NotificationLevel.ERROR else INFO_FOREGROUND
            label.configure(text=message, foreground=foreground)

            pending = self._clear_ids.pop(id(label), None)
            if pending is not None:
                label.after_cancel(pending)
            if self._timeout_ms > 0:
                self._clear_ids[id(label)] = label.after(self._timeout_ms, lambda: self._clear(label))
        except tk.TclError as exc:
            self.logger.debug("Could not show notice: %s", exc)

    def _clear(self, label: "tk.Label") -> None:
        self._clear_ids.pop(id(label), None)
        try:
            label.configure(text="")
        except tk.TclError:
            pass


__all__ = ["StatusNotifier"]
