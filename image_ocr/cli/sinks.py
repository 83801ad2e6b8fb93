"""Editor sinks and notifier for the headless front end."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from image_ocr.core.logging_utils import get_module_logger
from image_ocr.ocr.router import NotificationLevel

logger = get_module_logger("CliSinks")


class MarkdownFileSink:
    """Treats the end of a text file as the document cursor."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def has_active_sink(self) -> bool:
        return not self.path.is_dir() and self.path.parent.is_dir()

    def insert_at_cursor(self, text: str) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(text)
        logger.info("Appended %d characters to %s", len(text), self.path)


class StreamSink:
    """Writes recognized text verbatim to a stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def has_active_sink(self) -> bool:
        return not self.stream.closed

    def insert_at_cursor(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()


class NoDocumentSink:
    """No document open: recognized text goes to the clipboard."""

    def has_active_sink(self) -> bool:
        return False

    def insert_at_cursor(self, text: str) -> None:
        raise RuntimeError("No document is open")


class ConsoleNotifier:
    """Prints notices to stderr and keeps them for the exit summary."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self.history: List[Tuple[NotificationLevel, str]] = []

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.history.append((level, message))
        stream = self._stream if self._stream is not None else sys.stderr
        prefix = "error: " if level is NotificationLevel.ERROR else ""
        print(f"{prefix}{message}", file=stream)


__all__ = ["ConsoleNotifier", "MarkdownFileSink", "NoDocumentSink", "StreamSink"]
