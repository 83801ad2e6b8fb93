"""Tk desktop host for the capture pipeline."""

from .editor import TextWidgetSink, TkClipboard
from .notifications import StatusNotifier

__all__ = ["StatusNotifier", "TextWidgetSink", "TkClipboard"]
