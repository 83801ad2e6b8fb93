"""Recognition engine invocation and result routing."""

from .buffer import ImageBuffer, PNG_CONTENT_TYPE
from .invoker import RecognitionInvoker, build_engine_command
from .outcome import Empty, EngineFailure, NoTextDetected, RecognitionOutcome, Success
from .router import (
    Delivery,
    EditorSink,
    NotificationLevel,
    PyperclipClipboard,
    ResultRouter,
)

__all__ = [
    "Delivery",
    "EditorSink",
    "Empty",
    "EngineFailure",
    "ImageBuffer",
    "NoTextDetected",
    "NotificationLevel",
    "PNG_CONTENT_TYPE",
    "PyperclipClipboard",
    "RecognitionInvoker",
    "RecognitionOutcome",
    "ResultRouter",
    "Success",
    "build_engine_command",
]
