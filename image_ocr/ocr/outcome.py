"""Classification of a single recognition engine invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class EngineFailure:
    detail: str


@dataclass(frozen=True)
class NoTextDetected:
    pass


@dataclass(frozen=True)
class Empty:
    """No image bytes were available to recognize."""


RecognitionOutcome = Union[Success, EngineFailure, NoTextDetected, Empty]


__all__ = [
    "Empty",
    "EngineFailure",
    "NoTextDetected",
    "RecognitionOutcome",
    "Success",
]
