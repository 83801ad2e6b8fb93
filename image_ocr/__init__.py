"""Image OCR: capture images from files, URLs, cameras or screens and recognize their text."""

from __future__ import annotations

from importlib import metadata
from typing import Optional, Sequence

try:
    __version__ = metadata.version("image-ocr")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Convenience wrapper around the command-line entry point."""
    from .cli.main import main

    return main(argv)


__all__ = ["__version__", "run"]
