"""Command-line front end; the entry point is ``image_ocr.cli.main:main``."""

from .main import build_parser

__all__ = ["build_parser"]
