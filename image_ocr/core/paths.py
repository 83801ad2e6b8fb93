"""Centralized path constants for Image OCR."""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]

# User-specific state (IMAGE_OCR_STATE_DIR relocates everything, e.g. in tests)
_USER_STATE_ENV = os.environ.get("IMAGE_OCR_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".image_ocr")
USER_CONFIG_OVERRIDES_DIR = USER_STATE_DIR / "config_overrides"

# Configuration
CONFIG_PATH = USER_STATE_DIR / "config.txt"

# Logging
LOGS_DIR = USER_STATE_DIR / "logs"
LOG_FILE = LOGS_DIR / "image_ocr.log"
