from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from image_ocr.core.logging_config import configure_logging
from image_ocr.core.logging_utils import StructuredLogger, get_module_logger


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    default_log_level: str = "warning",
) -> None:
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=default_log_level,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs (rotated at 500 KB)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file to use instead of ~/.image_ocr/config.txt",
    )


def non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must not be negative")
    return parsed


def setup_logging_from_args(args: argparse.Namespace, *, default_log_file: Optional[Path] = None) -> StructuredLogger:
    log_file = getattr(args, "log_file", None) or default_log_file
    configure_logging(
        LOG_LEVELS.get(getattr(args, "log_level", "warning"), logging.WARNING),
        log_file=log_file,
        force=True,
    )
    return get_module_logger("ImageOcrCli")


__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "non_negative_int",
    "setup_logging_from_args",
]
