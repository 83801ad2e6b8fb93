"""Command-line entry point for Image OCR."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from image_ocr.capture.devices import discover_devices
from image_ocr.core.errors import ImageOcrError
from image_ocr.core.paths import LOG_FILE
from image_ocr.core.settings import SETTING_KEYS, SettingsStore
from image_ocr.ocr.router import Delivery, PyperclipClipboard
from image_ocr.session.controller import CaptureSession
from image_ocr.session.state import AcquisitionMode

from .common import add_common_cli_arguments, non_negative_int, setup_logging_from_args
from .sinks import ConsoleNotifier, MarkdownFileSink, NoDocumentSink, StreamSink

DEFAULT_WARMUP_FRAMES = 5
URL_PREFIXES = ("http://", "https://")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-ocr",
        description="Recognize text in images from files, URLs, cameras or screens.",
    )
    add_common_cli_arguments(parser)
    subparsers = parser.add_subparsers(dest="command")

    gui = subparsers.add_parser("gui", help="Open the desktop window (default)")
    gui.add_argument("document", nargs="?", type=Path, default=None, help="Markdown/text document to edit")

    recognize = subparsers.add_parser("recognize", help="Recognize text in an image file or URL")
    recognize.add_argument("source", help="Image file path or http(s) URL")
    _add_delivery_arguments(recognize)

    capture = subparsers.add_parser("capture", help="Recognize text in one frame from a capture device")
    capture.add_argument("device_id", help="Device identifier as printed by 'image-ocr devices'")
    capture.add_argument(
        "--warmup",
        type=non_negative_int,
        default=DEFAULT_WARMUP_FRAMES,
        help="Frames to read before taking the snapshot (lets exposure settle)",
    )
    _add_delivery_arguments(capture)

    devices = subparsers.add_parser("devices", help="List cameras and screens")
    devices.add_argument("--no-screens", dest="include_screens", action="store_false", help="Only list cameras")

    config = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print current settings")
    config_set = config_sub.add_parser("set", help="Change one setting")
    config_set.add_argument("key", choices=SETTING_KEYS)
    config_set.add_argument("value")

    return parser


def _add_delivery_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--into", type=Path, default=None, help="Append recognized text to this document")
    group.add_argument("--print", dest="print_text", action="store_true", help="Write recognized text to stdout")


def _make_sink(args: argparse.Namespace):
    if args.into is not None:
        return MarkdownFileSink(args.into)
    if args.print_text:
        return StreamSink()
    # No document: same as the desktop host with nothing open
    return NoDocumentSink()


def _make_session(args: argparse.Namespace, store: SettingsStore, notifier: ConsoleNotifier) -> CaptureSession:
    return CaptureSession(
        _make_sink(args),
        settings=lambda: store.settings,
        notifier=notifier,
        clipboard=PyperclipClipboard(),
    )


def _exit_code(delivery: Optional[Delivery]) -> int:
    return 0 if delivery is not None and delivery.delivered else 1


async def cmd_recognize(args: argparse.Namespace, store: SettingsStore) -> int:
    notifier = ConsoleNotifier()
    session = _make_session(args, store, notifier)
    try:
        if args.source.lower().startswith(URL_PREFIXES):
            await session.select_mode(AcquisitionMode.REMOTE_URL)
            delivery = await session.submit_url(args.source)
        else:
            await session.select_mode(AcquisitionMode.LOCAL_FILE)
            delivery = await session.submit_file(args.source)
    finally:
        await session.close()
    return _exit_code(delivery)


async def cmd_capture(args: argparse.Namespace, store: SettingsStore) -> int:
    notifier = ConsoleNotifier()
    session = _make_session(args, store, notifier)
    delivery: Optional[Delivery] = None
    try:
        await session.select_device(args.device_id)
        await session.select_mode(AcquisitionMode.LIVE_CAPTURE)
        if session.state.stream_device is None:
            return 1

        for _ in range(max(args.warmup, 0) + 1):
            await session.refresh_preview()
        delivery = await session.capture()
    finally:
        await session.close()
    return _exit_code(delivery)


async def cmd_devices(args: argparse.Namespace) -> int:
    devices = await discover_devices(include_screens=args.include_screens)
    if not devices:
        print("No capture devices found", file=sys.stderr)
        return 1
    for device in devices:
        print(f"{device.id}\t{device.label}")
    return 0


def cmd_config(args: argparse.Namespace, store: SettingsStore) -> int:
    if args.config_command == "set":
        try:
            if not store.update_sync(**{args.key: args.value}):
                print(f"Could not write {store.config_path}", file=sys.stderr)
                return 1
        except (KeyError, ValueError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

    print(f"# {store.config_path}")
    for key, value in store.settings.to_config().items():
        print(f"{key} = {value}")
    return 0


async def run_command(args: argparse.Namespace) -> int:
    store = SettingsStore(args.config)
    command = args.command or "gui"

    if command == "recognize":
        return await cmd_recognize(args, store)
    if command == "capture":
        return await cmd_capture(args, store)
    if command == "devices":
        return await cmd_devices(args)
    if command == "config":
        return cmd_config(args, store)

    # Tk and PIL.ImageTk are only needed for the desktop window
    from image_ocr.ui.app import run_gui

    return await run_gui(store, getattr(args, "document", None))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    command = args.command or "gui"
    logger = setup_logging_from_args(args, default_log_file=LOG_FILE if command == "gui" else None)

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        return 130
    except ImageOcrError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
