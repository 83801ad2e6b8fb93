"""
Recognition engine invocation.

The engine is an external executable run as ``<engine> - -``: image bytes on
standard input, recognized text on standard output. Each call is one-shot.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shlex
import shutil
from typing import List, Optional

from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger
from image_ocr.core.settings import DEFAULT_ENGINE_TIMEOUT

from .buffer import ImageBuffer
from .outcome import Empty, EngineFailure, NoTextDetected, RecognitionOutcome, Success

STDIN_ARG = "-"
STDOUT_ARG = "-"


def build_engine_command(engine_path: str) -> List[str]:
    """Return argv for ``engine_path`` reading stdin and writing stdout.

    A path naming an existing file or an executable on PATH is taken whole
    (so paths with spaces work); anything else is split shell-style, which
    allows extra engine flags such as ``tesseract -l deu``.
    """
    engine_path = engine_path.strip()
    if not engine_path:
        raise ValueError("recognition engine path is empty")

    if os.path.isfile(engine_path) or shutil.which(engine_path):
        argv = [engine_path]
    else:
        argv = shlex.split(engine_path, posix=os.name != "nt")
    return [*argv, STDIN_ARG, STDOUT_ARG]


class RecognitionInvoker:
    """Runs the recognition engine as a subprocess and classifies its output."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = DEFAULT_ENGINE_TIMEOUT,
        logger: LoggerLike = None,
    ) -> None:
        self.timeout = timeout
        self.logger = ensure_structured_logger(logger, fallback_name=__name__)

    async def recognize(self, buffer: ImageBuffer, engine_path: str) -> RecognitionOutcome:
        if buffer.is_empty:
            self.logger.warning("Recognition requested with an empty image buffer")
            return Empty()

        try:
            command = build_engine_command(engine_path)
        except ValueError as exc:
            return EngineFailure(str(exc))

        self.logger.debug("Running %s on %s", command, buffer.describe())
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            self.logger.error("Failed to launch recognition engine %r: %s", engine_path, exc)
            return EngineFailure(str(exc))

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=buffer.data),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            self.logger.error("Recognition engine timed out after %ss", self.timeout)
            return EngineFailure(f"Recognition engine timed out after {self.timeout:g} seconds")
        except asyncio.CancelledError:
            await self._kill(process)
            raise
        except (BrokenPipeError, ConnectionResetError) as exc:
            # Engine exited before consuming the whole image
            await process.wait()
            stdout, stderr = b"", str(exc).encode()

        error_text = stderr.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            detail = error_text or f"Recognition engine exited with status {process.returncode}"
            self.logger.error("Recognition engine failed (%s): %s", process.returncode, detail)
            return EngineFailure(detail)

        if error_text:
            self.logger.info("Recognition engine stderr: %s", error_text)

        if not stdout:
            return NoTextDetected()

        text = stdout.decode("utf-8", errors="replace")
        self.logger.info("Recognized %d characters", len(text))
        return Success(text)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


__all__ = ["RecognitionInvoker", "build_engine_command"]
