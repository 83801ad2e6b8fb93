"""Unit tests for the recognition engine invoker."""

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from image_ocr.ocr import invoker as invoker_module
from image_ocr.ocr.buffer import ImageBuffer
from image_ocr.ocr.invoker import RecognitionInvoker, build_engine_command
from image_ocr.ocr.outcome import Empty, EngineFailure, NoTextDetected, Success


class TestBuildEngineCommand:

    def test_existing_file_used_whole(self, tmp_path):
        engine = tmp_path / "my engine"
        engine.write_text("", encoding="utf-8")

        assert build_engine_command(str(engine)) == [str(engine), "-", "-"]

    def test_executable_on_path_used_whole(self):
        with patch.object(invoker_module.shutil, "which", return_value="/usr/bin/tesseract"):
            assert build_engine_command("tesseract") == ["tesseract", "-", "-"]

    def test_extra_arguments_split(self):
        with patch.object(invoker_module.shutil, "which", return_value=None):
            assert build_engine_command("tesseract -l deu") == ["tesseract", "-l", "deu", "-", "-"]

    def test_empty_path_rejected(self):
        with pytest.raises(ValueError):
            build_engine_command("   ")


class TestRecognizeWithScriptEngine:
    """Runs small executable scripts standing in for the engine."""

    @pytest.mark.asyncio
    async def test_success_is_verbatim(self, fake_engine, png_bytes):
        engine = fake_engine("sys.stdout.write('  Hello\\nWorld \\n')")

        outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine))

        assert outcome == Success("  Hello\nWorld \n")

    @pytest.mark.asyncio
    async def test_engine_receives_whole_buffer_and_stdio_args(self, fake_engine, png_bytes):
        engine = fake_engine("sys.stdout.write(repr((len(data), data[:8].hex(), args)))")

        outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine))

        assert outcome == Success(repr((len(png_bytes), png_bytes[:8].hex(), ["-", "-"])))

    @pytest.mark.asyncio
    async def test_empty_stdout_is_no_text(self, fake_engine, png_bytes):
        engine = fake_engine("pass")

        assert await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine)) == NoTextDetected()

    @pytest.mark.asyncio
    async def test_whitespace_stdout_is_still_text(self, fake_engine, png_bytes):
        engine = fake_engine("sys.stdout.write('\\n')")

        assert await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine)) == Success("\n")

    @pytest.mark.asyncio
    async def test_stderr_alone_is_not_failure(self, fake_engine, png_bytes):
        engine = fake_engine("sys.stderr.write('Estimating resolution as 300\\n'); sys.stdout.write('ok')")

        assert await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine)) == Success("ok")

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_failure_with_stderr(self, fake_engine, png_bytes):
        engine = fake_engine("sys.stderr.write('Error in pixReadStream'); sys.exit(1)")

        outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine))

        assert isinstance(outcome, EngineFailure)
        assert "pixReadStream" in outcome.detail

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_stderr(self, fake_engine, png_bytes):
        engine = fake_engine("sys.exit(3)")

        outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(engine))

        assert outcome == EngineFailure("Recognition engine exited with status 3")

    @pytest.mark.asyncio
    async def test_timeout_kills_engine(self, fake_engine, png_bytes):
        engine = fake_engine("import time; time.sleep(30)")

        outcome = await RecognitionInvoker(timeout=0.5).recognize(ImageBuffer(png_bytes), str(engine))

        assert isinstance(outcome, EngineFailure)
        assert "timed out" in outcome.detail


class TestRecognizeEdgeCases:

    @pytest.mark.asyncio
    async def test_missing_engine_is_failure(self, tmp_path, png_bytes):
        missing = tmp_path / "no-such-engine"

        outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), str(missing))

        assert isinstance(outcome, EngineFailure)
        assert outcome.detail

    @pytest.mark.asyncio
    async def test_empty_buffer_does_not_spawn(self):
        with patch.object(invoker_module.asyncio, "create_subprocess_exec", new=AsyncMock()) as spawn:
            outcome = await RecognitionInvoker().recognize(ImageBuffer(b""), "tesseract")

        assert outcome == Empty()
        spawn.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, png_bytes):
        process = MagicMock()
        process.returncode = 0
        process.communicate = AsyncMock(return_value=(b"caf\xe9", b""))

        with patch.object(invoker_module.asyncio, "create_subprocess_exec", new=AsyncMock(return_value=process)):
            outcome = await RecognitionInvoker().recognize(ImageBuffer(png_bytes), sys.executable)

        assert outcome == Success("caf�")
        process.communicate.assert_awaited_once_with(input=png_bytes)

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self, png_bytes):
        process = MagicMock()
        process.returncode = None
        process.communicate = AsyncMock(side_effect=asyncio.CancelledError)
        process.wait = AsyncMock(return_value=-9)

        with patch.object(invoker_module.asyncio, "create_subprocess_exec", new=AsyncMock(return_value=process)):
            with pytest.raises(asyncio.CancelledError):
                await RecognitionInvoker().recognize(ImageBuffer(png_bytes), sys.executable)

        process.kill.assert_called_once()
