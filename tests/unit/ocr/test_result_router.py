"""Unit tests for ResultRouter delivery policy."""

from unittest.mock import AsyncMock

import pytest

from image_ocr.core.errors import ClipboardError
from image_ocr.ocr.outcome import Empty, EngineFailure, NoTextDetected, Success
from image_ocr.ocr.router import (
    NO_EDITOR_MESSAGE,
    NO_TEXT_MESSAGE,
    Delivery,
    NotificationLevel,
    PyperclipClipboard,
    ResultRouter,
)
from image_ocr.ocr import router as router_module

from tests.unit.conftest import FakeClipboard


@pytest.fixture
def on_inserted():
    return AsyncMock()


@pytest.fixture
def router(editor, clipboard, notifier, on_inserted):
    return ResultRouter(editor, clipboard, notifier, on_inserted=on_inserted)


class TestDeliverSuccess:

    @pytest.mark.asyncio
    async def test_active_editor_inserts_and_releases(self, router, editor, clipboard, on_inserted):
        delivery = await router.deliver(Success("hello"), True)

        assert delivery is Delivery.INSERTED
        assert editor.inserted == ["hello"]
        assert clipboard.written == []
        on_inserted.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_editor_copies_to_clipboard(self, router, editor, clipboard, notifier, on_inserted):
        delivery = await router.deliver(Success("hello"), False)

        assert delivery is Delivery.COPIED
        assert clipboard.written == ["hello"]
        assert editor.inserted == []
        assert notifier.texts == [NO_EDITOR_MESSAGE]
        on_inserted.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clipboard_failure_is_reported(self, editor, notifier, on_inserted):
        router = ResultRouter(editor, FakeClipboard(error=ClipboardError("no clipboard")), notifier,
                              on_inserted=on_inserted)

        delivery = await router.deliver(Success("hello"), False)

        assert delivery is Delivery.FAILED
        assert len(notifier.errors) == 1
        assert "clipboard" in notifier.errors[0]


class TestDeliverFailures:

    @pytest.mark.asyncio
    async def test_engine_failure_notifies_error(self, router, editor, clipboard, notifier, on_inserted):
        delivery = await router.deliver(EngineFailure("tesseract: not found"), True)

        assert delivery is Delivery.FAILED
        assert "tesseract: not found" in notifier.errors[0]
        assert editor.inserted == [] and clipboard.written == []
        on_inserted.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_text(self, router, editor, notifier):
        delivery = await router.deliver(NoTextDetected(), True)

        assert delivery is Delivery.NO_TEXT
        assert notifier.messages == [(NotificationLevel.INFO, NO_TEXT_MESSAGE)]
        assert editor.inserted == []

    @pytest.mark.asyncio
    async def test_empty_is_reported_as_error(self, router, notifier):
        assert await router.deliver(Empty(), True) is Delivery.FAILED
        assert len(notifier.errors) == 1

    @pytest.mark.asyncio
    async def test_unknown_outcome_raises(self, router):
        with pytest.raises(TypeError):
            await router.deliver("hello", True)

    def test_delivered_flag(self):
        assert Delivery.INSERTED.delivered and Delivery.COPIED.delivered
        assert not Delivery.NO_TEXT.delivered and not Delivery.FAILED.delivered


class TestPyperclipClipboard:

    @pytest.mark.asyncio
    async def test_write_text(self, monkeypatch):
        copied = []
        monkeypatch.setattr(router_module.pyperclip, "copy", copied.append)

        await PyperclipClipboard().write_text("text")

        assert copied == ["text"]

    @pytest.mark.asyncio
    async def test_errors_become_clipboard_error(self, monkeypatch):
        def fail(_text):
            raise router_module.pyperclip.PyperclipException("no mechanism")

        monkeypatch.setattr(router_module.pyperclip, "copy", fail)

        with pytest.raises(ClipboardError, match="no mechanism"):
            await PyperclipClipboard().write_text("text")
