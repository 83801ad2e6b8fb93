"""Tk-backed editor sink and clipboard for the desktop host."""

from __future__ import annotations

from typing import Optional

try:  # pragma: no cover - GUI availability varies
    import tkinter as tk  # type: ignore
except Exception:  # pragma: no cover
    tk = None  # type: ignore

from image_ocr.core.errors import ClipboardError


class TextWidgetSink:
    """Document sink over a ``tk.Text`` widget.

    The document counts as active while the widget exists and is editable.
    """

    def __init__(self, text_widget: "tk.Text") -> None:
        self._text = text_widget

    def has_active_sink(self) -> bool:
        try:
            return bool(self._text.winfo_exists()) and str(self._text.cget("state")) == "normal"
        except tk.TclError:
            return False

    def insert_at_cursor(self, text: str) -> None:
        if self._text.tag_ranges("sel"):
            self._text.mark_set("insert", "sel.first")
            self._text.delete("sel.first", "sel.last")
        self._text.insert("insert", text)
        self._text.see("insert")
        self._text.edit_modified(True)


class TkClipboard:
    """Clipboard through the Tk root, so it works wherever the window does."""

    def __init__(self, root: "tk.Misc") -> None:
        self._root = root

    async def write_text(self, text: str) -> None:
        try:
            self._root.clipboard_clear()
            self._root.clipboard_append(text)
            # Hand ownership to the window manager
            self._root.update()
        except tk.TclError as exc:
            raise ClipboardError(str(exc)) from exc

    def read_text(self) -> Optional[str]:
        try:
            return self._root.clipboard_get()
        except tk.TclError:
            return None


__all__ = ["TextWidgetSink", "TkClipboard"]
