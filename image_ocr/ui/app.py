"""Desktop host: a text document with the Image OCR command."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Optional

try:  # pragma: no cover - GUI availability varies
    import tkinter as tk  # type: ignore
    from tkinter import filedialog, messagebox, ttk  # type: ignore
except Exception:  # pragma: no cover
    tk = None  # type: ignore
    ttk = None  # type: ignore
    filedialog = None  # type: ignore
    messagebox = None  # type: ignore

import aiofiles

from image_ocr.core.logging_utils import get_module_logger
from image_ocr.core.settings import SettingsStore
from image_ocr.ocr.router import NotificationLevel
from image_ocr.session.controller import CaptureSession

from .dialog import CaptureDialog
from .editor import TextWidgetSink, TkClipboard
from .notifications import StatusNotifier
from .settings_window import SettingsWindow

DEFAULT_GEOMETRY = "900x640"
DOCUMENT_FILETYPES = [("Markdown", "*.md"), ("Text", "*.txt"), ("All files", "*.*")]
NO_DOCUMENT_MESSAGE = "No active Markdown editor"


class ImageOcrApp:
    """Main window; the Text widget is the document the capture modal inserts into."""

    def __init__(self, store: SettingsStore, *, document: Optional[Path] = None) -> None:
        if tk is None:
            raise RuntimeError("Tkinter is not available in this Python installation")

        self.logger = get_module_logger("ImageOcrApp")
        self.store = store
        self.document_path: Optional[Path] = Path(document) if document else None
        self._close_requested = False
        self._dialog: Optional[CaptureDialog] = None
        self._settings_window: Optional[SettingsWindow] = None
        self._tasks: set = set()

        self.root = tk.Tk()
        self.root.title("Image OCR")
        self.root.geometry(DEFAULT_GEOMETRY)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._build_ui()
        self.notifier = StatusNotifier(self._status_label, logger=self.logger)
        self.sink = TextWidgetSink(self.text)
        self.clipboard = TkClipboard(self.root)
        self._update_title()

    # ------------------------------------------------------------------
    # Layout

    def _build_ui(self) -> None:
        menubar = tk.Menu(self.root)
        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="New", command=self.new_document)
        file_menu.add_command(label="Open...", command=self._on_open)
        file_menu.add_command(label="Save", command=self._on_save, accelerator="Ctrl+S")
        file_menu.add_command(label="Save As...", command=self._on_save_as)
        file_menu.add_command(label="Close Document", command=self.close_document)
        file_menu.add_separator()
        file_menu.add_command(label="Quit", command=self._on_close)
        menubar.add_cascade(label="File", menu=file_menu)

        ocr_menu = tk.Menu(menubar, tearoff=0)
        ocr_menu.add_command(label="Image OCR...", command=self.open_capture_dialog, accelerator="Ctrl+Shift+O")
        ocr_menu.add_command(label="Settings...", command=self.open_settings)
        menubar.add_cascade(label="Tools", menu=ocr_menu)
        self.root.config(menu=menubar)

        toolbar = ttk.Frame(self.root, padding=(8, 6))
        toolbar.pack(fill=tk.X)
        ttk.Button(toolbar, text="Image OCR", command=self.open_capture_dialog).pack(side=tk.LEFT)

        body = ttk.Frame(self.root, padding=(8, 0))
        body.pack(fill=tk.BOTH, expand=True)
        scrollbar = ttk.Scrollbar(body, orient=tk.VERTICAL)
        self.text = tk.Text(body, wrap="word", undo=True, yscrollcommand=scrollbar.set)
        scrollbar.configure(command=self.text.yview)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self.text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self._status_label = ttk.Label(self.root, text="", padding=(8, 4))
        self._status_label.pack(fill=tk.X)

        self.root.bind("<Control-s>", lambda _event: self._on_save())
        self.root.bind("<Control-Shift-O>", lambda _event: self.open_capture_dialog())

    def _update_title(self) -> None:
        name = self.document_path.name if self.document_path else "Untitled"
        if not self.sink.has_active_sink():
            name = "No document"
        self.root.title(f"{name} - Image OCR")

    # ------------------------------------------------------------------
    # Document

    def new_document(self) -> None:
        self.text.configure(state="normal")
        self.text.delete("1.0", tk.END)
        self.text.edit_modified(False)
        self.document_path = None
        self._update_title()

    def close_document(self) -> None:
        self.text.delete("1.0", tk.END)
        self.text.configure(state="disabled")
        self.document_path = None
        self._update_title()

    async def load_document(self, path: Path) -> None:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            content = ""
        except OSError as exc:
            self.logger.error("Failed to open %s: %s", path, exc)
            self.notifier.notify(f"Could not open {path}: {exc}", NotificationLevel.ERROR)
            return
        self.text.configure(state="normal")
        self.text.delete("1.0", tk.END)
        self.text.insert("1.0", content)
        self.text.edit_modified(False)
        self.document_path = Path(path)
        self._update_title()

    async def save_document(self, path: Optional[Path] = None) -> bool:
        target = Path(path) if path else self.document_path
        if target is None:
            return False
        content = self.text.get("1.0", "end-1c")
        try:
            async with aiofiles.open(target, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as exc:
            self.logger.error("Failed to save %s: %s", target, exc)
            self.notifier.notify(f"Could not save {target}: {exc}", NotificationLevel.ERROR)
            return False
        self.document_path = target
        self.text.edit_modified(False)
        self._update_title()
        self.notifier.notify(f"Saved {target.name}")
        return True

    def _on_open(self) -> None:
        path = filedialog.askopenfilename(parent=self.root, filetypes=DOCUMENT_FILETYPES)
        if path:
            self._schedule(self.load_document(Path(path)))

    def _on_save(self) -> None:
        if self.document_path is None:
            self._on_save_as()
            return
        self._schedule(self.save_document())

    def _on_save_as(self) -> None:
        if not self.sink.has_active_sink():
            return
        path = filedialog.asksaveasfilename(
            parent=self.root,
            defaultextension=".md",
            filetypes=DOCUMENT_FILETYPES,
        )
        if path:
            self._schedule(self.save_document(Path(path)))

    # ------------------------------------------------------------------
    # Image OCR

    def open_capture_dialog(self) -> None:
        if not self.sink.has_active_sink():
            self.notifier.notify(NO_DOCUMENT_MESSAGE, NotificationLevel.ERROR)
            return
        if self._dialog is not None and self._dialog.is_open:
            self._dialog.lift()
            return

        settings = self.store
        session = CaptureSession(
            self.sink,
            settings=lambda: settings.settings,
            notifier=self.notifier,
            clipboard=self.clipboard,
            on_close=self._on_session_closed,
        )
        self._dialog = CaptureDialog(self.root, session, self.notifier, logger=self.logger)
        self._schedule(self._dialog.start())

    def _on_session_closed(self) -> None:
        if self._dialog is not None:
            self._dialog.destroy()
            self._dialog = None
        try:
            self.text.focus_set()
        except tk.TclError:
            pass

    def open_settings(self) -> None:
        if self._settings_window is not None:
            try:
                if self._settings_window.window.winfo_exists():
                    self._settings_window.window.lift()
                    return
            except tk.TclError:
                pass
        self._settings_window = SettingsWindow(self.root, self.store, self.notifier, logger=self.logger)

    # ------------------------------------------------------------------
    # Lifecycle

    def _schedule(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_close(self) -> None:
        if self.text.edit_modified() and self.sink.has_active_sink():
            if not messagebox.askyesno("Image OCR", "Discard unsaved changes?", parent=self.root):
                return
        self.logger.info("Quit requested")
        self._close_requested = True

    async def run(self) -> float:
        self.logger.info("Image OCR window starting")
        if self.document_path is not None:
            await self.load_document(self.document_path)

        open_time = time.perf_counter()
        try:
            while not self._close_requested:
                try:
                    self.root.update()
                except tk.TclError as exc:
                    self.logger.error("Tk root.update() raised: %s", exc, exc_info=exc)
                    break
                await asyncio.sleep(0.01)
        finally:
            await self._shutdown()
        duration_ms = (time.perf_counter() - open_time) * 1000.0
        self.logger.info("Image OCR window closed (%.2f ms)", duration_ms)
        return duration_ms

    async def _shutdown(self) -> None:
        if self._dialog is not None and self._dialog.is_open:
            # Closing the session releases any capture device
            await self._dialog.session.close()
        for task in list(self._tasks):
            task.cancel()
        try:
            self.root.destroy()
        except tk.TclError:
            pass


async def run_gui(store: SettingsStore, document: Optional[Path] = None) -> int:
    app = ImageOcrApp(store, document=document)
    await app.run()
    return 0


__all__ = ["ImageOcrApp", "run_gui"]
