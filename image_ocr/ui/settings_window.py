"""Settings window for the recognition engine."""

from __future__ import annotations

import asyncio
import webbrowser
from typing import Optional

try:  # pragma: no cover - GUI availability varies
    import tkinter as tk  # type: ignore
    from tkinter import filedialog, ttk  # type: ignore
except Exception:  # pragma: no cover
    tk = None  # type: ignore
    ttk = None  # type: ignore
    filedialog = None  # type: ignore

from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger
from image_ocr.core.settings import SettingsStore
from image_ocr.ocr.router import NotificationLevel, Notifier

ENGINE_INSTALL_URL = "https://tesseract-ocr.github.io/tessdoc/Installation.html"
ENGINE_DESCRIPTION = (
    "Tesseract is an open-source OCR engine that can be used to extract text from images."
)
ENGINE_PATH_HELP = (
    "The path to the tesseract executable. If the folder it was installed in is on "
    'your PATH, you can leave this as "tesseract". Extra engine options may follow '
    'the executable, e.g. "tesseract -l deu".'
)


class SettingsWindow:
    """Pop-out window editing the persisted engine settings."""

    def __init__(
        self,
        parent: "tk.Misc",
        store: SettingsStore,
        notifier: Notifier,
        *,
        logger: LoggerLike = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._save_task: Optional[asyncio.Task] = None

        self.window = tk.Toplevel(parent)
        self.window.title("Image OCR Settings")
        self.window.transient(parent)
        self.window.resizable(False, False)

        settings = store.settings
        self._path_var = tk.StringVar(value=settings.recognition_engine_path)
        self._timeout_var = tk.StringVar(value=f"{settings.engine_timeout_seconds:g}")
        self._build_ui()

    def _build_ui(self) -> None:
        main = ttk.Frame(self.window, padding="12")
        main.pack(fill=tk.BOTH, expand=True)

        ttk.Label(main, text="Tesseract", font=("TkDefaultFont", 14, "bold")).grid(
            row=0, column=0, columnspan=3, sticky="w"
        )
        ttk.Label(main, text=ENGINE_DESCRIPTION, wraplength=420).grid(
            row=1, column=0, columnspan=3, sticky="w", pady=(4, 0)
        )
        link = ttk.Label(
            main,
            text="If you do not currently have tesseract, download here.",
            foreground="#1a5fb4",
            cursor="hand2",
        )
        link.grid(row=2, column=0, columnspan=3, sticky="w", pady=(0, 10))
        link.bind("<Button-1>", lambda _event: self._open_install_page())

        ttk.Label(main, text="Tesseract Path").grid(row=3, column=0, sticky="w")
        ttk.Entry(main, textvariable=self._path_var, width=40).grid(row=3, column=1, sticky="ew", padx=(6, 0))
        ttk.Button(main, text="Browse...", command=self._on_browse).grid(row=3, column=2, padx=(6, 0))
        ttk.Label(main, text=ENGINE_PATH_HELP, wraplength=420, foreground="grey").grid(
            row=4, column=0, columnspan=3, sticky="w", pady=(2, 10)
        )

        ttk.Label(main, text="Timeout (seconds)").grid(row=5, column=0, sticky="w")
        ttk.Entry(main, textvariable=self._timeout_var, width=8).grid(row=5, column=1, sticky="w", padx=(6, 0))

        buttons = ttk.Frame(main)
        buttons.grid(row=6, column=0, columnspan=3, sticky="e", pady=(12, 0))
        ttk.Button(buttons, text="Cancel", command=self.close).pack(side=tk.RIGHT)
        ttk.Button(buttons, text="Save", command=self._on_save).pack(side=tk.RIGHT, padx=(0, 6))

        main.columnconfigure(1, weight=1)

    def _open_install_page(self) -> None:
        try:
            webbrowser.open(ENGINE_INSTALL_URL)
        except webbrowser.Error as exc:
            self._logger.error("Failed to open browser: %s", exc)
            self._notifier.notify(f"Open {ENGINE_INSTALL_URL} in a browser", NotificationLevel.ERROR)

    def _on_browse(self) -> None:
        path = filedialog.askopenfilename(parent=self.window, title="Locate tesseract executable")
        if path:
            self._path_var.set(path)

    def _on_save(self) -> None:
        try:
            timeout = float(self._timeout_var.get().strip() or 0)
        except ValueError:
            self._notifier.notify("Timeout must be a number of seconds", NotificationLevel.ERROR)
            return
        self._save_task = asyncio.get_running_loop().create_task(
            self.save(self._path_var.get(), timeout)
        )

    async def save(self, engine_path: str, timeout: float) -> bool:
        ok = await self._store.set_engine_path(engine_path)
        if ok and timeout != self._store.settings.engine_timeout_seconds:
            ok = await self._store.update(engine_timeout_seconds=timeout)
        if not ok:
            self._notifier.notify("Failed to save settings", NotificationLevel.ERROR)
            return False
        self._notifier.notify("Settings saved")
        self.close()
        return True

    def close(self) -> None:
        try:
            self.window.destroy()
        except tk.TclError:
            pass


__all__ = ["ENGINE_INSTALL_URL", "SettingsWindow"]
