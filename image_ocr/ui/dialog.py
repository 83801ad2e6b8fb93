"""Capture modal: source selection, live preview and capture trigger."""

from __future__ import annotations

import asyncio
from typing import Coroutine, Dict, Optional, Set

try:  # pragma: no cover - GUI availability varies
    import tkinter as tk  # type: ignore
    from tkinter import filedialog, ttk  # type: ignore
except Exception:  # pragma: no cover
    tk = None  # type: ignore
    ttk = None  # type: ignore
    filedialog = None  # type: ignore

from PIL import Image, ImageTk

from image_ocr.capture.frame import CapturedFrame
from image_ocr.core.logging_utils import LoggerLike, ensure_structured_logger
from image_ocr.session.controller import CaptureSession
from image_ocr.session.state import AcquisitionMode, SelectorState

from .notifications import StatusNotifier

PREVIEW_SIZE = (640, 360)
PREVIEW_INTERVAL = 1 / 30
IMAGE_FILETYPES = [
    ("Images", "*.png *.jpg *.jpeg *.bmp *.gif *.tif *.tiff *.webp *.pbm *.pgm *.ppm"),
    ("All files", "*.*"),
]
URL_PLACEHOLDER = "Enter URL here"


class CaptureDialog:
    """Toplevel hosting one ``CaptureSession``.

    The dialog only renders session state and forwards user events; closing
    the window closes the session, which releases any capture device.
    """

    def __init__(
        self,
        parent: "tk.Misc",
        session: CaptureSession,
        notifier: StatusNotifier,
        *,
        logger: LoggerLike = None,
    ) -> None:
        self._session = session
        self._notifier = notifier
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._tasks: Set[asyncio.Task] = set()
        self._preview_task: Optional[asyncio.Task] = None
        self._photo: Optional["ImageTk.PhotoImage"] = None
        self._device_labels: Dict[str, str] = {}
        self._destroyed = False

        self.window = tk.Toplevel(parent)
        self.window.title("Image OCR")
        self.window.transient(parent)
        self.window.protocol("WM_DELETE_WINDOW", self._on_close_requested)
        self._build_ui()

        self._detach_notifier = notifier.attach(self._status_label)
        self._unsubscribe_state = session.subscribe(self._render_state)
        self._unsubscribe_frames = session.streams.surface.subscribe(self._on_frame)

    # ------------------------------------------------------------------
    # Layout

    def _build_ui(self) -> None:
        main = ttk.Frame(self.window, padding="12")
        main.pack(fill=tk.BOTH, expand=True)

        ttk.Label(main, text="Image OCR", font=("TkDefaultFont", 14, "bold")).pack(anchor="w", pady=(0, 8))

        mode_row = ttk.Frame(main)
        mode_row.pack(fill=tk.X)
        ttk.Label(mode_row, text="Source:").pack(side=tk.LEFT)
        self._modes = list(AcquisitionMode)
        self._mode_var = tk.StringVar(value=AcquisitionMode.LOCAL_FILE.label)
        self._mode_combo = ttk.Combobox(
            mode_row,
            textvariable=self._mode_var,
            values=[mode.label for mode in self._modes],
            state="readonly",
            width=20,
        )
        self._mode_combo.pack(side=tk.LEFT, padx=(6, 0))
        self._mode_combo.bind("<<ComboboxSelected>>", self._on_mode_selected)

        self._controls = ttk.Frame(main)
        self._controls.pack(fill=tk.BOTH, expand=True, pady=(10, 0))

        # Local file
        self._file_frame = ttk.Frame(self._controls)
        ttk.Button(self._file_frame, text="Choose image...", command=self._on_choose_file).pack(side=tk.LEFT)

        # Remote URL
        self._url_frame = ttk.Frame(self._controls)
        self._url_var = tk.StringVar()
        self._url_entry = ttk.Entry(self._url_frame, textvariable=self._url_var, width=48)
        self._url_entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self._url_entry.bind("<Return>", lambda _event: self._on_submit_url())
        self._url_entry.bind("<FocusIn>", self._clear_placeholder)
        self._url_entry.bind("<FocusOut>", self._restore_placeholder)
        self._restore_placeholder()
        ttk.Button(self._url_frame, text="Submit", command=self._on_submit_url).pack(side=tk.LEFT, padx=(6, 0))

        # Live capture
        self._live_frame = ttk.Frame(self._controls)
        device_row = ttk.Frame(self._live_frame)
        device_row.pack(fill=tk.X)
        ttk.Label(device_row, text="Device:").pack(side=tk.LEFT)
        self._device_var = tk.StringVar()
        self._device_combo = ttk.Combobox(device_row, textvariable=self._device_var, state="readonly", width=40)
        self._device_combo.pack(side=tk.LEFT, padx=(6, 0), fill=tk.X, expand=True)
        self._device_combo.bind("<<ComboboxSelected>>", self._on_device_selected)
        ttk.Button(device_row, text="Rescan", command=self._on_rescan).pack(side=tk.LEFT, padx=(6, 0))

        self._canvas = tk.Canvas(
            self._live_frame,
            width=PREVIEW_SIZE[0],
            height=PREVIEW_SIZE[1],
            background="black",
            highlightthickness=0,
        )
        self._canvas.pack(fill=tk.BOTH, expand=True, pady=(8, 8))
        self._capture_button = ttk.Button(self._live_frame, text="Capture", command=self._on_capture)
        self._capture_button.pack(anchor="e")

        self._status_label = ttk.Label(main, text="", wraplength=PREVIEW_SIZE[0])
        self._status_label.pack(fill=tk.X, pady=(10, 0))

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> None:
        await self._session.refresh_devices()
        self._preview_task = asyncio.create_task(self._preview_loop())

    async def _preview_loop(self) -> None:
        while not self._session.is_closed:
            try:
                await self._session.refresh_preview()
            except Exception as exc:
                self._logger.warning("Preview refresh failed: %s", exc)
            await asyncio.sleep(PREVIEW_INTERVAL)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._preview_task is not None:
            self._preview_task.cancel()
        self._unsubscribe_frames()
        self._unsubscribe_state()
        self._detach_notifier()
        try:
            self.window.destroy()
        except tk.TclError:
            pass

    def lift(self) -> None:
        self.window.deiconify()
        self.window.lift()
        self.window.focus_set()

    @property
    def session(self) -> CaptureSession:
        return self._session

    @property
    def is_open(self) -> bool:
        return not self._destroyed

    def _schedule(self, coro: Coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # User events

    def _on_mode_selected(self, _event=None) -> None:
        index = self._mode_combo.current()
        if 0 <= index < len(self._modes):
            self._schedule(self._session.select_mode(self._modes[index]))

    def _on_device_selected(self, _event=None) -> None:
        index = self._device_combo.current()
        devices = self._session.state.devices
        if 0 <= index < len(devices):
            self._schedule(self._session.select_device(devices[index].id))

    def _on_rescan(self) -> None:
        self._schedule(self._session.refresh_devices())

    def _on_choose_file(self) -> None:
        path = filedialog.askopenfilename(parent=self.window, title="Choose image", filetypes=IMAGE_FILETYPES)
        # Cancelled dialogs return "" (or () on some platforms)
        self._schedule(self._session.submit_file(path or None))

    def _on_submit_url(self) -> None:
        url = self._url_var.get()
        if url == URL_PLACEHOLDER:
            url = ""
        self._schedule(self._session.submit_url(url))

    def _on_capture(self) -> None:
        self._schedule(self._session.capture())

    def _on_close_requested(self) -> None:
        self._schedule(self._session.close())

    def _clear_placeholder(self, _event=None) -> None:
        if self._url_var.get() == URL_PLACEHOLDER:
            self._url_var.set("")
            self._url_entry.configure(foreground="")

    def _restore_placeholder(self, _event=None) -> None:
        if not self._url_var.get():
            self._url_var.set(URL_PLACEHOLDER)
            self._url_entry.configure(foreground="grey")

    # ------------------------------------------------------------------
    # Rendering

    def _render_state(self, state: SelectorState) -> None:
        if self._destroyed:
            return
        if state.closed:
            self.destroy()
            return

        visibility = state.visibility
        for frame, visible in (
            (self._file_frame, visibility.file_picker),
            (self._url_frame, visibility.url_input),
            (self._live_frame, visibility.device_picker),
        ):
            if visible:
                frame.pack(fill=tk.BOTH, expand=True)
            else:
                frame.pack_forget()

        self._mode_var.set(state.mode.label)

        labels = [device.label for device in state.devices]
        self._device_combo.configure(values=labels)
        selected = state.device(state.selected_device)
        self._device_var.set(selected.label if selected else "")

        self._capture_button.configure(state="normal" if state.capture_enabled else "disabled")
        if not state.stream_device:
            self._canvas.delete("all")
            self._photo = None

    def _on_frame(self, frame: Optional[CapturedFrame]) -> None:
        if self._destroyed:
            return
        if frame is None:
            self._canvas.delete("all")
            self._photo = None
            return
        self._render_frame(frame)

    def _render_frame(self, frame: CapturedFrame) -> None:
        try:
            # BGR to RGB for PIL
            img = Image.fromarray(frame.data[:, :, ::-1])

            canvas_w = self._canvas.winfo_width()
            canvas_h = self._canvas.winfo_height()
            if canvas_w > 1 and canvas_h > 1:
                img_w, img_h = img.size
                scale = min(canvas_w / img_w, canvas_h / img_h)
                new_w, new_h = int(img_w * scale), int(img_h * scale)
                if new_w > 0 and new_h > 0:
                    img = img.resize((new_w, new_h), Image.Resampling.BILINEAR)

            self._photo = ImageTk.PhotoImage(img)
            x = canvas_w // 2 if canvas_w > 1 else 0
            y = canvas_h // 2 if canvas_h > 1 else 0
            self._canvas.delete("all")
            self._canvas.create_image(x, y, image=self._photo, anchor="center")
        except Exception as e:
            if frame.frame_number <= 3:
                self._logger.debug("Frame render error: %s", e)


__all__ = ["CaptureDialog"]
