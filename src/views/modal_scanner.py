from typing import Callable, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, ContentSwitcher, Input, Label, Static

from scanner.session import ScanSession
from utils.errors import CameraUnavailableError, DecodeError
from utils.logger import get_logger

_logger = get_logger(__name__)

SCAN_FRAME = "\n".join(
    [
        "┏━━━━                            ━━━━┓",
        "┃                                    ┃",
        "              ─ ─ ─ ─ ─ ─             ",
        "┃                                    ┃",
        "┗━━━━                            ━━━━┛",
    ]
)


class ScannerModal(ModalScreen[Optional[str]]):
    """
    Camera barcode scanner.

    Scans until the first decoded symbol, releases the camera, then lets the
    cashier edit and confirm the value, or rescan. Dismisses with the confirmed
    barcode, or None when closed. The camera is released on every way out.
    """

    BINDINGS = [Binding("escape", "cancel", "Close", show=True)]

    def __init__(self, session_factory: Callable[[], ScanSession]) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._session: Optional[ScanSession] = None

    def compose(self) -> ComposeResult:
        with Container(id="div-scanner"):
            yield Label("Scan Barcode", id="label-scanner-title")
            with ContentSwitcher(initial="pane-scanning", id="switcher-scanner"):
                with Vertical(id="pane-scanning"):
                    yield Static(SCAN_FRAME, id="static-scan-frame")
                    yield Label("Align the barcode inside the frame")
                    yield Label("", id="label-frames")
                    with Horizontal():
                        yield Button("Cancel", id="btn-scan-cancel")
                with Vertical(id="pane-confirm"):
                    yield Label("Scanned code (edit if misread)")
                    yield Input(id="input-scanned")
                    with Horizontal():
                        yield Button("Cancel", id="btn-confirm-cancel")
                        yield Button("Rescan", id="btn-rescan")
                        yield Button("Use Code", id="btn-use-code", variant="primary")
                with Vertical(id="pane-decode-error"):
                    yield Label("", id="label-decode-error")
                    with Horizontal():
                        yield Button("Close", id="btn-decode-close")
                        yield Button("Retry", id="btn-retry", variant="primary")
                with Vertical(id="pane-camera-error"):
                    yield Label("", id="label-camera-error")
                    with Horizontal():
                        yield Button("Close", id="btn-camera-close", variant="primary")

    def on_mount(self) -> None:
        self.set_interval(0.5, self._refresh_frame_count)
        self._start_scan()

    def on_unmount(self) -> None:
        self._stop_scan()

    def _refresh_frame_count(self) -> None:
        if self._session is not None and self._session.camera_active:
            self.query_one("#label-frames", Label).update(
                f"Scanning... {self._session.frames_scanned} frames"
            )

    def _show(self, pane: str) -> None:
        self.query_one("#switcher-scanner", ContentSwitcher).current = pane

    def _start_scan(self) -> None:
        self._stop_scan()
        self._show("pane-scanning")
        self.query_one("#label-frames", Label).update("Starting camera...")
        try:
            self._session = self._session_factory()
        except CameraUnavailableError as exc:
            self._show_camera_error(exc)
            return
        self._run_scan(self._session)

    def _show_camera_error(self, exc: Exception) -> None:
        _logger.error(f"Camera access error: {exc}")
        self.query_one("#label-camera-error", Label).update(str(exc))
        self._show("pane-camera-error")

    def _stop_scan(self) -> None:
        if self._session is not None:
            self._session.close()
        self.workers.cancel_group(self, "scan")

    @work(exclusive=True, group="scan")
    async def _run_scan(self, session: ScanSession) -> None:
        try:
            payload = await session.run()
        except CameraUnavailableError as exc:
            self._show_camera_error(exc)
            return
        except DecodeError as exc:
            _logger.error(f"Barcode scan error: {exc}")
            self.query_one("#label-decode-error", Label).update(
                f"Scanning failed: {exc}"
            )
            self._show("pane-decode-error")
            return

        # a session replaced by rescan, or closed, has nothing to deliver
        if payload is None or session is not self._session:
            return
        scanned = self.query_one("#input-scanned", Input)
        scanned.value = payload
        self._show("pane-confirm")
        scanned.focus()

    def _close(self, barcode: Optional[str]) -> None:
        self._stop_scan()
        self.dismiss(barcode)

    @on(Button.Pressed, "#btn-use-code")
    @on(Input.Submitted, "#input-scanned")
    def handle_use_code(self) -> None:
        barcode = self.query_one("#input-scanned", Input).value.strip()
        if not barcode:
            self.notify("Barcode is empty. Rescan or type it in.", severity="warning")
            return
        self._close(barcode)

    @on(Button.Pressed, "#btn-rescan")
    @on(Button.Pressed, "#btn-retry")
    def handle_rescan(self) -> None:
        self._start_scan()

    @on(Button.Pressed, "#btn-scan-cancel")
    @on(Button.Pressed, "#btn-confirm-cancel")
    @on(Button.Pressed, "#btn-decode-close")
    @on(Button.Pressed, "#btn-camera-close")
    def action_cancel(self) -> None:
        self._close(None)
