from functools import partial
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db import database
from pos.client import PosClient
from scanner.camera import open_camera
from scanner.session import ScanSession
from utils.config import Settings, load_settings
from utils.errors import CameraUnavailableError
from utils.logger import get_logger
from utils.messages import QuitRequestedMessage, TransactionJournaledMessage
from views.scr_history import HistoryScreen
from views.scr_purchase import PurchaseScreen

_logger = get_logger(__name__)


class PosApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "purchase": PurchaseScreen,
        "history": HistoryScreen,
    }

    MODE_TITLES = {
        "purchase": "Register",
        "history": "Transaction History",
    }

    CSS_PATH = "styles/pos.tcss"

    settings: Settings
    client: PosClient

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[PosClient] = None,
    ):
        super().__init__()
        self.settings = settings or load_settings()
        self.client = client or PosClient(
            self.settings.proxy_url, self.settings.http_timeout
        )
        self._decoder = None
        database.configure(self.settings.db_path)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        _logger.info(
            f"Register {self.settings.store_code}/{self.settings.pos_number} "
            f"using proxy {self.settings.proxy_url}"
        )
        await self.switch_mode("purchase")

    def new_scan_session(self) -> ScanSession:
        """Factory handed to the scanner modal, one session per activation."""
        if self._decoder is None:
            try:
                # pyzbar loads the native zbar library on import
                from scanner.decoder import FrameDecoder

                self._decoder = FrameDecoder(self.settings.scan_formats)
            except (ImportError, ValueError) as exc:
                raise CameraUnavailableError(f"Barcode decoder unavailable: {exc}") from exc
        return ScanSession(
            partial(open_camera, self.settings.camera_index), self._decoder
        )

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(TransactionJournaledMessage)
    def handle_journaled(self, message: TransactionJournaledMessage) -> None:
        _logger.info(f"Transaction #{message.txn_no} journaled")

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.client.aclose()
        self.exit()


def run() -> None:
    """Entry point for `pos`."""
    PosApp().run()


if __name__ == "__main__":
    run()
