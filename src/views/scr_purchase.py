import sqlite3

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Label, Rule

from api.schemas import TransactionRequest, TransactionResult
from db import journal
from pos.session import PurchaseSession
from utils.errors import (
    ItemValidationError,
    ProductNotFoundError,
    TransientError,
)
from utils.logger import get_logger
from utils.messages import PurchaseListChangedMessage, TransactionJournaledMessage
from utils.pure import format_yen
from views.base_screen import BaseScreen
from views.modal_receipt import ReceiptModal
from views.modal_scanner import ScannerModal

_logger = get_logger(__name__)

MSG_NOT_FOUND = "Sorry, we don't carry that product!"
MSG_LOOKUP_FAILED = "Failed to fetch product information."
MSG_PURCHASE_FAILED = "Purchase failed. Please try again."


class PurchaseScreen(BaseScreen):
    """
    Scan or type a product, add it to the purchase list, then purchase.

    All page state lives in a PurchaseSession; the widgets only mirror it.
    """

    def __init__(self) -> None:
        super().__init__()
        self.session = PurchaseSession.from_settings(self.app.settings)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-purchase"):
            with Vertical(id="div-input"):
                yield Button("Scan (Camera)", id="btn-scan", variant="primary")
                yield Rule(line_style="dashed")
                yield Label("Barcode")
                with Horizontal(id="hort-barcode"):
                    yield Input(placeholder="12345678901", id="input-barcode")
                    yield Button("Look Up", id="btn-lookup")
                yield Label("Product Name")
                yield Input(placeholder="おーいお茶", id="input-name")
                yield Label("Price")
                yield Input(placeholder="150", id="input-price")
                yield Button("Add", id="btn-add", variant="primary")
            with Vertical(id="div-list"):
                yield Label("Purchase List", id="label-list-title")
                yield DataTable(id="table-items")
                yield Label("No items to purchase", id="label-empty")
                yield Label("Total: ¥0", id="label-total")
                yield Button("Purchase", id="btn-purchase", variant="success")

    def on_mount(self) -> None:
        table = self.query_one("#table-items", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Qty", "Unit Price", "Subtotal")
        self._refresh_list()

    # ---------------------------
    # widgets <-> session
    # ---------------------------

    def _read_form(self) -> None:
        self.session.barcode = self.query_one("#input-barcode", Input).value
        self.session.name = self.query_one("#input-name", Input).value
        self.session.price = self.query_one("#input-price", Input).value

    def _write_form(self) -> None:
        self.query_one("#input-barcode", Input).value = self.session.barcode
        self.query_one("#input-name", Input).value = self.session.name
        self.query_one("#input-price", Input).value = self.session.price

    def _sync_controls(self) -> None:
        busy = self.session.busy
        for widget_id in (
            "#btn-scan",
            "#btn-lookup",
            "#btn-add",
            "#input-barcode",
            "#input-name",
            "#input-price",
        ):
            self.query_one(widget_id).disabled = busy
        self.query_one("#btn-scan", Button).label = (
            "Loading..." if self.session.is_loading else "Scan (Camera)"
        )
        purchase_btn = self.query_one("#btn-purchase", Button)
        purchase_btn.disabled = not self.session.can_purchase
        purchase_btn.label = "Processing..." if self.session.is_purchasing else "Purchase"

    @on(PurchaseListChangedMessage)
    def _refresh_list(self) -> None:
        table = self.query_one("#table-items", DataTable)
        table.clear()
        for item in self.session.items:
            table.add_row(
                item.name,
                f"×{item.quantity}",
                format_yen(item.unit_price),
                format_yen(item.line_total),
                key=item.id,
            )
        self.query_one("#label-empty").display = not self.session.items
        self.query_one("#label-total", Label).update(
            f"Total: {format_yen(self.session.total)}"
        )
        self._sync_controls()

    # ---------------------------
    # Scan & lookup
    # ---------------------------

    @on(Button.Pressed, "#btn-scan")
    @work(exclusive=True, group="scan")
    async def handle_scan(self) -> None:
        if self.session.busy:
            return
        barcode = await self.app.push_screen_wait(
            ScannerModal(self.app.new_scan_session)
        )
        if barcode:
            await self._lookup(barcode)

    @on(Button.Pressed, "#btn-lookup")
    @on(Input.Submitted, "#input-barcode")
    @work(exclusive=True, group="lookup")
    async def handle_lookup(self) -> None:
        code = self.query_one("#input-barcode", Input).value.strip()
        if not code:
            self.notify("Enter or scan a barcode first.", severity="warning")
            return
        await self._lookup(code)

    async def _lookup(self, code: str) -> None:
        if self.session.busy:
            return
        self._read_form()
        self.session.begin_lookup(code)
        self._write_form()
        self._sync_controls()
        try:
            product = await self.app.client.lookup_product(code)
        except ProductNotFoundError:
            self.session.fail_lookup()
            self.notify(MSG_NOT_FOUND, severity="warning")
        except (TransientError, ItemValidationError) as exc:
            _logger.error(f"Error fetching product {code!r}: {exc}")
            self.session.fail_lookup()
            self.notify(MSG_LOOKUP_FAILED, severity="error")
        else:
            self.session.apply_lookup(product)
        finally:
            self._write_form()
            self._sync_controls()
        if self.session.name:
            self.query_one("#btn-add").focus()

    # ---------------------------
    # Purchase list
    # ---------------------------

    @on(Button.Pressed, "#btn-add")
    @on(Input.Submitted, "#input-price")
    def handle_add(self) -> None:
        if self.session.busy:
            return
        self._read_form()
        try:
            item = self.session.add_item()
        except ItemValidationError as exc:
            self.notify(str(exc), severity="error")
            return
        self._write_form()
        self.post_message(PurchaseListChangedMessage())
        self.notify(f"Added {item.name} (×{item.quantity})")

    # ---------------------------
    # Purchase
    # ---------------------------

    @on(Button.Pressed, "#btn-purchase")
    @work(exclusive=True, group="purchase")
    async def handle_purchase(self) -> None:
        if not self.session.items:
            self.notify("There is nothing to purchase.", severity="warning")
            return
        if not self.session.can_purchase:
            return

        request, key = self.session.begin_purchase()
        self._sync_controls()
        try:
            result = await self.app.client.submit_transaction(request, key)
        except TransientError as exc:
            _logger.error(f"Purchase error: {exc}")
            self.session.fail_purchase()
            self._sync_controls()
            self.notify(MSG_PURCHASE_FAILED, severity="error")
            return

        self.session.complete_purchase(result)
        self.post_message(PurchaseListChangedMessage())
        self._journal(key, request, result)
        await self.app.push_screen_wait(ReceiptModal(request, result))

    @work(group="journal")
    async def _journal(
        self, key: str, request: TransactionRequest, result: TransactionResult
    ) -> None:
        try:
            txn_no = await journal.record_transaction(key, request, result)
        except (sqlite3.Error, OSError) as exc:
            _logger.error(f"Could not journal transaction {key}: {exc}")
            return
        self.app.post_message(TransactionJournaledMessage(txn_no))
