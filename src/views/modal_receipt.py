from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer

from api.schemas import TransactionRequest, TransactionResult
from utils.pure import format_yen, generate_markdown_table


class ReceiptModal(ModalScreen[None]):
    """
    Purchase confirmation. Totals come from the backend's result; the lines
    are the ones that were submitted.
    """

    def __init__(self, request: TransactionRequest, result: TransactionResult):
        super().__init__()
        self._request = request
        self._result = result

    def compose(self) -> ComposeResult:
        with Vertical(id="div-receipt"):
            yield Label("Thank you! Please come again!", id="label-receipt-title")
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label(
                f"Total {format_yen(self._result.total_price)} "
                f"(excl. tax {format_yen(self._result.total_price_ex_tax)})",
                id="label-receipt-total",
            )
            with Horizontal():
                yield Button("OK", id="btn-receipt-ok", variant="primary")

    async def on_mount(self):
        rows = [
            [ln.name, format_yen(ln.unit_price), ln.count, format_yen(ln.unit_price * ln.count)]
            for ln in self._request.lines
        ]
        md = "### Receipt\n\n" + generate_markdown_table(
            ["Product", "Unit Price", "Qty", "Subtotal"], rows, ["l", "r", "c", "r"]
        )
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#btn-receipt-ok").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-receipt-ok")
    def handle_ok(self):
        self.dismiss(None)
