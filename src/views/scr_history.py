from math import ceil
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from db import journal
from db.models import JournalEntry, JournalLine
from utils.pure import format_yen, generate_markdown_table
from views.base_screen import BaseScreen

PAGE_SIZE = 10


class HistoryScreen(BaseScreen):
    """
    Transactions confirmed on this register, newest first, with line detail
    for the highlighted row.
    """

    BINDINGS = [
        Binding("left", "prev_page", "Prev Page", show=True),
        Binding("right", "next_page", "Next Page", show=True),
    ]

    page_idx = reactive(1, init=False)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._entries: List[JournalEntry] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-txn-detail", show_table_of_contents=False)
            yield DataTable(id="table-txns")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Label("1 / 1", id="label-page")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("No.", "Date", "Store", "POS", "Total", "Excl. Tax")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    def handle_refresh(self) -> None:
        self._load_page(self.page_idx)

    def watch_page_idx(self, new: int) -> None:
        self._load_page(new)

    @on(Button.Pressed, "#btn-prev")
    def action_prev_page(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def action_next_page(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @work(exclusive=True, group="history")
    async def _load_page(self, page: int) -> None:
        entries, total = await journal.list_transactions(page, PAGE_SIZE)
        table = self.query_one(DataTable)
        table.clear()
        for e in entries:
            table.add_row(
                e.txn_no,
                e.created_at.strftime("%Y-%m-%d %H:%M"),
                e.store_code,
                e.pos_number,
                format_yen(e.total_price),
                format_yen(e.total_price_ex_tax),
            )
        self._entries = entries
        self.page_cnt = max(ceil(total / PAGE_SIZE), 1)
        self.query_one("#label-page", Label).update(f"{self.page_idx} / {self.page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        if entries:
            table.move_cursor(row=0)
            self._load_detail(entries[0].txn_no)
        else:
            self._render_detail(None, [])

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if 0 <= event.cursor_row < len(self._entries):
            self._load_detail(self._entries[event.cursor_row].txn_no)

    @work(exclusive=True, group="detail")
    async def _load_detail(self, txn_no: int) -> None:
        entry, lines = await journal.get_transaction(txn_no)
        self._render_detail(entry, lines)

    def _render_detail(self, entry: JournalEntry | None, lines: List[JournalLine]) -> None:
        viewer = self.query_one("#md-txn-detail", MarkdownViewer)
        if not entry:
            viewer.document.update("### No transactions yet.")
            return
        header = (
            f"### Transaction #{entry.txn_no}\n"
            f"Date: {entry.created_at:%Y-%m-%d %H:%M:%S}  \n"
            f"Store {entry.store_code} / POS {entry.pos_number}\n\n"
        )
        rows = [
            [ln.name, ln.code, ln.count, format_yen(ln.unit_price), format_yen(ln.unit_price * ln.count)]
            for ln in lines
        ]
        table = generate_markdown_table(
            ["Product", "Barcode", "Qty", "Unit Price", "Subtotal"],
            rows,
            ["l", "l", "c", "r", "r"],
        )
        footer = (
            f"\n\n**Total:** {format_yen(entry.total_price)} "
            f"(excl. tax {format_yen(entry.total_price_ex_tax)})"
        )
        viewer.document.update(header + table + footer)
