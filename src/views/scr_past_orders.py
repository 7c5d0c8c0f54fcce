from datetime import datetime
from math import ceil
from typing import Dict, List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api.client import ApiError
from api.models import Order
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import order_markdown
from utils.settings import Settings
from views.base_screen import BaseScreen


class PastOrdersScreen(BaseScreen):
    """
    Customers can browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing selected order details.
    - Orders table below (newest first), Settings.PAGE_SIZE per page with Prev/Next.

    The order service returns the full history in one call; paging is local.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
        Binding("escape", "noop", "Back", show=True),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._by_id: Dict[str, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Total ($)")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        order = self._by_id.get(event.row_key.value) if event.row_key else None
        self._render_detail(order)

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._refresh_buttons()
        self._render_page()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        try:
            orders = await self.backend.orders.list_orders()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self._orders = sorted(
            orders, key=lambda o: o.created_at or datetime.min, reverse=True
        )
        self._by_id = {o.id: o for o in self._orders}
        self.page_cnt = max(ceil(len(self._orders) / Settings.PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        if self.page_idx != 1:
            self.page_idx = 1  # watcher re-renders
        else:
            self._refresh_buttons()
            self._render_page()

    def _render_page(self) -> None:
        start = (self.page_idx - 1) * Settings.PAGE_SIZE
        page = self._orders[start : start + Settings.PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.number,
                o.created_at.strftime("%Y-%m-%d") if o.created_at else "-",
                o.status.label,
                sum(line.quantity for line in o.lines),
                f"{o.amount:.2f}",
                key=o.id,
            )
        if page:
            table.move_cursor(row=0)
            self._render_detail(page[0])
        else:
            self._render_detail(None)

    def _render_detail(self, order: Order | None) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            md = (
                "### Select an order to view its details."
                if self._orders
                else "### You have not placed any orders yet."
            )
        else:
            md = order_markdown(order)
        viewer.document.update(md)
