from typing import Dict, List

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer, Select

from api.client import ApiError
from api.models import Order
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import (
    generate_markdown_table,
    group_revenue,
    status_distribution,
    top_products,
)
from views.base_screen import BaseScreen
from views.modal_order_status import OrderStatusModal

PERIODS = [("Daily", "daily"), ("Weekly", "weekly"), ("Monthly", "monthly")]


def sales_markdown(sales: List[Order], period: str) -> str:
    total = round(sum(s.amount for s in sales), 2)
    avg = total / len(sales) if sales else 0.0
    md = (
        "### Sales Summary\n\n"
        f"- Orders: {len(sales)}\n"
        f"- Total Revenue: ${total:.2f}\n"
        f"- Average Order Value: ${avg:.2f}\n\n"
    )

    revenue = group_revenue(sales, period)
    md += f"#### Revenue ({period})\n\n"
    md += generate_markdown_table(
        ["Period", "Revenue ($)"],
        [[k, f"{v:.2f}"] for k, v in revenue],
        ["l", "r"],
    ) or "_No dated sales yet._"

    md += "\n\n#### Orders by Status\n\n"
    md += generate_markdown_table(
        ["Status", "Orders"],
        [[s, n] for s, n in status_distribution(sales)],
        ["l", "r"],
    ) or "_No sales yet._"

    md += "\n\n#### Top Products\n\n"
    md += generate_markdown_table(
        ["Name", "Units Sold"],
        [[name, n] for name, n in top_products(sales)],
        ["l", "r"],
    ) or "_No sales yet._"
    return md


class SalesReportScreen(BaseScreen):
    """
    Sales insights for the logged-in seller, plus the list of their sales.
    Enter on a sale opens the status editor.
    """

    BINDINGS = [
        Binding("enter", "noop", "Update Status", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._sales: List[Order] = []
        self._by_id: Dict[str, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-report-controls"):
                yield Select(
                    PERIODS, value="monthly", allow_blank=False, id="select-period"
                )
                yield Button("Refresh", id="btn-refresh", variant="primary")
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)
            yield DataTable(id="table-sales")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Amount ($)")

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        try:
            self._sales = await self.backend.orders.seller_sales()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self._by_id = {s.id: s for s in self._sales}
        self._render_table()
        self._render_summary()

    @on(Select.Changed, "#select-period")
    def handle_period_changed(self) -> None:
        self._render_summary()

    def _render_summary(self) -> None:
        period = self.query_one("#select-period", Select).value
        self.query_one("#md-top", MarkdownViewer).document.update(
            sales_markdown(self._sales, period)
        )

    def _render_table(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for s in self._sales:
            table.add_row(
                s.number,
                s.created_at.strftime("%Y-%m-%d") if s.created_at else "-",
                s.status.label,
                sum(line.quantity for line in s.lines),
                f"{s.amount:.2f}",
                key=s.id,
            )

    def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table:
            self.open_status_editor()

    @work()
    async def open_status_editor(self) -> None:
        table = self.query_one(DataTable)
        if not table.row_count:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        sale = self._by_id.get(row_key.value)
        if sale and await self.app.push_screen_wait(OrderStatusModal(sale)):
            self.handle_reload()
