from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer, Select

from api.client import ApiError
from api.models import Order, OrderStatus
from utils.pure import order_markdown


class OrderStatusModal(ModalScreen[bool]):
    """
    Order detail with a status picker. Returns True if the status was changed.
    """

    def __init__(self, order: Order) -> None:
        super().__init__()
        self._order = order

    def compose(self) -> ComposeResult:
        with Vertical(id="div-order-status"):
            yield MarkdownViewer(
                order_markdown(self._order), show_table_of_contents=False
            )
            yield Label("Status")
            yield Select(
                [(s.label, s) for s in OrderStatus],
                value=self._order.status,
                allow_blank=False,
                id="select-status",
            )
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Update Status", id="btn-submit", variant="primary")

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        status: OrderStatus = self.query_one("#select-status", Select).value
        if status == self._order.status:
            self.notify("Nothing to update.", severity="warning")
            return
        try:
            await self.app.state.backend.orders.update_status(
                self._order.number, status
            )
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.app.notify(f"Order #{self._order.number} marked {status.label}.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)
