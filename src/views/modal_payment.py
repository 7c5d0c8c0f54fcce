from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

from api.models import CardDetails
from services.checkout import CheckoutFlow, CheckoutState
from utils.pure import generate_markdown_table, resolve_option


def parse_expiry(text: str) -> Optional[tuple[int, int]]:
    """ "04/27" or "04/2027" -> (4, 2027); None if malformed."""
    month, sep, year = text.strip().partition("/")
    if not sep or not month.isdigit() or not year.isdigit():
        return None
    m, y = int(month), int(year)
    if len(year) == 2:
        y += 2000
    if not 1 <= m <= 12:
        return None
    return m, y


class PaymentModal(ModalScreen[bool]):
    """
    Card form bound to the flow's payment intent. Card details go to the
    payment provider only. Returns True once the order is placed.
    """

    def __init__(self, flow: CheckoutFlow):
        super().__init__()
        self.flow = flow

    def compose(self) -> ComposeResult:
        with Vertical(id="div-payment"):
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Card Number")
            yield Input(placeholder="4242 4242 4242 4242", id="input-card-number")
            with Horizontal():
                with Vertical():
                    yield Label("Expiry (MM/YY)")
                    yield Input(placeholder="12/30", id="input-card-exp")
                with Vertical():
                    yield Label("CVC")
                    yield Input(placeholder="123", password=True, id="input-card-cvc")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Confirm Payment", id="btn-submit", variant="primary")

    async def on_mount(self):
        headers = ["Product", "Size", "Color", "Unit Price", "Quantity", "Total"]
        rows = [
            [
                item.product.name,
                resolve_option(item.size, item.product.sizes),
                resolve_option(item.color, item.product.colors),
                f"{item.product.price:.2f}",
                item.quantity,
                f"{item.line_total:.2f}",
            ]
            for item in self.flow.items
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "c", "c", "r", "c", "r"])
        md += f"\n\n**Total:** ${self.flow.total:.2f}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-card-number").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.handle_quit()

    def _read_card(self) -> Optional[CardDetails]:
        number_input = self.query_one("#input-card-number", Input)
        exp_input = self.query_one("#input-card-exp", Input)
        cvc_input = self.query_one("#input-card-cvc", Input)

        number = number_input.value.replace(" ", "")
        if not number.isdigit() or not 12 <= len(number) <= 19:
            number_input.add_class("-invalid")
            number_input.focus()
            self.notify("Card number is invalid.", severity="error")
            return None
        expiry = parse_expiry(exp_input.value)
        if expiry is None:
            exp_input.add_class("-invalid")
            exp_input.focus()
            self.notify("Expiry must be MM/YY.", severity="error")
            return None
        cvc = cvc_input.value.strip()
        if not cvc.isdigit() or len(cvc) not in (3, 4):
            cvc_input.add_class("-invalid")
            cvc_input.focus()
            self.notify("CVC is invalid.", severity="error")
            return None
        return CardDetails(number=number, exp_month=expiry[0], exp_year=expiry[1], cvc=cvc)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        card = self._read_card()
        if card is None:
            return

        submit = self.query_one("#btn-submit", Button)
        submit.disabled = True
        submit.label = "Processing..."
        await self.flow.confirm_payment(card)
        self.dismiss(self.flow.state == CheckoutState.SUCCESS)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        if self.flow.state == CheckoutState.AWAITING_PAYMENT:
            self.flow.reset()
            self.notify("Payment cancelled.", severity="warning")
        self.dismiss(False)
