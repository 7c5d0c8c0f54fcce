from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from api.models import NO_OPTION, CartItem
from services.checkout import CheckoutFlow, CheckoutState
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import resolve_option
from utils.settings import Settings
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_payment import PaymentModal
from views.modal_prod_detail import ProdDetailModal


class CheckoutChangedMessage(Message):
    def __init__(self, state: CheckoutState, error: Optional[str]) -> None:
        super().__init__()
        self.state = state
        self.error = error


class CartItemActionEditMessage(Message):
    bubble = True


class CartItemActionRemoveMessage(Message):
    bubble = True


class CartItemRequestMessage(Message):
    """Carries the item a row action applies to up to the screen."""

    def __init__(self, item: CartItem, action: str) -> None:
        super().__init__()
        self.item = item
        self.action = action


class CartItemActionLabel(Label):
    def action_edit(self):
        self.post_message(CartItemActionEditMessage())

    def action_remove(self):
        self.post_message(CartItemActionRemoveMessage())


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()

        self.item = item

    def compose(self):
        prod = self.item.product
        options = " / ".join(
            opt
            for opt in (
                resolve_option(self.item.size, prod.sizes),
                resolve_option(self.item.color, prod.colors),
            )
            if opt != NO_OPTION
        )
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(prod.name, id="label-item-name")
                yield Label(options or "-", id="label-item-options")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
                yield Label(f"${self.item.line_total:.2f}", id="label-item-price")
            with Container(id="div-actions"):
                yield CartItemActionLabel("[@click=edit()]Edit[/]", id="link-item-edit")
                yield CartItemActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    # rows get remounted on every reload, so the work itself runs on the screen
    @on(CartItemActionEditMessage)
    def handle_edit_item(self, event: CartItemActionEditMessage):
        event.stop()
        self.post_message(CartItemRequestMessage(self.item, "edit"))

    @on(CartItemActionRemoveMessage)
    def handle_remove_item(self, event: CartItemActionRemoveMessage):
        event.stop()
        self.post_message(CartItemRequestMessage(self.item, "remove"))


class CartScreen(BaseScreen):
    """
    cart listing plus checkout; all transitions go through CheckoutFlow
    """

    def __init__(self) -> None:
        super().__init__()
        self.flow: Optional[CheckoutFlow] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total Cart Value: $0.00", id="label-cart-total")
        yield Label("", id="label-cart-error")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        self.flow = CheckoutFlow(
            self.backend,
            on_change=lambda flow: self.post_message(
                CheckoutChangedMessage(flow.state, flow.error)
            ),
        )
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def handle_cart_change(self):
        # a newer trigger replaces a running load; checkout is never interrupted
        if self.flow.state.checking_out:
            return
        await self.flow.load()

    @on(CheckoutChangedMessage)
    async def handle_checkout_changed(self, message: CheckoutChangedMessage) -> None:
        state = message.state
        content = self.query_one("#vertscroll-content")
        content.loading = state.busy
        self.query_one("#btn-checkout", Button).disabled = (
            state.busy or not self.flow.items
        )
        self.query_one("#btn-refresh", Button).disabled = state.busy

        error_label = self.query_one("#label-cart-error", Label)
        error_label.update(f"[b red]{message.error}[/]" if message.error else "")

        if state == CheckoutState.LOADED:
            await self._render_items()
        elif state == CheckoutState.AWAITING_PAYMENT:
            self.app.push_screen(PaymentModal(self.flow))
        elif state == CheckoutState.SUCCESS:
            await self._render_items()
            if self.app.state.cart is not None:
                await self.app.state.cart.replace([])
            self.app.notify("Order placed successfully.")
            self.app.post_message(NewOrderMessage())
            self.set_timer(Settings.ORDER_REDIRECT_DELAY, self._goto_orders)
        elif state == CheckoutState.FAILED:
            self.notify(message.error or "Checkout failed.", severity="error")

    async def _render_items(self) -> None:
        items = list(self.flow.items)
        content = self.query_one("#vertscroll-content")
        if [c.item for c in content.children] != items:
            await content.remove_children()
            await content.mount_all([CartItemWidget(item) for item in items])

        content.set_class(not items, "no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Total Cart Value: ${self.flow.total:.2f}"
        )

    async def _goto_orders(self) -> None:
        if self.app.current_mode == "cart":
            self.app.post_message(ModeSwitchedMessage("cart", "past_orders"))
            await self.app.switch_mode("past_orders")

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="checkout")
    async def handle_checkout(self) -> None:
        if not self.flow.items:
            self.app.notify("Cart is empty.", severity="warning")
            return
        await self.flow.place_order()

    @on(CartItemRequestMessage)
    @work(group="cart-item")
    async def handle_item_request(self, message: CartItemRequestMessage) -> None:
        item = message.item
        if message.action == "edit":
            if await self.app.push_screen_wait(ProdDetailModal(item.product.id)):
                self.post_message(CartChangedMessage())
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                f"Do you really want to remove {item.product.name} from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )
        if not remove_confirmed:
            return
        # closing the dialog may have started a reload; the removal still goes
        # ahead and reloads after it
        if self.flow.state.checking_out:
            self.notify("Checkout in progress.", severity="warning")
            return

        await self.flow.remove(item)
        if self.flow.state != CheckoutState.FAILED:
            self.notify("Item removed from cart.", severity="information")
            if self.app.state.cart is not None:
                await self.app.state.cart.replace(i.product.id for i in self.flow.items)
