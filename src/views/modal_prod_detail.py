import asyncio
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from api.client import ApiError
from api.models import CartItem, Product, UserProfile, same_id
from utils.messages import ProductsChangedMessage, WishlistChangedMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal
from views.modal_product_form import ProductFormModal
from views.modal_seller import SellerDetailModal


def product_markdown(product: Product, seller: Optional[UserProfile]) -> str:
    rows = [
        ["Price", f"${product.price:.2f}"],
        ["Available", "Yes" if product.available else "No"],
        ["Stock", product.stock],
        ["Category", product.category or "-"],
        ["Sizes", ", ".join(product.sizes) or "-"],
        ["Colors", ", ".join(product.colors) or "-"],
        ["Seller", seller.name if seller else "Name not available"],
    ]
    md = f"### {product.name}\n\n{product.description}\n\n"
    md += generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
    if product.images:
        md += "\n\n**Images**\n\n" + "\n".join(f"- {url}" for url in product.images)
    return md


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, options and cart/wishlist actions
    Will return true if cart changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id

        self._prod: Optional[Product] = None
        self._seller: Optional[UserProfile] = None
        self._cart_entry: Optional[CartItem] = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("Loading...", show_table_of_contents=False)
            with Vertical(id="div-purchase"):
                yield Label("Size")
                yield Select([], prompt="none", id="select-size")
                yield Label("Color")
                yield Select([], prompt="none", id="select-color")
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Button("Add to Cart", id="btn-addcart", variant="primary")
                yield Button("Add to Wishlist", id="btn-wishlist")
                yield Button("Seller Info", id="btn-seller")
            with Vertical(id="div-owner"):
                yield Button("Edit Product", id="btn-edit", variant="primary")
                yield Button("Delete Product", id="btn-delete", variant="error")
        with Horizontal(id="hort-detail-footer"):
            yield Button("Go Back", id="btn-quit")

    def on_mount(self):
        self.query_one("#div-owner").add_class("hidden")
        self.load_product()

    @work(exclusive=True)
    async def load_product(self) -> None:
        backend = self.app.state.backend
        try:
            self._prod, cart = await asyncio.gather(
                backend.catalog.get_product(self._product_id),
                backend.orders.fetch_cart(),
            )
        except ApiError as e:
            await self.query_one(MarkdownViewer).document.update(f"**{e.message}**")
            self.query_one("#div-purchase").add_class("hidden")
            return

        if self.app.state.cart is not None:
            await self.app.state.cart.replace(cart.product_ids())
        self._cart_entry = next(
            (i for i in cart.items if same_id(i.product.id, self._prod.id)), None
        )

        if self._prod.seller:
            try:
                self._seller = await backend.profile.seller_profile(self._prod.seller)
            except ApiError:
                self._seller = None

        await self.query_one(MarkdownViewer).document.update(
            product_markdown(self._prod, self._seller)
        )
        self._render_controls()

    def _render_controls(self) -> None:
        prod = self._prod
        if same_id(prod.seller, self.app.state.uid):
            # sellers manage their own listing instead of buying it
            self.query_one("#div-purchase").add_class("hidden")
            self.query_one("#div-owner").remove_class("hidden")
            return

        size_select = self.query_one("#select-size", Select)
        size_select.set_options([(s, s) for s in prod.sizes])
        size_select.disabled = not prod.sizes
        color_select = self.query_one("#select-color", Select)
        color_select.set_options([(c, c) for c in prod.colors])
        color_select.disabled = not prod.colors

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(prod.stock, 1))
        ]

        entry = self._cart_entry
        btn_cart = self.query_one("#btn-addcart", Button)
        if entry:
            if entry.size in prod.sizes:
                size_select.value = entry.size
            if entry.color in prod.colors:
                color_select.value = entry.color
            self.order_qty = entry.quantity
            btn_cart.label = "Remove from Cart"
            btn_cart.variant = "warning"
        elif prod.stock < 1 or not prod.available:
            btn_cart.label = "Out of Stock"
            btn_cart.disabled = True
        else:
            btn_cart.label = "Add to Cart"
            btn_cart.variant = "primary"

        wishlist = self.app.state.wishlist
        in_wishlist = wishlist is not None and prod.id in wishlist
        self.query_one("#btn-wishlist", Button).label = (
            "Remove from Wishlist" if in_wishlist else "Add to Wishlist"
        )
        self.watch_order_qty(self.order_qty)
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int):
        stock = self._prod.stock if self._prod else qty
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= stock
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    def _selected(self, select_id: str) -> Optional[str]:
        select = self.query_one(select_id, Select)
        return None if select.is_blank() else select.value

    @on(Button.Pressed, "#btn-addcart")
    @work(group="cart")
    async def handle_addcart(self):
        cart = self.app.state.cart
        if cart is None:
            self.notify("Please login to manage cart", severity="error")
            return
        try:
            now_in = await cart.toggle(
                self._prod,
                quantity=self.order_qty,
                size=self._selected("#select-size"),
                color=self._selected("#select-color"),
            )
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        if now_in is None:
            return

        self.app.notify("Item added to cart." if now_in else "Item removed from cart.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-wishlist")
    @work(group="wishlist")
    async def handle_wishlist(self):
        wishlist = self.app.state.wishlist
        if wishlist is None:
            return
        try:
            now_in = await wishlist.toggle(self._prod)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        if now_in is None:
            return
        self.query_one("#btn-wishlist", Button).label = (
            "Remove from Wishlist" if now_in else "Add to Wishlist"
        )
        self.app.post_message(WishlistChangedMessage())

    @on(Button.Pressed, "#btn-seller")
    def handle_seller(self):
        if self._prod and self._prod.seller:
            self.app.push_screen(SellerDetailModal(self._prod.seller))
        else:
            self.notify("Seller not available.", severity="warning")

    @on(Button.Pressed, "#btn-edit")
    @work()
    async def handle_edit(self):
        if await self.app.push_screen_wait(ProductFormModal(self._prod)):
            self.app.post_message(ProductsChangedMessage())
            self.load_product()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {self._prod.name}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        try:
            await self.app.state.backend.catalog.delete_product(self._prod.id)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.app.notify("Product deleted successfully.")
        self.app.post_message(ProductsChangedMessage())
        self.dismiss(False)
