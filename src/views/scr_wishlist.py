from typing import Dict, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Label

from api.client import ApiError
from api.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage, WishlistChangedMessage
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class WishlistScreen(BaseScreen):
    """
    saved products; enter opens the detail modal, w drops the row
    """

    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
        Binding("w", "remove_highlighted", "Remove ♥", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-wishlist")
        yield Label("", id="label-result-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price ($)", "Stock", "In Cart")
        table.focus()

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(WishlistChangedMessage)
    @on(CartChangedMessage)
    def handle_refresh(self) -> None:
        self.load_wishlist()

    @work(exclusive=True)
    async def load_wishlist(self) -> None:
        try:
            entries = await self.backend.catalog.list_wishlist()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        wishlist = self.app.state.wishlist
        if wishlist is not None:
            await wishlist.replace(w.product.id for w in entries)

        cart = self.app.state.cart
        self._products = {w.product.id: w.product for w in entries}
        table = self.query_one(DataTable)
        table.clear()
        for p in self._products.values():
            table.add_row(
                p.name,
                p.category or "-",
                f"{p.price:.2f}",
                p.stock if p.available else "out",
                "yes" if cart is not None and p.id in cart else "",
                key=p.id,
            )
        self.query_one("#label-result-cnt", Label).update(
            f"{len(self._products)} saved products"
            if self._products
            else "Your wishlist is empty."
        )

    def _highlighted_product(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._products.get(row_key.value)

    def on_key(self, event: events.Key) -> None:
        if event.key == "enter" and self.focused == self.query_one(DataTable):
            self.open_detail()

    @work()
    async def open_detail(self) -> None:
        product = self._highlighted_product()
        if product is None:
            return
        if await self.app.push_screen_wait(ProdDetailModal(product.id)):
            self.app.post_message(CartChangedMessage())
        self.load_wishlist()

    @work(group="wishlist")
    async def action_remove_highlighted(self) -> None:
        product = self._highlighted_product()
        wishlist = self.app.state.wishlist
        if product is None or wishlist is None:
            return
        if product.id not in wishlist:
            # server list and local set drifted apart; resync first
            await wishlist.replace(self._products)
        try:
            now_in = await wishlist.toggle(product)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        if now_in is None:
            return
        self.notify(f"{product.name} removed from wishlist.")
        self.load_wishlist()
