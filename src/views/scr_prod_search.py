from typing import Dict, List

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label, Select

from api.client import ApiError
from api.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage, WishlistChangedMessage
from utils.settings import Settings
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

HEART = "♥"


def product_row(product: Product, in_wishlist: bool, in_cart: bool) -> tuple:
    return (
        product.name,
        product.category or "-",
        f"{product.price:.2f}",
        product.stock if product.available else "out",
        HEART if in_wishlist else "",
        "yes" if in_cart else "",
    )


class ProdSearchScreen(BaseScreen):
    """
    product browsing for buyers: keyword search, category filter, wishlist toggle
    """

    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
        Binding("w", "toggle_wishlist", "Wishlist ♥", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-search"):
            yield Input(
                id="input-search", placeholder="Start typing to search something..."
            )
            yield Select(
                [(c, c) for c in Settings.CATEGORIES],
                prompt="All categories",
                id="select-category",
            )
        yield DataTable(id="table-search-result")
        yield Label("", id="label-result-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price ($)", "Stock", HEART, "In Cart")

        self.query_one("#input-search").focus()

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(CartChangedMessage)
    @on(WishlistChangedMessage)
    def handle_refresh(self) -> None:
        self.update_search_result()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-category")
    def handle_query_changed(self) -> None:
        self.update_search_result()

    def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table:
            self.open_detail()

    @work()
    async def open_detail(self) -> None:
        product = self._highlighted_product()
        if product is None:
            return
        if await self.app.push_screen_wait(ProdDetailModal(product.id)):
            self.app.post_message(CartChangedMessage())
        self.update_search_result()

    def _highlighted_product(self) -> Product | None:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._products.get(row_key.value)

    @work(group="wishlist")
    async def action_toggle_wishlist(self) -> None:
        product = self._highlighted_product()
        wishlist = self.app.state.wishlist
        if product is None or wishlist is None:
            return
        try:
            now_in = await wishlist.toggle(product)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        if now_in is None:
            return
        self.notify(
            f"{product.name} {'added to' if now_in else 'removed from'} wishlist."
        )
        self.app.post_message(WishlistChangedMessage())

    async def _fetch(self, query: str, category: str | None) -> List[Product]:
        if query:
            results = await self.backend.catalog.search(query)
            if category:
                results = [p for p in results if p.category == category]
            return results
        if category:
            return await self.backend.catalog.by_category(category)
        return await self.backend.catalog.list_products()

    @work(exclusive=True)
    async def update_search_result(self) -> None:
        query = self.query_one("#input-search", Input).value.strip()
        select = self.query_one("#select-category", Select)
        category = None if select.is_blank() else select.value
        try:
            products = await self._fetch(query, category)
        except ApiError as e:
            self.notify(e.message, severity="error")
            products = []

        state = self.app.state
        self._products = {p.id: p for p in products}
        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                *product_row(
                    p,
                    state.wishlist is not None and p.id in state.wishlist,
                    state.cart is not None and p.id in state.cart,
                ),
                key=p.id,
            )
        self.query_one("#label-result-cnt", Label).update(f"{len(products)} products")
