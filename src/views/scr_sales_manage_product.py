from __future__ import annotations

import dataclasses
from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList
from textual.widgets.option_list import Option

from api.client import ApiError
from api.models import Product
from utils.messages import ModeSwitchedMessage, ProductsChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_prod_detail import product_markdown
from views.modal_product_form import ProductFormModal


class SalesManageProductScreen(BaseScreen):
    """
    Sellers filter their own listings, view one, adjust price/stock in place,
    or open the full form to create, edit or delete.
    """

    current_pid: Optional[str] = None

    def __init__(self) -> None:
        super().__init__()
        self._products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-search"):
                yield Input(id="input-search", placeholder="Filter my products...")
                yield Button("New Product", id="btn-new", variant="primary")
            yield OptionList(id="optlist-prods")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Horizontal(id="div-new-inputs"):
                    with Vertical():
                        yield Label("New Price ($):")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )

                    with Vertical():
                        yield Label("New Stock:")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                with Horizontal(id="div-button"):
                    yield Button("Update", id="btn-update", variant="success")
                    yield Button("Edit", id="btn-edit")
                    yield Button("Delete", id="btn-delete", variant="error")
                    yield Button("Back", id="btn-back")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self._show_list()

    def _show_list(self) -> None:
        self.current_pid = None
        self.query_one("#optlist-prods").remove_class("hidden")
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")

    def _show_detail(self) -> None:
        self.query_one("#optlist-prods").add_class("hidden")
        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#hort-controls").remove_class("hidden")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(ProductsChangedMessage)
    @work(exclusive=True, group="products")
    async def load_products(self) -> None:
        try:
            products = await self.backend.catalog.my_products()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self._products = {p.id: p for p in products}
        self.update_optlist(self.query_one("#input-search", Input).value)
        if self.current_pid is not None:
            if self.current_pid in self._products:
                await self.render_product()
            else:
                self._show_list()

    @on(Input.Changed, "#input-search")
    def handle_search_changed(self, message: Input.Changed) -> None:
        self._show_list()
        self.update_optlist(message.value)

    def update_optlist(self, query: str) -> None:
        """
        fill option list with the listings whose name or category match
        """
        query = query.strip().lower()
        matches = [
            p
            for p in self._products.values()
            if query in p.name.lower() or query in p.category.lower()
        ]
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [
                Option(f"{p.name}  ${p.price:.2f}  stock {p.stock}", id=p.id)
                for p in matches
            ]
        )

    @on(OptionList.OptionSelected, "#optlist-prods")
    async def handle_option_selected(self, message: OptionList.OptionSelected):
        self.current_pid = message.option.id
        await self.render_product()
        self._show_detail()

    async def render_product(self) -> None:
        prod = self._products[self.current_pid]
        await self.query_one("#md-prod", MarkdownViewer).document.update(
            product_markdown(prod, self.app.state.profile)
        )

        # prefill inputs with current values for convenience
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-stock", Input).value = str(prod.stock)

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self._show_list()
        self.query_one("#input-search", Input).focus()

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True)
    async def handle_update(self) -> None:
        prod = self._products.get(self.current_pid)
        if prod is None:
            return

        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)

        if price_input.value and not price_input.is_valid:
            price_input.focus()
            price_input.add_class("-invalid")
            return

        if stock_input.value and not stock_input.is_valid:
            stock_input.focus()
            stock_input.add_class("-invalid")
            return

        new_price = round(float(price_input.value), 2) if price_input.value else prod.price
        new_stock = int(stock_input.value) if stock_input.value else prod.stock

        if new_price == prod.price and new_stock == prod.stock:
            self.notify("Nothing to update.", severity="warning")
            return

        try:
            await self.backend.catalog.update_product(
                prod.id, dataclasses.replace(prod, price=new_price, stock=new_stock)
            )
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self.notify("Product updated successfully.")
        self.load_products()

    @on(Button.Pressed, "#btn-new")
    @work()
    async def handle_new(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()):
            self.load_products()

    @on(Button.Pressed, "#btn-edit")
    @work()
    async def handle_edit(self) -> None:
        prod = self._products.get(self.current_pid)
        if prod and await self.app.push_screen_wait(ProductFormModal(prod)):
            self.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        prod = self._products.get(self.current_pid)
        if prod is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {prod.name}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        try:
            await self.backend.catalog.delete_product(prod.id)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.notify("Product deleted successfully.")
        self._show_list()
        self.load_products()
