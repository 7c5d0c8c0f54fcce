from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Checkbox, Input, Label, Select, TextArea

from api.client import ApiError
from api.models import Product
from utils.pure import parse_option_list
from utils.settings import Settings


class ProductFormModal(ModalScreen[bool]):
    """
    Create (product=None) or edit a listing. Returns True if saved.
    Sizes, colors and image URLs are comma separated.
    """

    def __init__(self, product: Optional[Product] = None) -> None:
        super().__init__()
        self._product = product

    def compose(self) -> ComposeResult:
        p = self._product
        categories = list(Settings.CATEGORIES)
        if p and p.category and p.category not in categories:
            categories.append(p.category)

        with VerticalScroll(id="div-product-form"):
            yield Label("Name")
            yield Input(p.name if p else "", id="input-name")
            yield Label("Description")
            yield TextArea(p.description if p else "", id="textarea-desc")
            yield Label("Category")
            preset = {"value": p.category} if p and p.category else {}
            yield Select([(c, c) for c in categories], id="select-category", **preset)
            yield Label("Price ($)")
            yield Input(
                f"{p.price:.2f}" if p else "",
                id="input-price",
                type="number",
                validators=[Number(minimum=0.0)],
            )
            yield Label("Stock")
            yield Input(
                str(p.stock) if p else "",
                id="input-stock",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Checkbox("Available", p.available if p else True, id="chk-available")
            yield Label("Sizes")
            yield Input(", ".join(p.sizes) if p else "", placeholder="S, M, L", id="input-sizes")
            yield Label("Colors")
            yield Input(", ".join(p.colors) if p else "", placeholder="Red, Blue", id="input-colors")
            yield Label("Image URLs")
            yield Input(", ".join(p.images) if p else "", id="input-images")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button(
                    "Update Product" if p else "Create Product",
                    id="btn-submit",
                    variant="primary",
                )

    def on_mount(self) -> None:
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def _invalid(self, widget_id: str, message: str) -> None:
        widget = self.query_one(widget_id)
        widget.add_class("-invalid")
        widget.focus()
        self.notify(message, severity="error")

    def _collect(self) -> Optional[Product]:
        name = self.query_one("#input-name", Input).value.strip()
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)
        category = self.query_one("#select-category", Select)

        if not name:
            self._invalid("#input-name", "Name is required.")
            return None
        if not price_input.value or not price_input.is_valid:
            self._invalid("#input-price", "Price must be a non-negative number.")
            return None
        if not stock_input.value or not stock_input.is_valid:
            self._invalid("#input-stock", "Stock must be a non-negative integer.")
            return None

        return Product(
            id=self._product.id if self._product else "",
            name=name,
            description=self.query_one("#textarea-desc", TextArea).text.strip(),
            category="" if category.is_blank() else category.value,
            price=round(float(price_input.value), 2),
            stock=int(stock_input.value),
            available=self.query_one("#chk-available", Checkbox).value,
            sizes=parse_option_list(self.query_one("#input-sizes", Input).value),
            colors=parse_option_list(self.query_one("#input-colors", Input).value),
            images=parse_option_list(self.query_one("#input-images", Input).value),
            seller=self._product.seller if self._product else None,
        )

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        product = self._collect()
        if product is None:
            return

        catalog = self.app.state.backend.catalog
        try:
            if self._product:
                await catalog.update_product(self._product.id, product)
            else:
                await catalog.create_product(product)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self.app.notify("Product saved.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)
