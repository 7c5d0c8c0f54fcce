import asyncio

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from api.client import ApiError
from utils.pure import generate_markdown_table


class SellerDetailModal(ModalScreen[None]):
    """
    Public seller page: profile plus the products they list.
    """

    def __init__(self, seller_id: str) -> None:
        super().__init__()
        self._seller_id = seller_id

    def compose(self) -> ComposeResult:
        with Vertical(id="div-seller"):
            yield MarkdownViewer("Loading...", show_table_of_contents=False)
            yield Button("Go Back", id="btn-quit")

    def on_mount(self) -> None:
        self.load_seller()

    @work(exclusive=True)
    async def load_seller(self) -> None:
        backend = self.app.state.backend
        try:
            seller, products = await asyncio.gather(
                backend.profile.seller_profile(self._seller_id),
                backend.catalog.seller_products(self._seller_id),
            )
        except ApiError as e:
            await self.query_one(MarkdownViewer).document.update(f"**{e.message}**")
            return

        md = f"### {seller.name}\n\n"
        if seller.email:
            md += f"Contact: {seller.email}  \n"
        if seller.address:
            md += f"Address: {seller.address}\n"
        md += f"\n#### Products ({len(products)})\n\n"
        md += generate_markdown_table(
            ["Name", "Category", "Price", "Stock"],
            [[p.name, p.category or "-", f"${p.price:.2f}", p.stock] for p in products],
            ["l", "l", "r", "r"],
        ) or "_No products listed._"
        await self.query_one(MarkdownViewer).document.update(md)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss()
