from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.backend import Backend
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.settings import Settings
from utils.state import GlobalState
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_past_orders import PastOrdersScreen
from views.scr_prod_search import ProdSearchScreen
from views.scr_profile import ProfileScreen
from views.scr_sales_manage_product import SalesManageProductScreen
from views.scr_sales_report import SalesReportScreen
from views.scr_wishlist import WishlistScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "prod_search": ProdSearchScreen,
        "wishlist": WishlistScreen,
        "cart": CartScreen,
        "past_orders": PastOrdersScreen,
        "profile": ProfileScreen,
        "ss_mgr": SalesManageProductScreen,
        "ss_top": SalesReportScreen,
    }

    SALES_MODES = {
        "ss_mgr": "My Products",
        "ss_top": "Sales Report",
        "profile": "Profile",
    }
    CUSTOMER_MODES = {
        "prod_search": "Browse Products",
        "wishlist": "Wishlist",
        "cart": "Cart",
        "past_orders": "My Orders",
        "profile": "Profile",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/search_prod.tcss",
        "styles/cart.tcss",
        "styles/past_orders.tcss",
        "styles/ss_mgr.tcss",
        "styles/ss_top.tcss",
    ]

    state: GlobalState

    def __init__(self, backend: Backend | None = None):
        super().__init__()
        self.state = GlobalState(backend=backend)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.title = Settings.APP_TITLE
        if self.state.backend is None:
            # the aiohttp session must be created inside the running loop
            self.state.backend = Backend()
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        self.state.logout()
        if self.state.backend is not None:
            await self.state.backend.close()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        _logger.info(f"logged in as {self.state.uid} ({self.state.role})")
        if self.state.role == "seller":
            self.app.post_message(ModeSwitchedMessage(self.app.current_mode, "ss_top"))
            await self.switch_mode("ss_top")
        else:
            self.app.post_message(
                ModeSwitchedMessage(self.app.current_mode, "prod_search")
            )
            await self.switch_mode("prod_search")


def run() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    run()
