import unittest

from fake_backend import FakeBackendMixin
from textual.widgets import Button

from main import StorefrontApp
from services.checkout import CheckoutState
from views.modal_dialog import DialogModal
from views.scr_cart import CartItemRequestMessage, CartScreen


class CartScreenTestCase(FakeBackendMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.store.add_cart_line("p1", 1, size="15in")
        self.store.add_cart_line("p3", 2)
        self.app = StorefrontApp(backend=self.backend)

    async def wait_for(self, pilot, predicate, timeout=5.0):
        for _ in range(int(timeout / 0.05)):
            if predicate():
                return True
            await pilot.pause(0.05)
        return predicate()

    def settled(self, screen: CartScreen, count: int):
        def check():
            return (
                screen.flow is not None
                and screen.flow.state is CheckoutState.LOADED
                and len(screen.flow.items) == count
                and len(screen.query_one("#vertscroll-content").children) == count
                and not screen.query_one("#btn-refresh", Button).disabled
            )

        return check

    async def open_cart(self, pilot) -> CartScreen:
        await self.app.state.login("alice@example.com", "pw")
        await self.app.switch_mode("cart")
        screen = self.app.screen
        self.assertIsInstance(screen, CartScreen)
        loaded = await self.wait_for(pilot, self.settled(screen, 2))
        self.assertTrue(loaded, f"cart stuck in {screen.flow.state}")
        return screen

    async def test_opening_cart_reaches_loaded(self):
        async with self.app.run_test(size=(120, 40)) as pilot:
            screen = await self.open_cart(pilot)
            self.assertFalse(screen.query_one("#btn-checkout", Button).disabled)

            fetches = len(self.requests_to("GET", "/orders/cart"))
            await pilot.click("#btn-refresh")
            refreshed = await self.wait_for(
                pilot,
                lambda: len(self.requests_to("GET", "/orders/cart")) > fetches
                and self.settled(screen, 2)(),
            )
            self.assertTrue(refreshed, f"refresh left cart in {screen.flow.state}")

    async def test_confirmed_removal_is_applied(self):
        async with self.app.run_test(size=(120, 40)) as pilot:
            screen = await self.open_cart(pilot)
            mug = next(i for i in screen.flow.items if i.product.id == "p3")

            screen.post_message(CartItemRequestMessage(mug, "remove"))
            self.assertTrue(
                await self.wait_for(pilot, lambda: isinstance(self.app.screen, DialogModal))
            )
            await pilot.click("#btn-primary")

            removed = await self.wait_for(
                pilot,
                lambda: self.settled(screen, 1)() and "p3" not in self.app.state.cart,
            )
            self.assertTrue(removed, f"removal not applied, cart in {screen.flow.state}")
            self.assertEqual([i.product.id for i in screen.flow.items], ["p1"])
            self.assertEqual(len(self.requests_to("PUT", "/catalog/cart")), 1)
            self.assertEqual(screen.flow.total, 999.99)


if __name__ == "__main__":
    unittest.main()
