import asyncio
import unittest

from fake_backend import DECLINED_CARD, FakeBackendMixin

from api.models import CardDetails
from services.checkout import (
    EMPTY_CART_MESSAGE,
    INTERRUPTED_ORDER_MESSAGE,
    CheckoutFlow,
    CheckoutState,
)


def card(number="4242424242424242"):
    return CardDetails(number=number, exp_month=12, exp_year=2030, cvc="123")


class CheckoutFlowTestCase(FakeBackendMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.login_as_buyer()
        self.seen = []
        self.flow = CheckoutFlow(self.backend, on_change=lambda f: self.seen.append(f.state))

    async def test_load(self):
        self.store.add_cart_line("p1", 1)
        self.store.add_cart_line("p3", 2)
        await self.flow.load()
        self.assertEqual(self.seen, [CheckoutState.LOADING, CheckoutState.LOADED])
        self.assertEqual(len(self.flow.items), 2)
        self.assertEqual(self.flow.total, 1014.49)

    async def test_load_failure_keeps_items(self):
        self.store.add_cart_line("p1", 1)
        await self.flow.load()
        self.store.failures["GET /orders/cart"] = (500, {"message": "db down"})
        await self.flow.load()
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(self.flow.error, "Error fetching cart: db down")
        self.assertEqual(len(self.flow.items), 1)

    async def test_empty_cart_fails_without_network(self):
        await self.flow.place_order()
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(self.flow.error, EMPTY_CART_MESSAGE)
        self.assertEqual(self.store.requests, [])

    async def test_remove_drops_one_line_and_its_total(self):
        self.store.add_cart_line("p1", 1, size="15in")
        self.store.add_cart_line("p2", 1)
        self.store.add_cart_line("p3", 4)
        await self.flow.load()
        before = len(self.flow.items)
        before_total = self.flow.total
        removed = self.flow.items[1]

        await self.flow.remove(removed)

        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertEqual(len(self.flow.items), before - 1)
        self.assertEqual(before_total, 1048.49)
        self.assertEqual(self.flow.total, 1028.99)
        self.assertAlmostEqual(self.flow.total, before_total - removed.line_total, places=2)
        self.assertNotIn("p2", [i.product.id for i in self.flow.items])
        body = self.requests_to("PUT", "/catalog/cart")[0]["body"]
        # missing size/color are sent as the first declared option
        self.assertEqual(body["product"], {"_id": "p2", "sizes": ["S"], "colors": ["Red"]})
        self.assertTrue(body["isRemove"])

    async def test_remove_without_options_sends_none(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.remove(self.flow.items[0])
        body = self.requests_to("PUT", "/catalog/cart")[0]["body"]
        self.assertEqual(body["product"], {"_id": "p3", "sizes": None, "colors": None})

    async def test_happy_path(self):
        self.store.add_cart_line("p2", 2, size="M", color="Red")
        self.store.add_cart_line("p3", 1)
        await self.flow.load()

        await self.flow.place_order()
        self.assertIs(self.flow.state, CheckoutState.AWAITING_PAYMENT)
        self.assertEqual(self.flow.total_cents, 4625)
        self.assertEqual(self.store.intents, [4625])

        await self.flow.confirm_payment(card())
        self.assertIs(self.flow.state, CheckoutState.SUCCESS)
        self.assertEqual(self.flow.items, ())
        self.assertEqual(
            self.seen[-4:],
            [
                CheckoutState.PLACING_ORDER,
                CheckoutState.AWAITING_PAYMENT,
                CheckoutState.CONFIRMING,
                CheckoutState.SUCCESS,
            ],
        )

        order = self.requests_to("POST", "/orders/order")[0]["body"]
        self.assertEqual(order["amount"], "46.25")
        self.assertEqual(order["status"], "Pending")
        self.assertEqual(
            [(i["product"]["_id"], i["amount"], i["size"], i["color"]) for i in order["items"]],
            [("p2", 2, "M", "Red"), ("p3", 1, "none", "none")],
        )
        # card details never reach the storefront services
        for r in self.store.requests:
            if not r["path"].startswith("/stripe/"):
                self.assertNotIn("4242424242424242", str(r["body"]))

    async def test_declined_payment_creates_no_order(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.place_order()
        await self.flow.confirm_payment(card(DECLINED_CARD))
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(self.flow.error, "Payment failed: Your card was declined.")
        self.assertEqual(self.store.orders, [])
        self.assertEqual(len(self.flow.items), 1)

    async def test_duplicate_success_callback_creates_one_order(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.place_order()
        await self.flow.payment_succeeded()
        await self.flow.payment_succeeded()
        self.assertEqual(len(self.store.orders), 1)
        self.assertIs(self.flow.state, CheckoutState.SUCCESS)

    async def test_confirm_outside_awaiting_payment_is_ignored(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.confirm_payment(card())
        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertEqual(self.requests_to("POST", "/orders/order"), [])

    async def test_intent_failure(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        self.store.failures["POST /orders/create-payment-intent"] = (
            500,
            {"error": "stripe unavailable"},
        )
        await self.flow.place_order()
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(
            self.flow.error, "Failed to create payment intent: stripe unavailable"
        )
        self.assertIsNone(self.flow.client_secret)

    async def test_order_failure_then_retry(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.place_order()
        self.store.failures["POST /orders/order"] = (500, {"error": "write failed"})
        await self.flow.confirm_payment(card())
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(len(self.flow.items), 1)

        # user re-triggers: a fresh intent is requested
        del self.store.failures["POST /orders/order"]
        await self.flow.place_order()
        await self.flow.confirm_payment(card())
        self.assertIs(self.flow.state, CheckoutState.SUCCESS)
        self.assertEqual(len(self.store.intents), 2)
        self.assertEqual(len(self.store.orders), 1)

    async def test_payment_failed_and_reset(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.place_order()
        self.flow.payment_failed("cancelled")
        self.assertEqual(self.flow.error, "Payment failed: cancelled")
        self.flow.reset()
        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertIsNone(self.flow.error)
        self.assertIsNone(self.flow.client_secret)

    async def test_cancelled_first_load_settles_idle(self):
        self.store.add_cart_line("p3", 1)
        task = asyncio.create_task(self.flow.load())
        await asyncio.sleep(0)
        self.assertIs(self.flow.state, CheckoutState.LOADING)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertIs(self.flow.state, CheckoutState.IDLE)

        # a later load is not blocked by the cancelled one
        await self.flow.load()
        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertEqual(len(self.flow.items), 1)

    async def test_cancelled_reload_keeps_previous_items(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        task = asyncio.create_task(self.flow.load())
        await asyncio.sleep(0)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertEqual(len(self.flow.items), 1)

    async def test_overlapping_loads_latest_wins(self):
        self.store.add_cart_line("p1", 1)
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        earlier = asyncio.create_task(self.flow.load())
        await asyncio.sleep(0)

        await self.flow.remove(self.flow.items[0])
        await earlier

        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertEqual([i.product.id for i in self.flow.items], ["p3"])

    async def test_cancelled_place_order_returns_to_loaded(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        task = asyncio.create_task(self.flow.place_order())
        await asyncio.sleep(0)
        self.assertIs(self.flow.state, CheckoutState.PLACING_ORDER)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertIs(self.flow.state, CheckoutState.LOADED)
        self.assertIsNone(self.flow.total_cents)
        self.assertIsNone(self.flow.client_secret)

    async def test_cancelled_order_submission_never_reposts(self):
        self.store.add_cart_line("p3", 1)
        await self.flow.load()
        await self.flow.place_order()
        task = asyncio.create_task(self.flow.payment_succeeded())
        await asyncio.sleep(0)
        self.assertIs(self.flow.state, CheckoutState.CONFIRMING)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertEqual(self.flow.error, INTERRUPTED_ORDER_MESSAGE)
        self.assertFalse(self.flow.state.busy)

        await self.flow.payment_succeeded()
        self.assertIs(self.flow.state, CheckoutState.FAILED)
        self.assertLessEqual(len(self.requests_to("POST", "/orders/order")), 1)

    def test_busy_states(self):
        self.assertTrue(CheckoutState.LOADING.busy)
        self.assertTrue(CheckoutState.CONFIRMING.busy)
        self.assertFalse(CheckoutState.AWAITING_PAYMENT.busy)
        self.assertFalse(CheckoutState.FAILED.busy)
        self.assertTrue(CheckoutState.AWAITING_PAYMENT.checking_out)
        self.assertFalse(CheckoutState.LOADING.checking_out)


if __name__ == "__main__":
    unittest.main()
