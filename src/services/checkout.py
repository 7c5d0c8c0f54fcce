"""
Cart/checkout state machine.

    Idle -> Loading -> Loaded -> PlacingOrder -> AwaitingPayment
         -> Confirming -> Success | Failed

Every remote failure collapses into ``flow.error`` (a user-facing string)
and the ``Failed`` state; items held by the flow are left untouched so the
view keeps showing them. Nothing is retried: the user re-triggers.

A cancelled step (superseded worker, unmounted screen) never leaves the
flow in a busy state: it settles back before the cancellation propagates.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, Optional, Set, Tuple

from api.backend import Backend
from api.client import ApiError
from api.models import NO_OPTION, CardDetails, CartItem, OrderStatus
from utils.logger import get_logger
from utils.pure import cart_total, order_lines, resolve_option, to_minor_units
from utils.settings import Settings

_logger = get_logger(__name__)


class CheckoutState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    PLACING_ORDER = "placing_order"
    AWAITING_PAYMENT = "awaiting_payment"
    CONFIRMING = "confirming"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def busy(self) -> bool:
        return self in (
            CheckoutState.LOADING,
            CheckoutState.PLACING_ORDER,
            CheckoutState.CONFIRMING,
        )

    @property
    def checking_out(self) -> bool:
        return self in (
            CheckoutState.PLACING_ORDER,
            CheckoutState.AWAITING_PAYMENT,
            CheckoutState.CONFIRMING,
        )


EMPTY_CART_MESSAGE = "Your cart is empty"
INTERRUPTED_ORDER_MESSAGE = (
    "Order submission was interrupted, check your orders before paying again"
)


class CheckoutFlow:
    def __init__(
        self,
        backend: Backend,
        on_change: Optional[Callable[["CheckoutFlow"], None]] = None,
    ):
        self.backend = backend
        self.on_change = on_change

        self.state = CheckoutState.IDLE
        self.items: Tuple[CartItem, ...] = ()
        self.error: Optional[str] = None
        self.client_secret: Optional[str] = None
        self.total_cents: Optional[int] = None

        # payment intents that already produced an order
        self._ordered_intents: Set[str] = set()
        self._loads = 0

    @property
    def total(self) -> float:
        return cart_total(self.items)

    def _transition(self, state: CheckoutState, error: Optional[str] = None) -> None:
        _logger.debug(f"checkout {self.state.value} -> {state.value}")
        self.state = state
        self.error = error
        if self.on_change is not None:
            self.on_change(self)

    def _fail(self, message: str) -> None:
        _logger.warning(f"checkout failed in {self.state.value}: {message}")
        self._transition(CheckoutState.FAILED, message)

    def reset(self) -> None:
        """Leave Failed/Success; back to Loaded when items are held, else Idle."""
        self.client_secret = None
        self.total_cents = None
        self._transition(self._settled())

    def _settled(self) -> CheckoutState:
        return CheckoutState.LOADED if self.items else CheckoutState.IDLE

    async def load(self) -> None:
        """Fetch the cart. When loads overlap, only the latest one settles the state."""
        self._loads += 1
        ticket = self._loads
        prior, prior_error = self.state, self.error
        self._transition(CheckoutState.LOADING)
        try:
            cart = await self.backend.orders.fetch_cart()
        except ApiError as e:
            if ticket == self._loads:
                self._fail(e.message)
            return
        except asyncio.CancelledError:
            if ticket == self._loads:
                if prior.busy:
                    self._transition(self._settled())
                else:
                    self._transition(prior, prior_error)
            raise
        if ticket != self._loads:
            _logger.debug("stale cart load dropped")
            return
        self.items = cart.items
        self._transition(CheckoutState.LOADED)

    async def remove(self, item: CartItem) -> None:
        """Remote remove of one line, then reload the cart."""
        size = resolve_option(item.size, item.product.sizes)
        color = resolve_option(item.color, item.product.colors)
        try:
            await self.backend.catalog.manage_cart(
                item.product.id,
                0,
                sizes=[size] if size != NO_OPTION else None,
                colors=[color] if color != NO_OPTION else None,
                is_remove=True,
            )
        except ApiError as e:
            self._fail(e.message)
            return
        await self.load()

    async def place_order(self) -> None:
        """Request a payment intent for the cart total."""
        if not self.items:
            self._fail(EMPTY_CART_MESSAGE)
            return

        self._transition(CheckoutState.PLACING_ORDER)
        self.total_cents = to_minor_units(self.total)
        try:
            secret = await self.backend.orders.create_payment_intent(self.total_cents)
        except ApiError as e:
            self._fail(e.message)
            return
        except asyncio.CancelledError:
            self.total_cents = None
            self._transition(self._settled())
            raise
        self.client_secret = secret
        self._transition(CheckoutState.AWAITING_PAYMENT)

    async def confirm_payment(self, card: CardDetails) -> None:
        """Hand the card to the payment provider; on success, submit the order."""
        if self.state != CheckoutState.AWAITING_PAYMENT or not self.client_secret:
            _logger.warning(f"payment confirmation ignored in {self.state.value}")
            return
        try:
            await self.backend.payments.confirm(self.client_secret, card)
        except ApiError as e:
            self._fail(e.message)
            return
        await self.payment_succeeded()

    def payment_failed(self, message: str) -> None:
        self._fail(f"Payment failed: {message}")

    async def payment_succeeded(self) -> None:
        """
        Post the order for the confirmed intent. A second success callback
        for the same intent is ignored, so one intent yields at most one order.
        """
        secret = self.client_secret
        if (
            self.state != CheckoutState.AWAITING_PAYMENT
            or secret is None
            or secret in self._ordered_intents
        ):
            _logger.info("duplicate payment confirmation ignored")
            return

        self._transition(CheckoutState.CONFIRMING)
        try:
            await self.backend.orders.create_order(
                order_lines(self.items),
                self.total,
                status=OrderStatus.parse(Settings.INITIAL_ORDER_STATUS),
            )
        except ApiError as e:
            self._fail(e.message)
            return
        except asyncio.CancelledError:
            # the order may exist server-side; never re-post for this intent
            self._ordered_intents.add(secret)
            self.client_secret = None
            self._fail(INTERRUPTED_ORDER_MESSAGE)
            raise

        self._ordered_intents.add(secret)
        self.items = ()
        self.client_secret = None
        _logger.info("order placed")
        self._transition(CheckoutState.SUCCESS)
