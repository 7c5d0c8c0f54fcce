from __future__ import annotations

from typing import Any, List, Sequence

from api.client import ApiError, ServiceClient
from api.models import Cart, Order, OrderLine, OrderStatus


def _orders(body: Any, action: str) -> List[Order]:
    if not isinstance(body, list):
        raise ApiError(f"{action}: unexpected response format")
    return [Order.from_json(o) for o in body if isinstance(o, dict)]


class OrderService(ServiceClient):
    """Cart reads, payment intents, orders and seller sales."""

    async def fetch_cart(self) -> Cart:
        body = await self.request("GET", "cart", action="Error fetching cart")
        return Cart.from_json(body)

    async def create_payment_intent(self, total_cents: int) -> str:
        """Return the client secret of a new payment intent for ``total_cents``."""
        body = await self.request(
            "POST",
            "create-payment-intent",
            json={"total": total_cents},
            action="Failed to create payment intent",
        )
        secret = None
        if isinstance(body, dict):
            secret = body.get("paymentIntent") or body.get("clientSecret")
        if not secret:
            raise ApiError("Failed to create payment intent: no client secret returned")
        return str(secret)

    async def create_order(
        self,
        lines: Sequence[OrderLine],
        amount: float,
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Any:
        return await self.request(
            "POST",
            "order",
            json={
                "items": [line.to_json() for line in lines],
                "amount": f"{amount:.2f}",
                "status": status.label,
            },
            action="Failed to place order",
        )

    async def list_orders(self) -> List[Order]:
        body = await self.request("GET", "orders", action="Failed to fetch orders")
        return _orders(body, "Failed to fetch orders")

    async def seller_sales(self) -> List[Order]:
        body = await self.request(
            "GET", "seller-sales", action="Failed to fetch sales"
        )
        return _orders(body, "Failed to fetch sales")

    async def update_status(self, order_number: str, status: OrderStatus) -> Any:
        return await self.request(
            "PUT",
            f"sales/{order_number}",
            json={"status": status.value},
            action="Failed to update order status",
        )
