# one aiohttp session shared by every service client
from __future__ import annotations

from typing import Optional

import aiohttp

from api.catalog import CatalogService
from api.orders import OrderService
from api.payment import PaymentProvider, StripePaymentProvider
from api.profile import ProfileService
from utils.settings import Settings


class Backend:
    """
    Bundles the profile, catalog and order service clients plus the payment
    provider. Use as an async context manager, or call ``close()``.

    The bearer token is shared: ``set_token`` updates every client at once.
    """

    def __init__(
        self,
        profile_url: str = Settings.PROFILE_URL,
        catalog_url: str = Settings.CATALOG_URL,
        order_url: str = Settings.ORDER_URL,
        session: Optional[aiohttp.ClientSession] = None,
        payments: Optional[PaymentProvider] = None,
    ):
        # unbounded waits on the storefront backends
        self.session = session or aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=None)
        )
        self.profile = ProfileService(self.session, profile_url)
        self.catalog = CatalogService(self.session, catalog_url)
        self.orders = OrderService(self.session, order_url)
        self.payments = payments or StripePaymentProvider(self.session)
        self.token: Optional[str] = None

    def set_token(self, token: Optional[str]) -> None:
        self.token = token
        for client in (self.profile, self.catalog, self.orders):
            client.token = token

    async def close(self) -> None:
        if not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
