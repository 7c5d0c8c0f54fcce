"""
Payment provider client. Card details go straight from the payment form to
the provider; the storefront backends only ever see the client secret.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import aiohttp

from api.client import PaymentError, error_from_body
from api.models import CardDetails
from utils.logger import get_logger
from utils.settings import Settings

_logger = get_logger(__name__)


class PaymentProvider(ABC):
    """Confirms a payment intent. Raises PaymentError when the charge is not accepted."""

    @abstractmethod
    async def confirm(self, client_secret: str, card: CardDetails) -> None:
        raise NotImplementedError


def intent_id(client_secret: str) -> str:
    # "pi_123_secret_abc" -> "pi_123"
    return client_secret.split("_secret_")[0]


class StripePaymentProvider(PaymentProvider):
    def __init__(
        self,
        session: aiohttp.ClientSession,
        publishable_key: str = Settings.STRIPE_PUBLISHABLE_KEY,
        base_url: str = Settings.STRIPE_URL,
    ):
        self.session = session
        self.publishable_key = publishable_key
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    async def confirm(self, client_secret: str, card: CardDetails) -> None:
        if not self.publishable_key:
            raise PaymentError("Payment failed: no publishable key configured")

        url = f"{self.base_url}payment_intents/{intent_id(client_secret)}/confirm"
        form = {
            "client_secret": client_secret,
            "payment_method_data[type]": "card",
            "payment_method_data[card][number]": card.number.replace(" ", ""),
            "payment_method_data[card][exp_month]": str(card.exp_month),
            "payment_method_data[card][exp_year]": str(card.exp_year),
            "payment_method_data[card][cvc]": card.cvc,
        }
        _logger.debug(f"POST {url}")
        try:
            async with self.session.post(
                url,
                data=form,
                headers={"Authorization": f"Bearer {self.publishable_key}"},
            ) as resp:
                body = await resp.json(content_type=None)
                status = resp.status
        except (aiohttp.ClientError, ValueError) as e:
            _logger.warning(f"payment confirmation failed: {e}")
            raise PaymentError(f"Payment failed: {e}") from e

        if status >= 400:
            raise PaymentError(
                f"Payment failed: {error_from_body(body) or 'declined'}", status
            )
        intent_status = body.get("status") if isinstance(body, dict) else None
        if intent_status not in ("succeeded", "processing"):
            raise PaymentError(f"Payment failed: payment is {intent_status or 'incomplete'}")
        _logger.info(f"payment {intent_id(client_secret)} {intent_status}")
