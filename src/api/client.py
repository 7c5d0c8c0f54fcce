# shared aiohttp plumbing for the three backend services
from __future__ import annotations

from typing import Any, Optional

import aiohttp

from utils.logger import get_logger

_logger = get_logger(__name__)


class ApiError(Exception):
    """
    Any failed remote call: transport failure, non-2xx reply, or a 2xx body
    carrying an "error" field. The message is meant to be shown to the user.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class PaymentError(ApiError):
    """The payment provider declined or could not confirm the payment."""


def error_from_body(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("error", "message"):
            val = body.get(key)
            if isinstance(val, dict):
                val = val.get("message")
            if val:
                return str(val)
    return None


class ServiceClient:
    """
    Base for a single backend service. Requests are sent relative to
    ``base_url`` with the caller's bearer token.

    No timeout and no retry are applied; a failed call raises ApiError once.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        token: Optional[str] = None,
    ):
        self.session = session
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.token = token

    def url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        action: str = "request",
        auth: bool = True,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None if empty).
        ``action`` prefixes error messages, e.g. "Error fetching cart: ...".
        """
        url = self.url(path)
        _logger.debug(f"{method} {url}")
        try:
            async with self.session.request(
                method,
                url,
                json=json,
                headers=self.headers() if auth else {},
            ) as resp:
                body = await self._read_body(resp)
                if resp.status >= 400:
                    detail = error_from_body(body) or resp.reason or "request failed"
                    _logger.warning(f"{method} {url} -> {resp.status}: {detail}")
                    raise ApiError(f"{action}: {detail}", resp.status)
        except aiohttp.ClientError as e:
            _logger.warning(f"{method} {url} failed: {e}")
            raise ApiError(f"{action}: {e}") from e

        if isinstance(body, dict) and body.get("error"):
            raise ApiError(f"{action}: {error_from_body(body)}", resp.status)
        return body

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        text = await resp.text()
        if not text:
            return None
        try:
            return await resp.json(content_type=None)
        except ValueError:
            return text
