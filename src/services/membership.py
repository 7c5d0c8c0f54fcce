"""
Client-side sets of product ids that are "in wishlist" / "in cart".

Refreshed from the server, toggled through the single upsert-or-remove
endpoint, and mirrored best-effort into the local sqlite file.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from api.backend import Backend
from api.models import Product, normalize_id
from db import mirror
from utils.logger import get_logger

_logger = get_logger(__name__)


class MembershipSet(ABC):
    kind: mirror.Kind = "wishlist"

    def __init__(self, backend: Backend, owner: Optional[str] = None):
        self.backend = backend
        self.owner = owner
        self.ids: Set[str] = set()
        self.pending: Set[str] = set()

    def __contains__(self, product) -> bool:
        pid = normalize_id(product.id if isinstance(product, Product) else product)
        return pid in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    @abstractmethod
    async def _fetch_ids(self) -> Iterable[str]:
        raise NotImplementedError

    @abstractmethod
    async def _send(self, product: Product, remove: bool, **options) -> None:
        raise NotImplementedError

    async def restore(self) -> None:
        """Seed from the local mirror; only used until the first refresh."""
        if self.owner:
            self.ids = await mirror.load_ids(self.owner, self.kind)

    async def refresh(self) -> Set[str]:
        await self.replace(await self._fetch_ids())
        return set(self.ids)

    async def replace(self, ids: Iterable) -> None:
        """Adopt server truth fetched elsewhere (bare ids or populated objects)."""
        self.ids = {pid for pid in (normalize_id(i) for i in ids) if pid}
        await self._mirror()

    async def toggle(self, product: Product, **options) -> Optional[bool]:
        """
        Flip membership of one product. Returns the new membership, or None
        when a toggle for the same product is still in flight.
        Raises ApiError (and keeps the old membership) when the call fails.
        """
        pid = normalize_id(product.id)
        if pid is None or pid in self.pending:
            return None

        remove = pid in self.ids
        self.pending.add(pid)
        try:
            await self._send(product, remove, **options)
        finally:
            self.pending.discard(pid)

        if remove:
            self.ids.discard(pid)
        else:
            self.ids.add(pid)
        _logger.debug(f"{self.kind} {'-' if remove else '+'} {pid}")
        await self._mirror()
        return not remove

    async def _mirror(self) -> None:
        if self.owner:
            await mirror.save_ids(self.owner, self.kind, self.ids)


class WishlistMembership(MembershipSet):
    kind = "wishlist"

    async def _fetch_ids(self) -> Iterable[str]:
        return [w.product.id for w in await self.backend.catalog.list_wishlist()]

    async def _send(self, product: Product, remove: bool, **options) -> None:
        await self.backend.catalog.manage_wishlist(
            product.id,
            is_remove=remove,
            sizes=product.sizes,
            colors=product.colors,
        )


class CartMembership(MembershipSet):
    """Adding sends a quantity and size/color, defaulting to 1 of the first declared options."""

    kind = "cart"

    async def _fetch_ids(self) -> Iterable[str]:
        return (await self.backend.orders.fetch_cart()).product_ids()

    async def _send(
        self,
        product: Product,
        remove: bool,
        quantity: int = 1,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        if remove:
            await self.backend.catalog.manage_cart(product.id, 0, [], [], is_remove=True)
            return
        size = size or (product.sizes[0] if product.sizes else None)
        color = color or (product.colors[0] if product.colors else None)
        await self.backend.catalog.manage_cart(
            product.id,
            max(quantity, 1),
            sizes=[size] if size else None,
            colors=[color] if color else None,
        )
