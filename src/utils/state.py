from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from api.backend import Backend
from api.client import ApiError
from api.models import UserProfile
from services.membership import CartMembership, WishlistMembership
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - backend: service clients, carrying the bearer token once logged in
      - profile: the logged-in user's profile, None before login
      - wishlist / cart: membership sets of product ids for the logged-in buyer
    """

    backend: Optional[Backend] = None
    profile: Optional[UserProfile] = None
    wishlist: Optional[WishlistMembership] = None
    cart: Optional[CartMembership] = None
    last_error: Optional[str] = field(default=None, repr=False)

    @property
    def role(self) -> Optional[Literal["buyer", "seller"]]:
        return self.profile.role if self.profile else None

    @property
    def uid(self) -> Optional[str]:
        return self.profile.id if self.profile else None

    @property
    def logged_in(self) -> bool:
        return self.profile is not None

    async def login(self, email: str, password: str) -> UserProfile:
        """Exchange credentials for a token and load the profile. Raises ApiError."""
        token = await self.backend.profile.login(email, password)
        self.backend.set_token(token)
        try:
            self.profile = await self.backend.profile.get_profile()
        except ApiError:
            self.backend.set_token(None)
            raise

        self.wishlist = WishlistMembership(self.backend, self.profile.id)
        self.cart = CartMembership(self.backend, self.profile.id)
        await self.refresh_memberships()
        return self.profile

    async def refresh_memberships(self) -> None:
        """
        Seed the membership sets from the local mirror, then from the server.
        A failed refresh keeps the mirrored ids and records the error.
        """
        if self.wishlist is None or self.cart is None:
            return
        self.last_error = None
        for members in (self.wishlist, self.cart):
            if not members.ids:
                await members.restore()
            try:
                await members.refresh()
            except ApiError as e:
                _logger.warning(f"{members.kind} refresh failed: {e}")
                self.last_error = e.message

    def logout(self) -> None:
        if self.backend is not None:
            self.backend.set_token(None)
        self.profile = None
        self.wishlist = None
        self.cart = None
