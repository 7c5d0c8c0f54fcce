from __future__ import annotations

from typing import Optional

from api.client import ApiError, ServiceClient
from api.models import UserProfile


class ProfileService(ServiceClient):
    """Login, signup and profile endpoints."""

    async def login(self, email: str, password: str) -> str:
        """Return the bearer token issued for the credentials."""
        body = await self.request(
            "POST",
            "login",
            json={"email": email, "password": password},
            action="Login failed",
            auth=False,
        )
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise ApiError("Login failed: invalid email or password")
        return token

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        role: str = "buyer",
        phone: str = "",
        address: str = "",
    ) -> None:
        await self.request(
            "POST",
            "signup",
            json={
                "name": name,
                "email": email,
                "password": password,
                "role": role.capitalize(),
                "phone": phone,
                "address": address,
            },
            action="Registration failed",
            auth=False,
        )

    async def get_profile(self) -> UserProfile:
        body = await self.request("GET", "", action="Error fetching profile")
        return UserProfile.from_json(body or {})

    async def update_profile(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        img: Optional[str] = None,
    ) -> UserProfile:
        """Only the fields given are sent."""
        fields = {"name": name, "phone": phone, "address": address, "img": img}
        body = await self.request(
            "PUT",
            "profile",
            json={k: v for k, v in fields.items() if v is not None},
            action="Error updating profile",
        )
        if isinstance(body, dict) and isinstance(body.get("profile"), dict):
            body = body["profile"]
        return UserProfile.from_json(body or {})

    async def seller_profile(self, seller_id: str) -> UserProfile:
        body = await self.request(
            "GET",
            f"seller-profile/{seller_id}",
            action="Failed to fetch seller details",
        )
        profile = UserProfile.from_json(body or {})
        if not profile.id:
            profile = UserProfile(
                id=seller_id,
                name=profile.name or "Name not available",
                role="seller",
                img=profile.img,
            )
        return profile
