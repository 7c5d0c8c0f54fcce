from __future__ import annotations

from typing import Any, List, Optional, Sequence
from urllib.parse import quote

from api.client import ServiceClient
from api.models import Product, WishlistItem


def _products(body: Any) -> List[Product]:
    # listing endpoints reply either with a bare list or {"products": [...]}
    if isinstance(body, dict):
        body = body.get("products") or []
    if not isinstance(body, list):
        return []
    return [Product.from_json(p) for p in body if isinstance(p, dict)]


class CatalogService(ServiceClient):
    """Products, per-seller listings, and the cart/wishlist upsert endpoints."""

    async def list_products(self) -> List[Product]:
        body = await self.request("GET", "", action="Failed to fetch products")
        return _products(body)

    async def search(self, query: str) -> List[Product]:
        query = query.strip()
        if not query:
            return []
        body = await self.request(
            "GET", f"search/{quote(query, safe='')}", action="Failed to search products"
        )
        return _products(body)

    async def by_category(self, category: str) -> List[Product]:
        body = await self.request(
            "GET",
            f"category/{quote(category, safe='')}",
            action="Failed to fetch products by category",
        )
        return _products(body)

    async def get_product(self, product_id: str) -> Product:
        body = await self.request(
            "GET", product_id, action="Failed to fetch product details"
        )
        return Product.from_json(body or {})

    async def create_product(self, product: Product) -> Product:
        body = await self.request(
            "POST",
            "product/create",
            json=product.to_json(),
            action="Error creating product",
        )
        return Product.from_json(body) if isinstance(body, dict) else product

    async def update_product(self, product_id: str, product: Product) -> Product:
        body = await self.request(
            "PUT",
            f"product/{product_id}",
            json=product.to_json(),
            action="Error updating product",
        )
        return Product.from_json(body) if isinstance(body, dict) else product

    async def delete_product(self, product_id: str) -> None:
        await self.request(
            "DELETE", f"product/{product_id}", action="Error deleting the product"
        )

    async def my_products(self) -> List[Product]:
        """Products owned by the logged-in seller."""
        body = await self.request(
            "GET", "products/seller", action="Failed to fetch products"
        )
        return _products(body)

    async def seller_products(self, seller_id: str) -> List[Product]:
        body = await self.request(
            "GET",
            f"seller-products/{seller_id}",
            action="Failed to fetch seller products",
        )
        return _products(body)

    # ---------------------------
    # Upsert-or-remove endpoints
    # ---------------------------

    async def manage_cart(
        self,
        product_id: str,
        quantity: int,
        sizes: Optional[Sequence[str]] = None,
        colors: Optional[Sequence[str]] = None,
        is_remove: bool = False,
    ) -> Any:
        return await self.request(
            "PUT",
            "cart",
            json={
                "product": {
                    "_id": product_id,
                    "sizes": list(sizes) if sizes is not None else None,
                    "colors": list(colors) if colors is not None else None,
                },
                "amount": quantity,
                "isRemove": is_remove,
            },
            action=f"Error {'removing' if is_remove else 'adding'} product to cart",
        )

    async def list_wishlist(self) -> List[WishlistItem]:
        body = await self.request("GET", "wishlist", action="Error fetching wishlist")
        if isinstance(body, dict):
            body = body.get("wishlist") or []
        if not isinstance(body, list):
            return []
        return [WishlistItem.from_json(w) for w in body]

    async def manage_wishlist(
        self,
        product_id: str,
        is_remove: bool = False,
        sizes: Sequence[str] = (),
        colors: Sequence[str] = (),
    ) -> Any:
        return await self.request(
            "PUT",
            "wishlist",
            json={
                "product": {
                    "_id": product_id,
                    "sizes": list(sizes),
                    "colors": list(colors),
                },
                "amount": 0 if is_remove else 1,
                "isRemove": is_remove,
            },
            action=f"Error {'removing' if is_remove else 'adding'} product to wishlist",
        )
