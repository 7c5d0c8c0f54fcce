# dataclass mirrors of the payloads served by the profile, catalog and order services

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

NO_OPTION = "none"


def normalize_id(value: Any) -> Optional[str]:
    """
    Reduce a populated object ({"_id": ...}) or a bare id to a string.
    Returns None when there is no id at all.
    """
    if isinstance(value, dict):
        value = value.get("_id", value.get("id"))
    if value is None or value == "":
        return None
    return str(value)


def same_id(a: Any, b: Any) -> bool:
    norm_a = normalize_id(a)
    return norm_a is not None and norm_a == normalize_id(b)


def _to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _to_int(val, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _to_str_tuple(val) -> Tuple[str, ...]:
    if val is None:
        return ()
    if isinstance(val, str):
        return (val,) if val else ()
    return tuple(str(v) for v in val if v is not None and v != "")


def _to_datetime(val) -> Optional[datetime]:
    if not val:
        return None
    if isinstance(val, datetime):
        return val
    try:
        return datetime.fromisoformat(str(val).replace("Z", "+00:00"))
    except ValueError:
        return None


class OrderStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    ON_THE_WAY = "on-the-way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: Any) -> "OrderStatus":
        """Case-insensitive; spaces and underscores count as dashes. Unknown -> PENDING."""
        text = str(raw or "").strip().lower().replace("_", "-").replace(" ", "-")
        if text == "canceled":
            text = "cancelled"
        for status in cls:
            if status.value == text:
                return status
        return cls.PENDING

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    stock: int = 0
    available: bool = True
    description: str = ""
    category: str = ""
    sizes: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    seller: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "Product":
        if not isinstance(data, dict):
            # bare id, product details not populated by the service
            return cls(id=normalize_id(data) or "", name="", price=0.0)
        return cls(
            id=normalize_id(data) or "",
            name=str(data.get("name") or ""),
            price=_to_float(data.get("price")),
            stock=_to_int(data.get("stock")),
            available=bool(data.get("available", True)),
            description=str(data.get("desc") or data.get("description") or ""),
            category=str(data.get("type") or data.get("category") or ""),
            sizes=_to_str_tuple(data.get("sizes")),
            colors=_to_str_tuple(data.get("colors")),
            images=_to_str_tuple(data.get("img")),
            seller=normalize_id(data.get("seller")),
        )

    def to_json(self) -> dict:
        """Body accepted by product create/update."""
        return {
            "name": self.name,
            "desc": self.description,
            "img": list(self.images),
            "type": self.category,
            "stock": self.stock,
            "price": self.price,
            "available": self.available,
            "sizes": list(self.sizes),
            "colors": list(self.colors),
        }


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity

    @classmethod
    def from_json(cls, data: dict) -> Optional["CartItem"]:
        """None for items the cart service returned without a usable price or amount."""
        if not isinstance(data, dict):
            return None
        raw_product = data.get("product")
        amount = data.get("amount", data.get("quantity"))
        if not isinstance(raw_product, dict) or isinstance(amount, bool):
            return None
        price = raw_product.get("price")
        if not isinstance(price, (int, float)) or isinstance(price, bool):
            return None
        if not isinstance(amount, (int, float)):
            return None
        return cls(
            id=normalize_id(data),
            product=Product.from_json(raw_product),
            quantity=int(amount),
            size=data.get("size") or None,
            color=data.get("color") or None,
        )


@dataclass(frozen=True)
class Cart:
    items: Tuple[CartItem, ...] = ()
    id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "Cart":
        """
        The cart service replies with a list of carts (first one wins), a single
        cart dict holding "items" or "products", or nothing at all.
        """
        if isinstance(data, list):
            if not data:
                return cls()
            data = data[0]
        if not isinstance(data, dict):
            return cls()
        raw_items = data.get("items")
        if raw_items is None:
            raw_items = data.get("products") or []
        items = [CartItem.from_json(i) for i in raw_items]
        return cls(
            id=normalize_id(data),
            items=tuple(i for i in items if i is not None),
        )

    def product_ids(self) -> List[str]:
        return [item.product.id for item in self.items]


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    product: Optional[Product] = None

    @classmethod
    def from_json(cls, data: dict) -> "OrderLine":
        raw_product = data.get("product")
        product = (
            Product.from_json(raw_product)
            if isinstance(raw_product, dict) and "name" in raw_product
            else None
        )
        return cls(
            product_id=normalize_id(raw_product) or "",
            quantity=_to_int(data.get("amount", data.get("quantity")), 1),
            size=data.get("size") or None,
            color=data.get("color") or None,
            product=product,
        )

    def to_json(self) -> dict:
        return {
            "product": {"_id": self.product_id},
            "amount": self.quantity,
            "size": self.size,
            "color": self.color,
        }


@dataclass(frozen=True)
class Order:
    id: str
    number: str
    amount: float
    status: OrderStatus
    lines: Tuple[OrderLine, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: dict) -> "Order":
        oid = normalize_id(data) or ""
        return cls(
            id=oid,
            number=str(data.get("orderId") or oid),
            amount=_to_float(data.get("amount")),
            status=OrderStatus.parse(data.get("status")),
            lines=tuple(OrderLine.from_json(i) for i in data.get("items") or []),
            created_at=_to_datetime(data.get("createdAt")),
            updated_at=_to_datetime(data.get("updatedAt")),
        )


@dataclass(frozen=True)
class WishlistItem:
    product: Product
    id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "WishlistItem":
        if isinstance(data, dict) and "product" in data:
            return cls(id=normalize_id(data), product=Product.from_json(data["product"]))
        # some replies list the products directly
        return cls(id=normalize_id(data), product=Product.from_json(data))


@dataclass(frozen=True)
class UserProfile:
    id: str
    name: str
    email: str = ""
    role: str = "buyer"  # "buyer" or "seller"
    phone: str = ""
    address: str = ""
    img: str = ""

    @property
    def is_seller(self) -> bool:
        return self.role == "seller"

    @classmethod
    def from_json(cls, data: dict) -> "UserProfile":
        return cls(
            id=normalize_id(data) or "",
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "buyer").strip().lower(),
            phone=str(data.get("phone") or ""),
            address=str(data.get("address") or ""),
            img=str(data.get("img") or ""),
        )


@dataclass
class CardDetails:
    """Card fields typed into the payment form; sent only to the payment provider."""

    number: str
    exp_month: int
    exp_year: int
    cvc: str
