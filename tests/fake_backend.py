"""
In-process stand-in for the profile, catalog and order services plus the
payment provider, served by aiohttp.web under one TestServer:

    /profile/...  /catalog/...  /orders/...  /stripe/...
"""

import itertools
import os
import sys
import tempfile
from typing import Any, Dict, List, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.backend import Backend  # noqa: E402
from api.payment import StripePaymentProvider  # noqa: E402
from db import database as db_database  # noqa: E402

TOKEN = "token-alice"
SELLER_TOKEN = "token-bob"
DECLINED_CARD = "4000000000000002"


def product(pid: str, name: str, price: float, **extra) -> Dict[str, Any]:
    data = {
        "_id": pid,
        "name": name,
        "price": price,
        "stock": 10,
        "available": True,
        "desc": f"{name} description",
        "type": "Electronics",
        "sizes": [],
        "colors": [],
        "img": [],
        "seller": {"_id": "u-bob", "name": "Bob"},
    }
    data.update(extra)
    return data


class FakeStore:
    """Server-side state. Tests inspect and mutate it directly."""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {
            "alice@example.com": {
                "password": "pw",
                "token": TOKEN,
                "profile": {
                    "_id": "u-alice",
                    "name": "Alice",
                    "email": "alice@example.com",
                    "role": "Buyer",
                    "phone": "555-0100",
                    "address": "1 Main St",
                },
            },
            "bob@example.com": {
                "password": "pw",
                "token": SELLER_TOKEN,
                "profile": {
                    "_id": "u-bob",
                    "name": "Bob",
                    "email": "bob@example.com",
                    "role": "Seller",
                },
            },
        }
        self.products: Dict[str, Dict[str, Any]] = {
            "p1": product("p1", "Laptop", 999.99, sizes=["13in", "15in"]),
            "p2": product("p2", "T-Shirt", 19.5, type="Fashion", sizes=["S", "M"], colors=["Red"]),
            "p3": product("p3", "Mug", 7.25, type="Home and Kitchen"),
        }
        self.cart: List[Dict[str, Any]] = []
        self.wishlist: List[str] = []
        self.orders: List[Dict[str, Any]] = []
        self.sales: List[Dict[str, Any]] = []
        self.intents: List[int] = []
        self.requests: List[Dict[str, Any]] = []
        # "METHOD /path" -> (status, body) forced replies
        self.failures: Dict[str, tuple] = {}
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def user_for(self, request: web.Request) -> Optional[Dict[str, Any]]:
        auth = request.headers.get("Authorization", "")
        for user in self.users.values():
            if auth == f"Bearer {user['token']}":
                return user
        return None

    def add_cart_line(self, pid: str, amount: int = 1, size=None, color=None):
        self.cart.append(
            {
                "_id": self.next_id("c"),
                "product": self.products[pid],
                "amount": amount,
                "size": size,
                "color": color,
            }
        )


def _json(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status)


def _seller_id(p: Dict[str, Any]) -> Optional[str]:
    seller = p.get("seller")
    return seller.get("_id") if isinstance(seller, dict) else seller


def build_app(store: FakeStore) -> web.Application:
    routes = web.RouteTableDef()

    @web.middleware
    async def record(request: web.Request, handler):
        body = None
        if request.can_read_body:
            if request.content_type == "application/json":
                body = await request.json()
            else:
                body = dict(await request.post())
        store.requests.append(
            {"method": request.method, "path": request.path, "body": body}
        )
        forced = store.failures.get(f"{request.method} {request.path}")
        if forced is not None:
            status, payload = forced
            return _json(payload, status)
        if request.path.startswith(("/profile/", "/catalog/", "/orders/")) and not (
            request.path in ("/profile/login", "/profile/signup")
        ):
            if store.user_for(request) is None:
                return _json({"error": "Unauthorized"}, 401)
        return await handler(request)

    # ---------- profile ----------

    @routes.post("/profile/login")
    async def login(request):
        data = await request.json()
        user = store.users.get(data.get("email"))
        if user is None or user["password"] != data.get("password"):
            return _json({"error": "Invalid credentials"}, 401)
        return _json({"token": user["token"]})

    @routes.post("/profile/signup")
    async def signup(request):
        data = await request.json()
        if data["email"] in store.users:
            return _json({"message": "Email already registered"}, 409)
        uid = store.next_id("nu")
        store.users[data["email"]] = {
            "password": data["password"],
            "token": f"token-{uid}",
            "profile": {
                "_id": uid,
                "name": data["name"],
                "email": data["email"],
                "role": data["role"],
            },
        }
        return _json({"message": "ok"}, 201)

    @routes.get("/profile/")
    async def get_profile(request):
        return _json(store.user_for(request)["profile"])

    @routes.put("/profile/profile")
    async def update_profile(request):
        profile = store.user_for(request)["profile"]
        profile.update(await request.json())
        return _json({"profile": profile})

    @routes.get("/profile/seller-profile/{sid}")
    async def seller_profile(request):
        for user in store.users.values():
            if user["profile"]["_id"] == request.match_info["sid"]:
                return _json(user["profile"])
        return _json({"error": "Seller not found"}, 404)

    # ---------- catalog ----------

    @routes.get("/catalog/")
    async def list_products(request):
        return _json(list(store.products.values()))

    @routes.get("/catalog/search/{q}")
    async def search(request):
        q = request.match_info["q"].lower()
        return _json(
            {"products": [p for p in store.products.values() if q in p["name"].lower()]}
        )

    @routes.get("/catalog/category/{type}")
    async def by_category(request):
        t = request.match_info["type"]
        return _json([p for p in store.products.values() if p["type"] == t])

    @routes.put("/catalog/cart")
    async def manage_cart(request):
        data = await request.json()
        pid = data["product"]["_id"]
        store.cart = [c for c in store.cart if c["product"]["_id"] != pid]
        if not data["isRemove"]:
            sizes = data["product"].get("sizes") or [None]
            colors = data["product"].get("colors") or [None]
            store.add_cart_line(pid, data["amount"], sizes[0], colors[0])
        return _json({"items": store.cart})

    @routes.get("/catalog/wishlist")
    async def list_wishlist(request):
        return _json([{"_id": f"w-{pid}", "product": store.products[pid]} for pid in store.wishlist])

    @routes.put("/catalog/wishlist")
    async def manage_wishlist(request):
        data = await request.json()
        pid = data["product"]["_id"]
        if data["isRemove"]:
            store.wishlist = [w for w in store.wishlist if w != pid]
        elif pid not in store.wishlist:
            store.wishlist.append(pid)
        return _json({"wishlist": store.wishlist})

    @routes.post("/catalog/product/create")
    async def create_product(request):
        data = await request.json()
        pid = store.next_id("np")
        data.update({"_id": pid, "seller": store.user_for(request)["profile"]["_id"]})
        store.products[pid] = data
        return _json(data, 201)

    @routes.put("/catalog/product/{pid}")
    async def update_product(request):
        pid = request.match_info["pid"]
        if pid not in store.products:
            return _json({"error": "Product not found"}, 404)
        store.products[pid].update(await request.json())
        return _json(store.products[pid])

    @routes.delete("/catalog/product/{pid}")
    async def delete_product(request):
        if store.products.pop(request.match_info["pid"], None) is None:
            return _json({"error": "Product not found"}, 404)
        return web.Response(status=204)

    @routes.get("/catalog/products/seller")
    async def my_products(request):
        uid = store.user_for(request)["profile"]["_id"]
        return _json([p for p in store.products.values() if _seller_id(p) == uid])

    @routes.get("/catalog/seller-products/{sid}")
    async def seller_products(request):
        sid = request.match_info["sid"]
        return _json(
            {
                "products": [
                    p
                    for p in store.products.values()
                    if isinstance(p.get("seller"), dict) and p["seller"]["_id"] == sid
                ]
            }
        )

    @routes.get("/catalog/{pid}")
    async def get_product(request):
        p = store.products.get(request.match_info["pid"])
        if p is None:
            return _json({"error": "Product not found"}, 404)
        return _json(p)

    # ---------- orders ----------

    @routes.get("/orders/cart")
    async def fetch_cart(request):
        return _json([{"_id": "cart-1", "items": store.cart}])

    @routes.post("/orders/create-payment-intent")
    async def create_payment_intent(request):
        data = await request.json()
        store.intents.append(data["total"])
        n = len(store.intents)
        return _json({"paymentIntent": f"pi_{n}_secret_s{n}"})

    @routes.post("/orders/order")
    async def create_order(request):
        data = await request.json()
        n = len(store.orders) + 1
        order = {
            "_id": f"o{n}",
            "orderId": str(1000 + n),
            "amount": data["amount"],
            "status": data["status"],
            "items": data["items"],
            "createdAt": "2026-10-19T10:00:00Z",
        }
        store.orders.append(order)
        store.cart = []
        return _json(order, 201)

    @routes.get("/orders/orders")
    async def list_orders(request):
        return _json(store.orders)

    @routes.get("/orders/seller-sales")
    async def seller_sales(request):
        return _json(store.sales)

    @routes.put("/orders/sales/{number}")
    async def update_status(request):
        data = await request.json()
        for sale in store.sales:
            if sale["orderId"] == request.match_info["number"]:
                sale["status"] = data["status"]
                return _json(sale)
        return _json({"error": "Order not found"}, 404)

    # ---------- payment provider ----------

    @routes.post("/stripe/payment_intents/{pi}/confirm")
    async def confirm(request):
        form = await request.post()
        if form["payment_method_data[card][number]"] == DECLINED_CARD:
            return _json({"error": {"message": "Your card was declined."}}, 402)
        return _json({"id": request.match_info["pi"], "status": "succeeded"})

    app = web.Application(middlewares=[record])
    app.add_routes(routes)
    return app


class FakeBackendMixin:
    """
    For IsolatedAsyncioTestCase: starts the fake services and builds a
    Backend pointed at them as ``self.backend``. The local mirror is
    redirected to a temporary file.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "mirror.sqlite")
        db_database._initialized = False

    def tearDown(self):
        self.temp_dir.cleanup()

    async def asyncSetUp(self):
        self.store = FakeStore()
        self.server = TestServer(build_app(self.store))
        await self.server.start_server()
        base = str(self.server.make_url("/"))
        self.backend = Backend(
            profile_url=base + "profile/",
            catalog_url=base + "catalog/",
            order_url=base + "orders/",
        )
        self.backend.payments = StripePaymentProvider(
            self.backend.session,
            publishable_key="pk_test",
            base_url=base + "stripe/",
        )

    async def asyncTearDown(self):
        await self.backend.close()
        await self.server.close()

    def login_as_buyer(self):
        self.backend.set_token(TOKEN)

    def login_as_seller(self):
        self.backend.set_token(SELLER_TOKEN)

    def requests_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [
            r for r in self.store.requests if r["method"] == method and r["path"] == path
        ]
