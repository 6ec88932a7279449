import os

# Avant tout import de l'app: pas de Redis réel pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import hashlib
import hmac
import itertools
import json
import time
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from storefront.app_setup.exceptions import SignatureInvalid
from storefront.app_setup.factory import create_app
from storefront.payments.stripe_client import get_stripe_gateway
from storefront.utils.security import require_user, require_admin

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class InMemoryStore:
    """
    Remplace les repositories Supabase par des tables en mémoire.
    Reproduit les contraintes utiles aux tests: unicité de payment_result->>id,
    clé (user_id, product_id) de la wishlist, écriture unique du customer Stripe.
    """

    def __init__(self):
        self.products: Dict[str, dict] = {}
        self.users: Dict[str, dict] = {}
        self.addresses: List[dict] = []
        self.wishlist: Dict[str, List[str]] = {}
        self.cart: Dict[str, Dict[str, int]] = {}
        self.orders: List[dict] = []
        self.decrements: List[tuple] = []
        self._seq = itertools.count(1)

    def _id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._seq)}"

    # --- seed ---

    def add_product(self, **fields) -> dict:
        product = {
            "id": fields.pop("id", None) or self._id("prod"),
            "name": "Produit",
            "description": "",
            "price": 20.0,
            "stock": 10,
            "category": "misc",
            "images": ["https://img.test/p.png"],
        }
        product.update(fields)
        self.products[product["id"]] = product
        return dict(product)

    def add_user(self, **fields) -> dict:
        user = {
            "id": fields.pop("id", None) or self._id("user"),
            "clerk_id": "clerk_x",
            "email": "user@example.com",
            "name": "User",
            "role": "user",
            "stripe_customer_id": None,
        }
        user.update(fields)
        self.users[user["id"]] = user
        return dict(user)

    def add_order(self, **fields) -> dict:
        order = {
            "id": self._id("order"),
            "user_id": "user-1",
            "order_items": [],
            "shipping_address": {},
            "payment_result": {"id": self._id("pi"), "status": "succeeded"},
            "total_price": 53.2,
            "status": "pending",
        }
        order.update(fields)
        self.orders.append(order)
        return dict(order)

    # --- products ---

    def list_products(self):
        return [dict(p) for p in self.products.values()]

    def get_product(self, product_id):
        p = self.products.get(product_id)
        return dict(p) if p else None

    def fetch_products_by_ids(self, ids):
        return [dict(self.products[i]) for i in ids if i in self.products]

    def create_product(self, data):
        return self.add_product(**data)

    def update_product(self, product_id, data):
        if product_id not in self.products:
            return None
        self.products[product_id].update(data)
        return dict(self.products[product_id])

    def delete_product(self, product_id):
        return self.products.pop(product_id, None) is not None

    def decrement_stock(self, product_id, quantity):
        self.decrements.append((product_id, quantity))
        p = self.products.get(product_id)
        if not p:
            return None
        p["stock"] = max(int(p["stock"]) - int(quantity), 0)
        return p["stock"]

    def count_products(self):
        return len(self.products)

    # --- users ---

    def get_user_by_clerk_id(self, clerk_id):
        for u in self.users.values():
            if u.get("clerk_id") == clerk_id:
                return dict(u)
        return None

    def upsert_user_profile(self, clerk_id, email=None, name=None, image_url=None):
        row = next((u for u in self.users.values() if u.get("clerk_id") == clerk_id), None)
        if row is None:
            created = self.add_user(clerk_id=clerk_id, email=None, name=None)
            row = self.users[created["id"]]
        for key, value in (("email", email), ("name", name), ("image_url", image_url)):
            if value:
                row[key] = value
        return dict(row)

    def set_stripe_customer_id(self, user_id, customer_id):
        u = self.users.get(user_id)
        if not u or u.get("stripe_customer_id"):
            return False
        u["stripe_customer_id"] = customer_id
        return True

    def list_customers(self, limit=100):
        return [dict(u) for u in self.users.values()][:limit]

    def count_customers(self):
        return len(self.users)

    def list_addresses(self, user_id):
        return [dict(a) for a in self.addresses if a["user_id"] == user_id]

    def get_address(self, user_id, address_id):
        for a in self.addresses:
            if a["user_id"] == user_id and a["id"] == address_id:
                return dict(a)
        return None

    def clear_default_addresses(self, user_id):
        for a in self.addresses:
            if a["user_id"] == user_id:
                a["is_default"] = False

    def insert_address(self, user_id, data):
        row = {"id": self._id("addr"), "user_id": user_id, **data}
        self.addresses.append(row)
        return dict(row)

    def update_address(self, user_id, address_id, data):
        for a in self.addresses:
            if a["user_id"] == user_id and a["id"] == address_id:
                a.update(data)
                return dict(a)
        return None

    def delete_address(self, user_id, address_id):
        before = len(self.addresses)
        self.addresses = [a for a in self.addresses if not (a["user_id"] == user_id and a["id"] == address_id)]
        return len(self.addresses) < before

    def list_wishlist_product_ids(self, user_id):
        return list(self.wishlist.get(user_id, []))

    def insert_wishlist_item(self, user_id, product_id):
        items = self.wishlist.setdefault(user_id, [])
        if product_id in items:
            return False
        items.append(product_id)
        return True

    def delete_wishlist_item(self, user_id, product_id):
        items = self.wishlist.get(user_id, [])
        if product_id not in items:
            return False
        items.remove(product_id)
        return True

    # --- cart ---

    def cart_list_items(self, user_id):
        return [{"id": f"{user_id}:{pid}", "product_id": pid, "quantity": q} for pid, q in self.cart.get(user_id, {}).items()]

    def cart_get_item(self, user_id, product_id):
        qty = self.cart.get(user_id, {}).get(product_id)
        return {"id": f"{user_id}:{product_id}", "product_id": product_id, "quantity": qty} if qty else None

    def cart_set_quantity(self, user_id, product_id, quantity):
        self.cart.setdefault(user_id, {})[product_id] = quantity

    def cart_delete_item(self, user_id, product_id):
        return self.cart.get(user_id, {}).pop(product_id, None) is not None

    def cart_clear(self, user_id):
        self.cart.pop(user_id, None)

    # --- orders ---

    def find_order_by_payment_id(self, payment_intent_id):
        for o in self.orders:
            if (o.get("payment_result") or {}).get("id") == payment_intent_id:
                return {"id": o["id"], "payment_result": o["payment_result"]}
        return None

    def insert_order(self, row):
        payment_id = (row.get("payment_result") or {}).get("id")
        if any((o.get("payment_result") or {}).get("id") == payment_id for o in self.orders):
            return None
        order = {"id": self._id("order"), **row}
        self.orders.append(order)
        return dict(order)

    def fetch_user_orders(self, user_id, limit=50):
        return [dict(o) for o in reversed(self.orders) if o["user_id"] == user_id][:limit]

    def get_user_order(self, user_id, order_id):
        for o in self.orders:
            if o["user_id"] == user_id and o["id"] == order_id:
                return dict(o)
        return None

    def fetch_admin_orders(self, limit=100):
        return [dict(o) for o in reversed(self.orders)][:limit]

    def fetch_order_totals(self):
        return [float(o.get("total_price") or 0) for o in self.orders]

    def install(self, monkeypatch) -> None:
        patches = {
            "storefront.products.repository": [
                "list_products", "get_product", "fetch_products_by_ids", "create_product",
                "update_product", "delete_product", "decrement_stock", "count_products",
            ],
            "storefront.users.repository": [
                "get_user_by_clerk_id", "upsert_user_profile", "set_stripe_customer_id",
                "list_customers", "count_customers", "list_addresses", "get_address",
                "clear_default_addresses", "insert_address", "update_address", "delete_address",
                "list_wishlist_product_ids", "insert_wishlist_item", "delete_wishlist_item",
            ],
            "storefront.payments.repository": ["find_order_by_payment_id", "insert_order"],
            "storefront.orders.repository": [
                "fetch_user_orders", "get_user_order", "fetch_admin_orders", "fetch_order_totals",
            ],
        }
        for module, names in patches.items():
            for name in names:
                monkeypatch.setattr(f"{module}.{name}", getattr(self, name))
        for name in ("list_items", "get_item", "set_quantity", "delete_item", "clear"):
            monkeypatch.setattr(f"storefront.cart.repository.{name}", getattr(self, f"cart_{name}"))


class FakeGateway:
    """Passerelle Stripe factice: enregistre les appels, aucun accès réseau."""

    def __init__(self):
        self.calls: List[tuple] = []
        self._customers = itertools.count(1)

    def create_customer(self, *, email, name, metadata, idempotency_key=None):
        customer_id = f"cus_test_{next(self._customers)}"
        self.calls.append(("create_customer", {"email": email, "name": name, "metadata": metadata, "idempotency_key": idempotency_key}))
        return {"id": customer_id}

    def create_payment_intent(self, *, amount, currency, customer_id, metadata):
        self.calls.append(("create_payment_intent", {"amount": amount, "currency": currency, "customer_id": customer_id, "metadata": metadata}))
        return {"id": "pi_test_1", "client_secret": "pi_test_1_secret_abc", "amount": amount}

    def construct_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        self.calls.append(("construct_event", sig_header))
        if sig_header != "valid":
            raise SignatureInvalid("Webhook Error: signature invalide")
        return json.loads(payload)

    def calls_named(self, name: str) -> List[dict]:
        return [kwargs for call, kwargs in self.calls if call == name]


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature: t=<ts>,v1=HMAC_SHA256(secret, "<ts>.<payload>")."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture(autouse=True)
def store(monkeypatch) -> InMemoryStore:
    """Aucun test n'atteint Supabase: repositories remplacés par des tables en mémoire."""
    s = InMemoryStore()
    s.install(monkeypatch)
    return s

@pytest.fixture
def user(store) -> Dict[str, Any]:
    return store.add_user(id="user-1", clerk_id="clerk_1", email="jane@example.com", name="Jane")

@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()

# Simuler un utilisateur authentifié et la passerelle Stripe pour les endpoints
@pytest.fixture(autouse=True)
def _override_dependencies(app, user, gateway):
    app.dependency_overrides[require_user] = lambda: user
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)
        app.dependency_overrides.pop(get_stripe_gateway, None)

@pytest.fixture
def admin_client(app, client):
    def _override_require_admin():
        return {"id": "admin-1", "clerk_id": "clerk_admin", "role": "admin", "email": "admin@example.com"}
    app.dependency_overrides[require_admin] = _override_require_admin
    yield client
    app.dependency_overrides.pop(require_admin, None)

@pytest.fixture
def sign():
    """Signe un corps de webhook comme Stripe (voir sign_payload)."""
    return sign_payload
