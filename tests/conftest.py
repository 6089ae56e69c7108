# tests/conftest.py
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from wishlist_app.api.main import create_app
from wishlist_app.core.config import Settings
from wishlist_app.db import (
    DEFAULT_SETTINGS,
    ProductSnapshot,
    Shop,
    WishlistItem,
    create_session_factory,
)
from wishlist_app.monitor.notifier import NotificationResult
from wishlist_app.shopify.base import CustomerInfo, ProductState
from wishlist_app.shopify.client import ShopifyAPIError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeShopifyClient:
    """In-memory stand-in for ShopifyClient."""

    def __init__(self, shop_domain, products=None, customers=None, fail_products=False):
        self.shop_domain = shop_domain
        self.products = {p["id"]: p for p in (products or [])}
        self.customers = customers or {}
        self.fail_products = fail_products
        self.product_calls = []
        self.customer_calls = []

    async def get_products(self, product_ids):
        ids = list(product_ids)
        self.product_calls.append(ids)
        if self.fail_products:
            raise ShopifyAPIError(self.shop_domain, 503, "unavailable")
        return [ProductState.from_payload(self.products[pid]) for pid in ids if pid in self.products]

    async def get_customer(self, customer_id):
        self.customer_calls.append(customer_id)
        data = self.customers.get(customer_id)
        if isinstance(data, Exception):
            raise data
        if data is None:
            return None
        return CustomerInfo.from_payload(data)


class FakeShopifyFactory:
    """Hands out one FakeShopifyClient per shop domain and records each request."""

    def __init__(self):
        self.clients = {}
        self.calls = []

    def add(self, shop_domain, **kwargs) -> FakeShopifyClient:
        client = FakeShopifyClient(shop_domain, **kwargs)
        self.clients[shop_domain] = client
        return client

    def __call__(self, shop):
        self.calls.append(shop.shop_domain)
        return self.clients.setdefault(shop.shop_domain, FakeShopifyClient(shop.shop_domain))


class FakeNotifier:
    """Records emails instead of sending them."""

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.price_drops = []
        self.back_in_stock = []

    def _result(self):
        if self.succeed:
            return NotificationResult(success=True, message_id="msg_123")
        return NotificationResult(success=False, error="rejected")

    def send_price_drop_alert(self, **kwargs):
        self.price_drops.append(kwargs)
        return self._result()

    def send_back_in_stock_alert(self, **kwargs):
        self.back_in_stock.append(kwargs)
        return self._result()


def product_payload(product_id, price, inventory=5, title=None, handle=None):
    return {
        "id": product_id,
        "title": title or f"Product {product_id}",
        "handle": handle or f"product-{product_id}",
        "variants": [{"price": str(price), "inventory_quantity": inventory}],
    }


def customer_payload(customer_id, email, first_name="Alex"):
    return {"id": customer_id, "email": email, "first_name": first_name}


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_shop(db):
    def _make(domain="acme.myshopify.com", notify_price_drop=True, notify_back_in_stock=True, **fields):
        shop = Shop(
            shop_domain=domain,
            access_token="shpat_test",
            settings={
                **DEFAULT_SETTINGS,
                "notify_price_drop": notify_price_drop,
                "notify_back_in_stock": notify_back_in_stock,
            },
            **fields,
        )
        db.add(shop)
        db.commit()
        return shop

    return _make


@pytest.fixture
def add_wishlist(db):
    def _add(shop, customer_id, product_id, created_at=None):
        item = WishlistItem(
            shop_id=shop.id,
            customer_id=customer_id,
            product_id=product_id,
            created_at=created_at or NOW,
        )
        db.add(item)
        db.commit()
        return item

    return _add


@pytest.fixture
def add_snapshot(db):
    def _add(shop, product_id, price, inventory=5, captured_at=None):
        snapshot = ProductSnapshot(
            shop_id=shop.id,
            product_id=product_id,
            price=Decimal(str(price)),
            inventory_quantity=inventory,
            captured_at=captured_at or NOW,
        )
        db.add(snapshot)
        db.commit()
        return snapshot

    return _add


@pytest.fixture
def shopify_factory():
    return FakeShopifyFactory()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        CRON_SECRET="test-secret",
        RESEND_API_KEY="re_test",
    )


@pytest.fixture
def test_client(settings, session_factory, notifier, shopify_factory):
    """Provide a test client wired to the in-memory database and fakes."""
    app = create_app(
        settings=settings,
        session_factory=session_factory,
        notifier=notifier,
        shopify_factory=shopify_factory,
    )
    with TestClient(app) as client:
        yield client
