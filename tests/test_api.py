"""HTTP route tests."""
from datetime import timedelta

from sqlalchemy import func, select

from wishlist_app.api.routes.cron import is_authorized
from wishlist_app.db import NotificationLog, Shop, WishlistEvent, WishlistEventType, WishlistItem
from wishlist_app.monitor.snapshots import get_last_snapshot

from .conftest import NOW, customer_payload, product_payload

AUTH = {"Authorization": "Bearer test-secret"}


def _count(db, model, *conditions):
    db.expire_all()
    return db.execute(select(func.count()).select_from(model).where(*conditions)).scalar_one()


# Cron

def test_cron_rejects_missing_or_wrong_token(test_client):
    assert test_client.post("/api/cron/check-prices").status_code == 401

    response = test_client.post("/api/cron/check-prices", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_cron_rejects_non_ascii_token(test_client):
    response = test_client.post(
        "/api/cron/check-prices",
        headers={"Authorization": "Bearer t\xe9st-secret".encode("latin-1")},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert not is_authorized("Bearer t\u00e9st", "test-secret")


def test_cron_without_shops(test_client):
    response = test_client.get("/api/cron/check-prices", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"message": "No active shops"}


def test_cron_sends_price_drop_notifications(test_client, make_shop, add_wishlist, add_snapshot, shopify_factory, notifier, db):
    shop = make_shop()
    add_wishlist(shop, customer_id=1, product_id=100)
    add_snapshot(shop, 100, "80.00", captured_at=NOW - timedelta(days=1))
    shopify_factory.add(
        shop.shop_domain,
        products=[product_payload(100, "60.00")],
        customers={1: customer_payload(1, "alex@shopper.io")},
    )

    response = test_client.post("/api/cron/check-prices", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"success": True, "notifications": 1}
    assert len(notifier.price_drops) == 1

    again = test_client.post("/api/cron/check-prices", headers=AUTH)
    assert again.json() == {"success": True, "notifications": 0}
    assert _count(db, NotificationLog) == 1


def test_cron_unexpected_error_returns_500(test_client, make_shop, mocker):
    make_shop()
    mocker.patch("wishlist_app.api.routes.cron.run_price_check", side_effect=RuntimeError("db down"))

    response = test_client.post("/api/cron/check-prices", headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Cron job failed"}


# Storefront proxy

def test_proxy_toggle_and_check(test_client):
    params = {"shop": "acme.myshopify.com", "logged_in_customer_id": 7}

    added = test_client.post("/api/proxy", params=params, json={"productId": 100})
    assert added.status_code == 200
    assert added.json() == {"wishlisted": True}

    check = test_client.get("/api/proxy", params={**params, "action": "check", "products": "100,200"})
    assert check.json() == {"wishlisted": [100]}

    listed = test_client.get("/api/proxy", params={**params, "action": "list"})
    assert [p["product_id"] for p in listed.json()["products"]] == [100]

    removed = test_client.post("/api/proxy", params=params, json={"productId": 100})
    assert removed.json() == {"wishlisted": False}


def test_proxy_requires_login(test_client):
    response = test_client.post("/api/proxy", params={"shop": "acme.myshopify.com"}, json={"productId": 100})
    assert response.status_code == 401

    response = test_client.get("/api/proxy", params={"shop": "acme.myshopify.com", "action": "list"})
    assert response.status_code == 401


def test_proxy_settings_available_without_login(test_client, make_shop):
    make_shop()

    response = test_client.get("/api/proxy", params={"shop": "acme.myshopify.com", "action": "settings"})

    assert response.status_code == 200
    assert response.json()["settings"]["button_style"] == "icon"


def test_proxy_guest_with_empty_customer_id(test_client, make_shop):
    make_shop()
    guest = {"shop": "acme.myshopify.com", "logged_in_customer_id": ""}

    settings = test_client.get("/api/proxy", params={**guest, "action": "settings"})
    assert settings.status_code == 200
    assert settings.json()["settings"]["button_color"] == "#000000"

    check = test_client.get("/api/proxy", params={**guest, "action": "check", "products": "1"})
    assert check.status_code == 401

    listed = test_client.get("/api/proxy", params={**guest, "action": "list"})
    assert listed.status_code == 401

    toggle = test_client.post("/api/proxy", params=guest, json={"productId": 1})
    assert toggle.status_code == 401

    garbage = test_client.get("/api/proxy", params={**guest, "logged_in_customer_id": "abc", "action": "list"})
    assert garbage.status_code == 401


def test_proxy_bad_requests(test_client):
    params = {"shop": "acme.myshopify.com", "logged_in_customer_id": 7}

    assert test_client.get("/api/proxy", params={**params, "action": "check"}).status_code == 400
    assert test_client.get("/api/proxy", params={**params, "action": "explode"}).status_code == 400
    assert test_client.post("/api/proxy", params=params, json={}).status_code == 400


# Webhooks

def test_products_update_webhook_sends_back_in_stock(test_client, make_shop, add_wishlist, add_snapshot, shopify_factory, notifier, db):
    shop = make_shop()
    add_wishlist(shop, customer_id=1, product_id=100)
    add_snapshot(shop, 100, "25.00", inventory=0, captured_at=NOW - timedelta(days=1))
    shopify_factory.add(shop.shop_domain, customers={1: customer_payload(1, "alex@shopper.io")})

    response = test_client.post(
        "/webhooks/products/update",
        json=product_payload(100, "25.00", inventory=3),
        headers={"X-Shopify-Shop-Domain": shop.shop_domain, "X-Shopify-Topic": "products/update"},
    )

    assert response.status_code == 200
    assert len(notifier.back_in_stock) == 1
    db.expire_all()
    assert get_last_snapshot(db, shop.id, 100).inventory_quantity == 3


def test_products_update_webhook_unknown_shop(test_client, notifier):
    response = test_client.post(
        "/webhooks/products/update",
        json=product_payload(100, "25.00"),
        headers={"X-Shopify-Shop-Domain": "ghost.myshopify.com"},
    )

    assert response.status_code == 200
    assert notifier.back_in_stock == []


def test_orders_paid_webhook_logs_purchases(test_client, make_shop, add_wishlist, db):
    shop = make_shop()
    add_wishlist(shop, customer_id=7, product_id=100)

    response = test_client.post(
        "/webhooks/orders/paid",
        json={"customer": {"id": 7}, "line_items": [{"product_id": 100}, {"product_id": 300}]},
        headers={"X-Shopify-Shop-Domain": shop.shop_domain},
    )

    assert response.status_code == 200
    assert _count(db, WishlistEvent, WishlistEvent.event_type == WishlistEventType.PURCHASED) == 1


def test_app_uninstalled_webhook(test_client, make_shop, db):
    shop = make_shop()

    response = test_client.post(
        "/webhooks/app/uninstalled",
        json={},
        headers={"X-Shopify-Shop-Domain": shop.shop_domain},
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Shop, shop.id).uninstalled_at is not None


def test_gdpr_customer_redact(test_client, make_shop, add_wishlist, db):
    shop = make_shop()
    add_wishlist(shop, customer_id=7, product_id=100)
    add_wishlist(shop, customer_id=8, product_id=100)

    response = test_client.post(
        "/webhooks/app/gdpr",
        json={"shop_domain": shop.shop_domain, "customer": {"id": 7}},
        headers={"X-Shopify-Topic": "customers/redact"},
    )

    assert response.status_code == 200
    assert _count(db, WishlistItem, WishlistItem.shop_id == shop.id) == 1


# Admin

def test_admin_settings_roundtrip(test_client, make_shop):
    make_shop(notify_price_drop=False)

    response = test_client.put(
        "/api/admin/acme.myshopify.com/settings",
        json={"notify_price_drop": True, "button_style": "icon_text"},
    )
    assert response.status_code == 200
    assert response.json()["settings"]["notify_price_drop"] is True

    current = test_client.get("/api/admin/acme.myshopify.com/settings").json()["settings"]
    assert current["button_style"] == "icon_text"


def test_admin_settings_validation(test_client):
    response = test_client.put("/api/admin/acme.myshopify.com/settings", json={"button_color": "red"})

    assert response.status_code == 422


def test_admin_wishlists_and_export(test_client, make_shop, add_wishlist):
    shop = make_shop()
    add_wishlist(shop, customer_id=7, product_id=100)
    add_wishlist(shop, customer_id=8, product_id=100)

    page = test_client.get("/api/admin/acme.myshopify.com/wishlists", params={"limit": 1}).json()
    assert page["total"] == 2
    assert len(page["wishlists"]) == 1

    export = test_client.get("/api/admin/acme.myshopify.com/wishlists/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert export.headers["content-disposition"] == 'attachment; filename="wishlists.csv"'
    assert export.text.splitlines()[0] == "Customer ID,Product ID,Date Added"

    top = test_client.get("/api/admin/acme.myshopify.com/top-products").json()
    assert top == {"products": [{"product_id": 100, "count": 2}]}


def test_admin_dashboard(test_client, make_shop, add_wishlist):
    shop = make_shop()
    add_wishlist(shop, customer_id=7, product_id=100)

    body = test_client.get("/api/admin/acme.myshopify.com/dashboard").json()

    assert body["stats"]["total_wishlists"] == 1
    assert body["top_products"] == [{"product_id": 100, "count": 1}]


def test_health(test_client):
    assert test_client.get("/health").json() == {"status": "healthy"}
