"""Shopify webhook receivers."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Response
from sqlalchemy.orm import Session

from wishlist_app.monitor.notifier import EmailNotifier
from wishlist_app.monitor.price_checker import ShopifyFactory
from wishlist_app.monitor.restock import process_product_update
from wishlist_app.services import shops as shop_service
from wishlist_app.services import wishlist as wishlist_service

from ..deps import get_db, get_notifier, get_shopify_factory

logger = logging.getLogger(__name__)

router = APIRouter()


def _ok() -> Response:
    return Response(status_code=200)


@router.post("/products/update")
async def products_update(
    payload: dict = Body(...),
    shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """Record the product's new state and send back-in-stock emails."""
    shop = shop_service.find_shop(db, shop_domain) if shop_domain else None
    if shop is None or "id" not in payload:
        return _ok()

    sent = await process_product_update(db, shop, payload, shopify_factory(shop), notifier)
    if sent:
        logger.info("Sent %d back-in-stock emails for %s product %s", sent, shop.shop_domain, payload["id"])
    return _ok()


@router.post("/orders/paid")
async def orders_paid(
    payload: dict = Body(...),
    shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
    db: Session = Depends(get_db),
):
    """Mark wishlisted products that were bought as purchased."""
    customer_id = (payload.get("customer") or {}).get("id")
    if not customer_id:
        return _ok()

    shop = shop_service.find_shop(db, shop_domain) if shop_domain else None
    if shop is None:
        return _ok()

    product_ids = [item.get("product_id") for item in payload.get("line_items") or []]
    wishlist_service.log_purchase_events(db, shop.id, int(customer_id), [pid for pid in product_ids if pid])
    return _ok()


@router.post("/app/uninstalled")
async def app_uninstalled(
    shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
    db: Session = Depends(get_db),
):
    if shop_domain:
        shop_service.mark_uninstalled(db, shop_domain)
    return _ok()


@router.post("/app/gdpr")
async def gdpr(
    payload: dict = Body(...),
    topic: Optional[str] = Header(None, alias="X-Shopify-Topic"),
    shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
    db: Session = Depends(get_db),
):
    """
    Mandatory privacy webhooks.

    Only numeric customer ids are stored, so a data request needs no export.
    """
    domain = shop_domain or payload.get("shop_domain")
    shop = shop_service.find_shop(db, domain) if domain else None
    if shop is None:
        return _ok()

    topic = (topic or "").lower()
    if topic == "customers/redact":
        customer_id = (payload.get("customer") or {}).get("id")
        if customer_id:
            shop_service.redact_customer(db, shop.id, int(customer_id))
    elif topic == "shop/redact":
        shop_service.redact_shop(db, shop.id)
    elif topic == "customers/data_request":
        logger.info("Data request for %s: only customer ids are stored", shop.shop_domain)

    return _ok()
