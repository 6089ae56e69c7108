"""Back-in-stock notifications driven by products/update webhooks."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wishlist_app.db.models import NotificationType, Shop, WishlistItem, utcnow
from wishlist_app.shopify.base import ProductState
from wishlist_app.shopify.client import ShopifyClient

from .notification_log import log_notification, was_notified_today
from .notifier import EmailNotifier, is_valid_email
from .snapshots import get_last_snapshot, record_snapshot

logger = logging.getLogger(__name__)


def came_back_in_stock(previous_quantity: Optional[int], current_quantity: int) -> bool:
    return previous_quantity == 0 and current_quantity > 0


async def process_product_update(
    session: Session,
    shop: Shop,
    payload: dict,
    shopify: ShopifyClient,
    notifier: EmailNotifier,
    now: Optional[datetime] = None,
) -> int:
    """
    Handle a products/update webhook body.

    Emails every customer with the product wishlisted when it goes from zero
    inventory to positive, then records the new snapshot.

    Returns:
        Number of back-in-stock emails sent
    """
    now = now or utcnow()
    product = ProductState.from_payload(payload)
    sent = 0

    if shop.setting("notify_back_in_stock"):
        last = get_last_snapshot(session, shop.id, product.product_id)
        previous = last.inventory_quantity if last else None

        if came_back_in_stock(previous, product.inventory_quantity):
            customer_ids = session.execute(
                select(WishlistItem.customer_id).where(
                    WishlistItem.shop_id == shop.id,
                    WishlistItem.product_id == product.product_id,
                )
            ).scalars().all()

            for customer_id in customer_ids:
                if was_notified_today(
                    session, shop.id, customer_id, product.product_id, NotificationType.BACK_IN_STOCK, now=now
                ):
                    continue

                try:
                    customer = await shopify.get_customer(customer_id)
                    if customer is None or not is_valid_email(customer.email):
                        continue

                    result = notifier.send_back_in_stock_alert(
                        to_email=customer.email,
                        customer_name=customer.greeting_name,
                        product_title=product.title,
                        product_url=product.url(shop.shop_domain),
                        shop_name=shop.display_name,
                    )
                    if not result.success:
                        logger.error("Failed to send back-in-stock email to customer %s: %s", customer_id, result.error)
                        continue

                    log_notification(
                        session, shop.id, customer_id, product.product_id, NotificationType.BACK_IN_STOCK, now=now
                    )
                    sent += 1

                except Exception:
                    logger.exception("Failed to send back-in-stock email to customer %s", customer_id)
                    session.rollback()

    record_snapshot(session, shop.id, product, now=now)
    return sent
