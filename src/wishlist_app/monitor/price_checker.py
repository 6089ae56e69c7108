"""Scheduled price-drop sweep over every shop's wishlisted products."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from wishlist_app.db.models import NotificationType, Shop, WishlistItem, utcnow
from wishlist_app.shopify.base import ProductState
from wishlist_app.shopify.client import ShopifyAPIError, ShopifyClient

from .notification_log import log_notification, was_notified_today
from .notifier import EmailNotifier, is_valid_email
from .snapshots import drop_fraction, get_last_snapshot, is_price_drop, record_snapshot

logger = logging.getLogger(__name__)

ShopifyFactory = Callable[[Shop], ShopifyClient]


@dataclass
class PriceCheck:
    """Result of comparing a product against its last snapshot."""

    shop_id: str
    product_id: int
    old_price: Optional[Decimal]
    new_price: Decimal
    drop_percent: float
    price_dropped: bool
    checked_at: datetime


@dataclass
class PriceCheckSummary:
    """Aggregate outcome of one sweep."""

    shops_total: int = 0
    shops_checked: int = 0
    shops_failed: int = 0
    products_checked: int = 0
    price_drops: int = 0
    notifications: int = 0
    failed_shops: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "shops_total": self.shops_total,
            "shops_checked": self.shops_checked,
            "shops_failed": self.shops_failed,
            "products_checked": self.products_checked,
            "price_drops": self.price_drops,
            "notifications": self.notifications,
            "failed_shops": list(self.failed_shops),
        }


def compare_to_snapshot(shop_id: str, state: ProductState, old_price: Optional[Decimal], now: datetime) -> PriceCheck:
    if old_price is None:
        return PriceCheck(
            shop_id=shop_id,
            product_id=state.product_id,
            old_price=None,
            new_price=state.price,
            drop_percent=0.0,
            price_dropped=False,
            checked_at=now,
        )

    return PriceCheck(
        shop_id=shop_id,
        product_id=state.product_id,
        old_price=Decimal(str(old_price)),
        new_price=state.price,
        drop_percent=float(drop_fraction(old_price, state.price) * 100),
        price_dropped=is_price_drop(old_price, state.price),
        checked_at=now,
    )


class PriceChecker:
    """Detect price drops for wishlisted products and email the customers."""

    def __init__(
        self,
        session: Session,
        shopify_factory: ShopifyFactory,
        notifier: EmailNotifier,
        now: Optional[datetime] = None,
    ):
        self.session = session
        self.shopify_factory = shopify_factory
        self.notifier = notifier
        self.now = now or utcnow()

    def get_active_shops(self) -> list[Shop]:
        stmt = select(Shop).where(Shop.uninstalled_at.is_(None)).order_by(Shop.created_at)
        return list(self.session.execute(stmt).scalars())

    def get_wishlisted_customers(self, shop_id: str) -> dict[int, list[int]]:
        """Map product id -> customer ids who wishlisted it, in insertion order."""
        stmt = (
            select(WishlistItem.product_id, WishlistItem.customer_id)
            .where(WishlistItem.shop_id == shop_id)
            .order_by(WishlistItem.created_at)
        )
        customers: dict[int, list[int]] = {}
        for product_id, customer_id in self.session.execute(stmt):
            bucket = customers.setdefault(product_id, [])
            if customer_id not in bucket:
                bucket.append(customer_id)
        return customers

    async def check_shop(self, shop: Shop, summary: PriceCheckSummary) -> None:
        wishlisted = self.get_wishlisted_customers(shop.id)
        if not wishlisted:
            return

        client = self.shopify_factory(shop)
        try:
            products = await client.get_products(wishlisted.keys())
        except (ShopifyAPIError, httpx.HTTPError) as e:
            logger.error("Failed to fetch products for %s: %s", shop.shop_domain, e)
            summary.shops_failed += 1
            summary.failed_shops.append(shop.shop_domain)
            return

        summary.shops_checked += 1

        for product in products:
            summary.products_checked += 1
            last = get_last_snapshot(self.session, shop.id, product.product_id)
            check = compare_to_snapshot(shop.id, product, last.price if last else None, self.now)

            if check.price_dropped:
                summary.price_drops += 1
                logger.info(
                    "Price drop on %s product %s: %s -> %s (%.1f%%)",
                    shop.shop_domain, product.product_id, check.old_price, check.new_price, check.drop_percent,
                )
                for customer_id in wishlisted.get(product.product_id, []):
                    if await self.notify_customer(shop, client, product, check, customer_id):
                        summary.notifications += 1

            record_snapshot(self.session, shop.id, product, now=self.now)

    async def notify_customer(
        self,
        shop: Shop,
        client: ShopifyClient,
        product: ProductState,
        check: PriceCheck,
        customer_id: int,
    ) -> bool:
        """Send one price-drop email unless already sent today. Returns True if sent."""
        if was_notified_today(
            self.session, shop.id, customer_id, product.product_id, NotificationType.PRICE_DROP, now=self.now
        ):
            return False

        try:
            customer = await client.get_customer(customer_id)
            if customer is None or not is_valid_email(customer.email):
                logger.debug("No usable email for customer %s in %s", customer_id, shop.shop_domain)
                return False

            result = self.notifier.send_price_drop_alert(
                to_email=customer.email,
                customer_name=customer.greeting_name,
                product_title=product.title,
                old_price=check.old_price,
                new_price=check.new_price,
                product_url=product.url(shop.shop_domain),
                shop_name=shop.display_name,
            )
            if not result.success:
                logger.error(
                    "Failed to send price drop email to customer %s for product %s: %s",
                    customer_id, product.product_id, result.error,
                )
                return False

            log_notification(
                self.session, shop.id, customer_id, product.product_id, NotificationType.PRICE_DROP, now=self.now
            )
            return True

        except Exception:
            logger.exception("Failed to notify customer %s about product %s", customer_id, product.product_id)
            self.session.rollback()
            return False

    async def run(self) -> PriceCheckSummary:
        summary = PriceCheckSummary()
        shops = self.get_active_shops()
        summary.shops_total = len(shops)

        for shop in shops:
            if not shop.setting("notify_price_drop"):
                continue
            await self.check_shop(shop, summary)

        return summary


async def run_price_check(
    session: Session,
    shopify_factory: ShopifyFactory,
    notifier: EmailNotifier,
    now: Optional[datetime] = None,
) -> PriceCheckSummary:
    """Run a full price check cycle."""
    checker = PriceChecker(session, shopify_factory, notifier, now=now)
    summary = await checker.run()
    logger.info(
        "Price check finished: %d shops, %d products, %d drops, %d notifications",
        summary.shops_checked, summary.products_checked, summary.price_drops, summary.notifications,
    )
    return summary


async def main() -> int:
    """Run one sweep from the command line using environment settings."""
    from wishlist_app.core.config import get_settings
    from wishlist_app.db.session import create_session_factory
    from wishlist_app.shopify.client import shopify_client_factory

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    session_factory = create_session_factory(settings.database_url)
    notifier = EmailNotifier(api_key=settings.resend_api_key, from_email=settings.resend_from_email)

    with session_factory() as session:
        summary = await run_price_check(
            session,
            shopify_client_factory(settings.shopify_api_version),
            notifier,
        )
    print(summary.to_dict())
    return summary.notifications


if __name__ == "__main__":
    asyncio.run(main())
