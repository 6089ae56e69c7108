"""Shop records: lookup, settings, uninstall and GDPR redaction."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishlist_app.db.models import (
    DEFAULT_SETTINGS,
    NotificationLog,
    ProductSnapshot,
    Shop,
    WishlistEvent,
    WishlistItem,
    utcnow,
)

logger = logging.getLogger(__name__)


def find_shop(session: Session, shop_domain: str) -> Optional[Shop]:
    return session.execute(select(Shop).where(Shop.shop_domain == shop_domain)).scalars().first()


def get_shop_by_domain(session: Session, shop_domain: str) -> Shop:
    """Return the shop row, creating it on first sight (e.g. first load after install)."""
    shop = find_shop(session, shop_domain)
    if shop:
        return shop

    shop = Shop(shop_domain=shop_domain, settings=dict(DEFAULT_SETTINGS))
    session.add(shop)
    try:
        session.commit()
    except IntegrityError:
        # created concurrently by another request
        session.rollback()
        shop = find_shop(session, shop_domain)
        if shop is None:
            raise
    else:
        logger.info("Created shop record for %s", shop_domain)
    return shop


def get_settings(shop: Shop) -> dict:
    return {**DEFAULT_SETTINGS, **(shop.settings or {})}


def update_settings(session: Session, shop: Shop, changes: dict) -> dict:
    """Merge ``changes`` into the shop settings; None values are ignored."""
    merged = get_settings(shop)
    merged.update({k: v for k, v in changes.items() if v is not None})
    # JSON columns only notice reassignment
    shop.settings = merged
    session.commit()
    return merged


def mark_uninstalled(session: Session, shop_domain: str, now: Optional[datetime] = None) -> bool:
    shop = find_shop(session, shop_domain)
    if shop is None:
        return False
    shop.uninstalled_at = now or utcnow()
    session.commit()
    logger.info("Marked %s as uninstalled", shop_domain)
    return True


def redact_customer(session: Session, shop_id: str, customer_id: int) -> None:
    """Delete everything stored about one customer of a shop."""
    for model in (WishlistItem, WishlistEvent, NotificationLog):
        session.execute(
            delete(model).where(model.shop_id == shop_id, model.customer_id == customer_id)
        )
    session.commit()
    logger.info("Redacted customer %s for shop %s", customer_id, shop_id)


def redact_shop(session: Session, shop_id: str) -> None:
    """Delete a shop and all of its data."""
    for model in (WishlistItem, WishlistEvent, NotificationLog, ProductSnapshot):
        session.execute(delete(model).where(model.shop_id == shop_id))
    session.execute(delete(Shop).where(Shop.id == shop_id))
    session.commit()
    logger.info("Redacted shop %s", shop_id)
