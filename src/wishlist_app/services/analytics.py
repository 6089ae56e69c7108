"""Merchant dashboard statistics."""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wishlist_app.db.models import (
    NotificationLog,
    NotificationType,
    WishlistEvent,
    WishlistEventType,
    WishlistItem,
    utcnow,
)

RECENT_NOTIFICATIONS_LIMIT = 50


def get_dashboard_stats(session: Session, shop_id: str, now: Optional[datetime] = None) -> dict:
    """
    Summary numbers for the dashboard.

    Conversion rate is purchases over additions in the last 30 days, as a
    percentage string with one decimal.
    """
    now = now or utcnow()
    since = now - timedelta(days=30)

    total_wishlists = session.execute(
        select(func.count()).select_from(WishlistItem).where(WishlistItem.shop_id == shop_id)
    ).scalar_one()
    unique_customers = session.execute(
        select(func.count(func.distinct(WishlistItem.customer_id))).where(WishlistItem.shop_id == shop_id)
    ).scalar_one()
    unique_products = session.execute(
        select(func.count(func.distinct(WishlistItem.product_id))).where(WishlistItem.shop_id == shop_id)
    ).scalar_one()

    events = session.execute(
        select(WishlistEvent.event_type, WishlistEvent.created_at)
        .where(WishlistEvent.shop_id == shop_id, WishlistEvent.created_at >= since)
        .order_by(WishlistEvent.created_at)
    ).all()

    total_added = sum(1 for event_type, _ in events if event_type == WishlistEventType.ADDED)
    total_purchased = sum(1 for event_type, _ in events if event_type == WishlistEventType.PURCHASED)

    daily: dict[str, dict[str, int]] = {}
    for event_type, created_at in events:
        day = created_at.date().isoformat()
        counts = daily.setdefault(day, {"added": 0, "removed": 0})
        if event_type == WishlistEventType.ADDED:
            counts["added"] += 1
        elif event_type == WishlistEventType.REMOVED:
            counts["removed"] += 1

    return {
        "total_wishlists": total_wishlists,
        "unique_customers": unique_customers,
        "unique_products": unique_products,
        "conversion_rate": f"{total_purchased / total_added * 100:.1f}" if total_added else "0",
        "daily_activity": [{"date": day, **counts} for day, counts in daily.items()],
    }


def get_notification_stats(session: Session, shop_id: str) -> dict:
    total = session.execute(
        select(func.count()).select_from(NotificationLog).where(NotificationLog.shop_id == shop_id)
    ).scalar_one()

    recent = list(
        session.execute(
            select(NotificationLog)
            .where(NotificationLog.shop_id == shop_id)
            .order_by(NotificationLog.sent_at.desc())
            .limit(RECENT_NOTIFICATIONS_LIMIT)
        ).scalars()
    )

    return {
        "stats": {
            "total_sent": total,
            "price_drop_sent": sum(1 for n in recent if n.type == NotificationType.PRICE_DROP),
            "back_in_stock_sent": sum(1 for n in recent if n.type == NotificationType.BACK_IN_STOCK),
        },
        "recent": [n.to_dict() for n in recent],
    }
