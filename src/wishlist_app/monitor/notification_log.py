"""Per-day duplicate suppression for customer notifications."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wishlist_app.db.models import NotificationLog, NotificationType, utcnow


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def was_notified_today(
    session: Session,
    shop_id: str,
    customer_id: int,
    product_id: int,
    notification_type: NotificationType,
    now: Optional[datetime] = None,
) -> bool:
    """Whether a notification of this type already went out since UTC midnight."""
    stmt = (
        select(NotificationLog.id)
        .where(
            NotificationLog.shop_id == shop_id,
            NotificationLog.customer_id == customer_id,
            NotificationLog.product_id == product_id,
            NotificationLog.type == notification_type,
            NotificationLog.sent_at >= start_of_utc_day(now),
        )
        .limit(1)
    )
    return session.execute(stmt).first() is not None


def log_notification(
    session: Session,
    shop_id: str,
    customer_id: int,
    product_id: int,
    notification_type: NotificationType,
    now: Optional[datetime] = None,
) -> NotificationLog:
    entry = NotificationLog(
        shop_id=shop_id,
        customer_id=customer_id,
        product_id=product_id,
        type=notification_type,
        sent_at=now or utcnow(),
    )
    session.add(entry)
    session.commit()
    return entry
