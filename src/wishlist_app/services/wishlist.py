"""Wishlist storage operations shared by the storefront and admin APIs."""

import csv
import io
from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from wishlist_app.db.models import WishlistEvent, WishlistEventType, WishlistItem


def _log_event(
    session: Session,
    shop_id: str,
    customer_id: int,
    product_id: int,
    event_type: WishlistEventType,
) -> None:
    session.add(
        WishlistEvent(
            shop_id=shop_id,
            customer_id=customer_id,
            product_id=product_id,
            event_type=event_type,
        )
    )


def toggle_wishlist_item(session: Session, shop_id: str, customer_id: int, product_id: int) -> bool:
    """
    Add the product to the customer's wishlist, or remove it if present.

    Returns:
        True if the product is wishlisted after the call
    """
    existing = session.execute(
        select(WishlistItem).where(
            WishlistItem.shop_id == shop_id,
            WishlistItem.customer_id == customer_id,
            WishlistItem.product_id == product_id,
        )
    ).scalars().first()

    if existing:
        session.delete(existing)
        _log_event(session, shop_id, customer_id, product_id, WishlistEventType.REMOVED)
        session.commit()
        return False

    session.add(WishlistItem(shop_id=shop_id, customer_id=customer_id, product_id=product_id))
    _log_event(session, shop_id, customer_id, product_id, WishlistEventType.ADDED)
    session.commit()
    return True


def check_wishlist_items(
    session: Session,
    shop_id: str,
    customer_id: int,
    product_ids: Iterable[int],
) -> dict[int, bool]:
    product_ids = list(product_ids)
    found = set(
        session.execute(
            select(WishlistItem.product_id).where(
                WishlistItem.shop_id == shop_id,
                WishlistItem.customer_id == customer_id,
                WishlistItem.product_id.in_(product_ids),
            )
        ).scalars()
    )
    return {pid: pid in found for pid in product_ids}


def get_customer_wishlist(session: Session, shop_id: str, customer_id: int) -> list[WishlistItem]:
    stmt = (
        select(WishlistItem)
        .where(WishlistItem.shop_id == shop_id, WishlistItem.customer_id == customer_id)
        .order_by(WishlistItem.created_at.desc())
    )
    return list(session.execute(stmt).scalars())


def get_shop_wishlists(
    session: Session,
    shop_id: str,
    page: int = 1,
    limit: int = 25,
    search: Optional[str] = None,
    product_id: Optional[int] = None,
    customer_id: Optional[int] = None,
) -> tuple[list[WishlistItem], int]:
    """
    Page through a shop's wishlist rows, newest first.

    A numeric ``search`` matches either the product id or the customer id;
    anything else is ignored.
    """
    conditions = [WishlistItem.shop_id == shop_id]
    if product_id:
        conditions.append(WishlistItem.product_id == product_id)
    if customer_id:
        conditions.append(WishlistItem.customer_id == customer_id)
    if search and search.strip().isdigit():
        num = int(search.strip())
        conditions.append(or_(WishlistItem.product_id == num, WishlistItem.customer_id == num))

    total = session.execute(select(func.count()).select_from(WishlistItem).where(*conditions)).scalar_one()

    page = max(page, 1)
    stmt = (
        select(WishlistItem)
        .where(*conditions)
        .order_by(WishlistItem.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(session.execute(stmt).scalars()), total


def _top_by(session: Session, shop_id: str, column, key: str, limit: int) -> list[dict]:
    count = func.count(WishlistItem.id).label("count")
    stmt = (
        select(column, count)
        .where(WishlistItem.shop_id == shop_id)
        .group_by(column)
        .order_by(count.desc(), column)
        .limit(limit)
    )
    return [{key: int(value), "count": int(n)} for value, n in session.execute(stmt)]


def get_top_products(session: Session, shop_id: str, limit: int = 10) -> list[dict]:
    return _top_by(session, shop_id, WishlistItem.product_id, "product_id", limit)


def get_top_customers(session: Session, shop_id: str, limit: int = 10) -> list[dict]:
    return _top_by(session, shop_id, WishlistItem.customer_id, "customer_id", limit)


def log_purchase_events(
    session: Session,
    shop_id: str,
    customer_id: int,
    product_ids: Iterable[int],
) -> list[int]:
    """Record a purchase event for each bought product the customer had wishlisted."""
    product_ids = [pid for pid in product_ids if pid]
    if not product_ids:
        return []

    wishlisted = session.execute(
        select(WishlistItem.product_id).where(
            WishlistItem.shop_id == shop_id,
            WishlistItem.customer_id == customer_id,
            WishlistItem.product_id.in_(product_ids),
        )
    ).scalars().all()

    for pid in wishlisted:
        _log_event(session, shop_id, customer_id, pid, WishlistEventType.PURCHASED)
    session.commit()
    return list(wishlisted)


def export_wishlists_csv(items: Iterable[WishlistItem]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Customer ID", "Product ID", "Date Added"])
    for item in items:
        writer.writerow([
            item.customer_id,
            item.product_id,
            item.created_at.date().isoformat() if item.created_at else "",
        ])
    return buffer.getvalue()
