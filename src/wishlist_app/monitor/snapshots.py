"""Product price/inventory snapshots and price-drop detection."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from wishlist_app.db.models import ProductSnapshot, utcnow
from wishlist_app.shopify.base import ProductState

PRICE_DROP_THRESHOLD = Decimal("0.10")  # 10%


def drop_fraction(old_price: Union[Decimal, float], new_price: Union[Decimal, float]) -> Decimal:
    """Relative price drop; zero when the old price is not positive."""
    old = Decimal(str(old_price))
    new = Decimal(str(new_price))
    if old <= 0:
        return Decimal("0")
    return (old - new) / old


def is_price_drop(
    old_price: Union[Decimal, float],
    new_price: Union[Decimal, float],
    threshold: Decimal = PRICE_DROP_THRESHOLD,
) -> bool:
    return drop_fraction(old_price, new_price) >= threshold


def get_last_snapshot(session: Session, shop_id: str, product_id: int) -> Optional[ProductSnapshot]:
    stmt = (
        select(ProductSnapshot)
        .where(
            ProductSnapshot.shop_id == shop_id,
            ProductSnapshot.product_id == product_id,
        )
        .order_by(ProductSnapshot.captured_at.desc())
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def record_snapshot(
    session: Session,
    shop_id: str,
    state: ProductState,
    now: Optional[datetime] = None,
) -> ProductSnapshot:
    """Upsert the snapshot for (shop_id, product_id) with the observed state."""
    snapshot = get_last_snapshot(session, shop_id, state.product_id)
    if snapshot is None:
        snapshot = ProductSnapshot(shop_id=shop_id, product_id=state.product_id)
        session.add(snapshot)

    snapshot.price = state.price
    snapshot.compare_at_price = state.compare_at_price
    snapshot.inventory_quantity = state.inventory_quantity
    snapshot.captured_at = now or utcnow()

    session.commit()
    return snapshot
