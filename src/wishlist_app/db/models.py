"""SQLAlchemy models for the wishlist app database."""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    BigInteger,
    DateTime,
    ForeignKey,
    Enum,
    JSON,
    Numeric,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


DEFAULT_SETTINGS = {
    "button_color": "#000000",
    "button_style": "icon",
    "notify_price_drop": False,
    "notify_back_in_stock": False,
}


class NotificationType(str, PyEnum):
    PRICE_DROP = "price_drop"
    BACK_IN_STOCK = "back_in_stock"


class WishlistEventType(str, PyEnum):
    ADDED = "added"
    REMOVED = "removed"
    PURCHASED = "purchased"


class Shop(Base):
    """An installed merchant store."""

    __tablename__ = "shops"

    id = Column(String(36), primary_key=True, default=_uuid)
    shop_domain = Column(String(255), nullable=False, unique=True)  # e.g. "acme.myshopify.com"
    access_token = Column(Text, nullable=True)
    plan = Column(String(50), nullable=False, default="free")

    # Storefront button + notification flags
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_SETTINGS))

    # Status
    installed_at = Column(DateTime(timezone=True), default=utcnow)
    uninstalled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    wishlist_items = relationship("WishlistItem", back_populates="shop", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.shop_domain.replace(".myshopify.com", "")

    def setting(self, key: str, default=None):
        return (self.settings or {}).get(key, default)


class WishlistItem(Base):
    """A product a customer has favorited in a shop."""

    __tablename__ = "wishlists"

    id = Column(String(36), primary_key=True, default=_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(BigInteger, nullable=False)
    product_id = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    shop = relationship("Shop", back_populates="wishlist_items")

    __table_args__ = (
        UniqueConstraint("shop_id", "customer_id", "product_id", name="uq_wishlist_entry"),
        Index("ix_wishlists_shop_product", "shop_id", "product_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class WishlistEvent(Base):
    """Append-only add/remove/purchase history used for analytics."""

    __tablename__ = "wishlist_events"

    id = Column(String(36), primary_key=True, default=_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(BigInteger, nullable=False)
    product_id = Column(BigInteger, nullable=False)
    event_type = Column(Enum(WishlistEventType), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (Index("ix_wishlist_events_shop_date", "shop_id", "created_at"),)


class ProductSnapshot(Base):
    """Last observed price and inventory for a product."""

    __tablename__ = "product_snapshots"

    id = Column(String(36), primary_key=True, default=_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(BigInteger, nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    compare_at_price = Column(Numeric(12, 2), nullable=True)
    inventory_quantity = Column(Integer, nullable=False, default=0)

    captured_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("shop_id", "product_id", name="uq_snapshot_shop_product"),
        Index("ix_product_snapshots_product_date", "shop_id", "product_id", "captured_at"),
    )


class NotificationLog(Base):
    """One row per email sent to a customer."""

    __tablename__ = "notification_log"

    id = Column(String(36), primary_key=True, default=_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(BigInteger, nullable=False)
    product_id = Column(BigInteger, nullable=False)
    type = Column(Enum(NotificationType), nullable=False)
    sent_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_notification_log_lookup", "shop_id", "customer_id", "product_id", "type", "sent_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "type": self.type.value,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


# Supabase schema SQL for reference
SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS "uuid-ossp";

CREATE TABLE shops (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    shop_domain TEXT NOT NULL UNIQUE,
    access_token TEXT,
    plan TEXT NOT NULL DEFAULT 'free',
    settings JSONB NOT NULL DEFAULT '{"button_color": "#000000", "button_style": "icon", "notify_price_drop": false, "notify_back_in_stock": false}',
    installed_at TIMESTAMPTZ DEFAULT NOW(),
    uninstalled_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE wishlists (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    shop_id UUID NOT NULL REFERENCES shops(id) ON DELETE CASCADE,
    customer_id BIGINT NOT NULL,
    product_id BIGINT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE(shop_id, customer_id, product_id)
);

CREATE INDEX ix_wishlists_shop_product ON wishlists(shop_id, product_id);

CREATE TABLE wishlist_events (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    shop_id UUID NOT NULL REFERENCES shops(id) ON DELETE CASCADE,
    customer_id BIGINT NOT NULL,
    product_id BIGINT NOT NULL,
    event_type TEXT NOT NULL CHECK (event_type IN ('added', 'removed', 'purchased')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX ix_wishlist_events_shop_date ON wishlist_events(shop_id, created_at);

CREATE TABLE product_snapshots (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    shop_id UUID NOT NULL REFERENCES shops(id) ON DELETE CASCADE,
    product_id BIGINT NOT NULL,
    price NUMERIC(12, 2) NOT NULL,
    compare_at_price NUMERIC(12, 2),
    inventory_quantity INTEGER NOT NULL DEFAULT 0,
    captured_at TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE(shop_id, product_id)
);

CREATE TABLE notification_log (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    shop_id UUID NOT NULL REFERENCES shops(id) ON DELETE CASCADE,
    customer_id BIGINT NOT NULL,
    product_id BIGINT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('price_drop', 'back_in_stock')),
    sent_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX ix_notification_log_lookup
    ON notification_log(shop_id, customer_id, product_id, type, sent_at);
"""
