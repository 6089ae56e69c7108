"""Database models and utilities."""

from .models import (
    Base,
    Shop,
    WishlistItem,
    WishlistEvent,
    ProductSnapshot,
    NotificationLog,
    NotificationType,
    WishlistEventType,
    DEFAULT_SETTINGS,
    SCHEMA_SQL,
    utcnow,
)
from .session import create_session_factory

__all__ = [
    "Base",
    "Shop",
    "WishlistItem",
    "WishlistEvent",
    "ProductSnapshot",
    "NotificationLog",
    "NotificationType",
    "WishlistEventType",
    "DEFAULT_SETTINGS",
    "SCHEMA_SQL",
    "utcnow",
    "create_session_factory",
]
