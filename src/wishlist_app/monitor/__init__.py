"""Monitoring and notification modules."""

from .price_checker import PriceChecker, PriceCheck, PriceCheckSummary, run_price_check
from .notifier import EmailNotifier, NotificationResult, is_valid_email
from .restock import process_product_update
from .snapshots import PRICE_DROP_THRESHOLD, is_price_drop

__all__ = [
    "PriceChecker",
    "PriceCheck",
    "PriceCheckSummary",
    "run_price_check",
    "EmailNotifier",
    "NotificationResult",
    "is_valid_email",
    "process_product_update",
    "PRICE_DROP_THRESHOLD",
    "is_price_drop",
]
