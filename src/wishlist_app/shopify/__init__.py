"""Shopify Admin API integration."""

from .base import CustomerInfo, ProductState
from .client import ShopifyAPIError, ShopifyClient, shopify_client_factory

__all__ = [
    "CustomerInfo",
    "ProductState",
    "ShopifyAPIError",
    "ShopifyClient",
    "shopify_client_factory",
]
