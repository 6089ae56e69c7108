"""Shopify wishlist backend with price-drop and back-in-stock alerts."""

__version__ = "1.0.0"
