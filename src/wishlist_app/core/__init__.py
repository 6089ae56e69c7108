"""Core modules for the wishlist app."""

from .config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
