"""FastAPI dependencies resolving the clients built at startup."""

from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from wishlist_app.core.config import Settings
from wishlist_app.monitor.notifier import EmailNotifier
from wishlist_app.monitor.price_checker import ShopifyFactory


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier


def get_shopify_factory(request: Request) -> ShopifyFactory:
    return request.app.state.shopify_factory
