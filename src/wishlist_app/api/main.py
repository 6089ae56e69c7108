"""FastAPI application for the wishlist app."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from wishlist_app.core.config import Settings, get_settings
from wishlist_app.db.session import create_session_factory
from wishlist_app.monitor.notifier import EmailNotifier
from wishlist_app.monitor.price_checker import ShopifyFactory
from wishlist_app.shopify.client import shopify_client_factory

from .routes import admin, cron, webhooks, wishlist


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the database, email and Shopify clients once per process."""
    settings: Settings = app.state.settings
    state = app.state

    owns_engine = getattr(state, "session_factory", None) is None
    if owns_engine:
        state.session_factory = create_session_factory(settings.database_url)
    if getattr(state, "notifier", None) is None:
        state.notifier = EmailNotifier(
            api_key=settings.resend_api_key,
            from_email=settings.resend_from_email,
        )
    if getattr(state, "shopify_factory", None) is None:
        state.shopify_factory = shopify_client_factory(settings.shopify_api_version)

    yield

    if owns_engine:
        state.session_factory.kw["bind"].dispose()


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    notifier: Optional[EmailNotifier] = None,
    shopify_factory: Optional[ShopifyFactory] = None,
) -> FastAPI:
    """Create the application; any client passed in replaces the default one."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Wishlist API",
        description="Customer wishlists with price-drop and back-in-stock alerts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.notifier = notifier
    app.state.shopify_factory = shopify_factory

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(cron.router, prefix="/api", tags=["Cron"])
    app.include_router(wishlist.router, prefix="/api", tags=["Storefront"])
    app.include_router(admin.router, prefix="/api", tags=["Admin"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Wishlist API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
