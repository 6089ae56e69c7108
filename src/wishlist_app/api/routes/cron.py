"""Scheduled job endpoints."""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from wishlist_app.core.config import Settings
from wishlist_app.monitor.notifier import EmailNotifier
from wishlist_app.monitor.price_checker import ShopifyFactory, run_price_check

from ..deps import get_app_settings, get_db, get_notifier, get_shopify_factory

logger = logging.getLogger(__name__)

router = APIRouter()


def is_authorized(authorization: Optional[str], secret: Optional[str]) -> bool:
    if not secret or not authorization:
        return False
    # header values arrive latin-1 decoded; compare_digest rejects non-ASCII str
    return hmac.compare_digest(authorization.encode("latin-1", "replace"), f"Bearer {secret}".encode())


@router.api_route("/cron/check-prices", methods=["GET", "POST"])
async def check_prices(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: EmailNotifier = Depends(get_notifier),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """
    Sweep all shops for price drops and email wishlisting customers.

    Called by an external scheduler with ``Authorization: Bearer <CRON_SECRET>``.
    """
    if not is_authorized(authorization, settings.cron_secret):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        summary = await run_price_check(db, shopify_factory, notifier)
    except Exception:
        logger.exception("Cron job failed")
        return JSONResponse({"error": "Cron job failed"}, status_code=500)

    if summary.shops_total == 0:
        return {"message": "No active shops"}

    return {"success": True, "notifications": summary.notifications}
