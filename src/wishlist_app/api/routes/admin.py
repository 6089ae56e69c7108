"""Merchant admin endpoints: stats, wishlist browsing, export and settings."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wishlist_app.services import analytics
from wishlist_app.services import shops as shop_service
from wishlist_app.services import wishlist as wishlist_service

from ..deps import get_db

router = APIRouter()

EXPORT_LIMIT = 10000


class SettingsUpdateRequest(BaseModel):
    """Partial update of a shop's wishlist settings."""

    button_color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    button_style: Optional[Literal["icon", "icon_text"]] = None
    button_text: Optional[str] = Field(None, max_length=50)
    page_title: Optional[str] = Field(None, max_length=100)
    notify_price_drop: Optional[bool] = None
    notify_back_in_stock: Optional[bool] = None


class WishlistPage(BaseModel):
    """Paged wishlist rows."""

    wishlists: list[dict]
    total: int
    page: int
    limit: int


@router.get("/admin/{shop}/dashboard")
async def dashboard(shop: str, db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    return {
        "stats": analytics.get_dashboard_stats(db, shop_record.id),
        "top_products": wishlist_service.get_top_products(db, shop_record.id, limit=5),
    }


@router.get("/admin/{shop}/notifications")
async def notifications(shop: str, db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    return {
        **analytics.get_notification_stats(db, shop_record.id),
        "settings": shop_service.get_settings(shop_record),
    }


@router.get("/admin/{shop}/wishlists", response_model=WishlistPage)
async def list_wishlists(
    shop: str,
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=250),
    search: Optional[str] = None,
    product_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    rows, total = wishlist_service.get_shop_wishlists(
        db,
        shop_record.id,
        page=page,
        limit=limit,
        search=search,
        product_id=product_id,
        customer_id=customer_id,
    )
    return WishlistPage(wishlists=[row.to_dict() for row in rows], total=total, page=page, limit=limit)


@router.get("/admin/{shop}/wishlists/export")
async def export_wishlists(shop: str, db: Session = Depends(get_db)):
    """Download all wishlist rows as CSV."""
    shop_record = shop_service.get_shop_by_domain(db, shop)
    rows, _ = wishlist_service.get_shop_wishlists(db, shop_record.id, limit=EXPORT_LIMIT)
    return Response(
        content=wishlist_service.export_wishlists_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="wishlists.csv"'},
    )


@router.get("/admin/{shop}/top-products")
async def top_products(shop: str, limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    return {"products": wishlist_service.get_top_products(db, shop_record.id, limit=limit)}


@router.get("/admin/{shop}/top-customers")
async def top_customers(shop: str, limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    return {"customers": wishlist_service.get_top_customers(db, shop_record.id, limit=limit)}


@router.get("/admin/{shop}/settings")
async def read_settings(shop: str, db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    return {"settings": shop_service.get_settings(shop_record)}


@router.put("/admin/{shop}/settings")
async def write_settings(shop: str, request: SettingsUpdateRequest, db: Session = Depends(get_db)):
    shop_record = shop_service.get_shop_by_domain(db, shop)
    settings = shop_service.update_settings(db, shop_record, request.model_dump(exclude_none=True))
    return {"success": True, "settings": settings}
