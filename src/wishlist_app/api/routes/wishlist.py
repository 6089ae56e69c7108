"""Storefront wishlist endpoints, reached through the Shopify app proxy."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wishlist_app.services import shops as shop_service
from wishlist_app.services import wishlist as wishlist_service

from ..deps import get_db

router = APIRouter()


class ToggleRequest(BaseModel):
    """Request to toggle a product in the wishlist."""

    product_id: Optional[int] = Field(None, alias="productId")


class ToggleResponse(BaseModel):
    wishlisted: bool


class WishlistEntry(BaseModel):
    """Wishlist item response."""

    id: str
    product_id: int
    customer_id: int
    created_at: Optional[str]


def _parse_product_ids(raw: str) -> list[int]:
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            ids.append(int(part))
    return ids


def _require_shop(shop: Optional[str]) -> str:
    if not shop:
        raise HTTPException(status_code=401, detail="No session")
    return shop


def _parse_customer_id(raw: Optional[str]) -> Optional[int]:
    # guests arrive with an empty logged_in_customer_id
    raw = (raw or "").strip()
    if raw.isdigit() and int(raw) > 0:
        return int(raw)
    return None


def _require_customer(raw: Optional[str]) -> int:
    customer_id = _parse_customer_id(raw)
    if customer_id is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return customer_id


@router.get("/proxy")
async def proxy_loader(
    shop: Optional[str] = None,
    action: Optional[str] = None,
    logged_in_customer_id: Optional[str] = None,
    products: str = Query(""),
    db: Session = Depends(get_db),
):
    """
    Read-only storefront actions.

    - ``settings``: button settings, available without login
    - ``check``: which of ``products`` the customer has wishlisted
    - ``list``: the customer's full wishlist
    """
    shop_record = shop_service.get_shop_by_domain(db, _require_shop(shop))

    if action == "settings":
        return {"settings": shop_service.get_settings(shop_record)}

    customer_id = _require_customer(logged_in_customer_id)

    if action == "check":
        product_ids = _parse_product_ids(products)
        if not product_ids:
            raise HTTPException(status_code=400, detail="No products specified")
        result = wishlist_service.check_wishlist_items(db, shop_record.id, customer_id, product_ids)
        return {"wishlisted": [pid for pid, present in result.items() if present]}

    if action == "list":
        items = wishlist_service.get_customer_wishlist(db, shop_record.id, customer_id)
        return {"products": [WishlistEntry(**item.to_dict()) for item in items]}

    raise HTTPException(status_code=400, detail="Invalid action")


@router.post("/proxy", response_model=ToggleResponse)
async def proxy_toggle(
    request: ToggleRequest,
    shop: Optional[str] = None,
    logged_in_customer_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Add or remove a product from the logged-in customer's wishlist."""
    customer_id = _require_customer(logged_in_customer_id)
    shop_record = shop_service.get_shop_by_domain(db, _require_shop(shop))

    if not request.product_id or request.product_id <= 0:
        raise HTTPException(status_code=400, detail="Missing productId")

    added = wishlist_service.toggle_wishlist_item(db, shop_record.id, customer_id, request.product_id)
    return ToggleResponse(wishlisted=added)
