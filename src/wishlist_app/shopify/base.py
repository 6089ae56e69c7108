"""Value types returned by the Shopify Admin API client."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional


def _to_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


@dataclass
class ProductState:
    """Current price and stock of a product."""

    product_id: int
    title: str
    handle: str
    price: Decimal
    inventory_quantity: int
    compare_at_price: Optional[Decimal] = None

    @classmethod
    def from_payload(cls, data: dict) -> "ProductState":
        """
        Build from a REST product resource or a products/update webhook body.

        The first variant's price is the product price; inventory is summed
        over all variants with missing quantities counted as zero.
        """
        variants = data.get("variants") or []
        first = variants[0] if variants else {}

        return cls(
            product_id=int(data["id"]),
            title=data.get("title") or f"Product #{data['id']}",
            handle=data.get("handle") or "",
            price=_to_decimal(first.get("price")) or Decimal("0"),
            compare_at_price=_to_decimal(first.get("compare_at_price")),
            inventory_quantity=sum(int(v.get("inventory_quantity") or 0) for v in variants),
        )

    def url(self, shop_domain: str) -> str:
        return f"https://{shop_domain}/products/{self.handle}"


@dataclass
class CustomerInfo:
    """Contact details for a storefront customer."""

    customer_id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "CustomerInfo":
        return cls(
            customer_id=int(data["id"]),
            email=(data.get("email") or "").strip() or None,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )

    @property
    def greeting_name(self) -> str:
        return self.first_name or "there"
