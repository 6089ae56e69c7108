"""Email notification service using Resend."""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Optional, Union

import resend
from pydantic import EmailStr, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

Price = Union[Decimal, float]

_email_adapter = TypeAdapter(EmailStr)


def is_valid_email(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


@dataclass
class NotificationResult:
    """Result of sending a notification."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


_LAYOUT = """
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Hi {customer_name},</h2>
  <p>{intro}</p>
  <div style="background: #f9f9f9; border-radius: 8px; padding: 20px; margin: 20px 0;">
    <h3 style="margin-top: 0;">{product_title}</h3>
    {body}
  </div>
  <a href="{product_url}" style="display: inline-block; background: #000; color: #fff; padding: 12px 24px; border-radius: 6px; text-decoration: none; font-weight: 500;">View Product</a>
  <p style="color: #999; font-size: 12px; margin-top: 30px;">You received this email because this product is on your wishlist at {shop_name}.</p>
</div>
"""


class EmailNotifier:
    """Send wishlist emails via Resend."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        currency_symbol: str = "$",
    ):
        self.api_key = api_key or os.getenv("RESEND_API_KEY")
        self.from_email = from_email or os.getenv("RESEND_FROM_EMAIL", "onboarding@resend.dev")
        self.currency_symbol = currency_symbol

        if self.api_key:
            resend.api_key = self.api_key

    def _format_price(self, value: Price) -> str:
        return f"{self.currency_symbol}{Decimal(str(value)):.2f}"

    def _send(self, to_email: str, shop_name: str, subject: str, html: str, text: str) -> NotificationResult:
        if not self.api_key:
            return NotificationResult(
                success=False,
                error="Resend API key not configured",
            )

        try:
            result = resend.Emails.send({
                "from": f"{shop_name} <{self.from_email}>",
                "to": [to_email],
                "subject": subject,
                "html": html,
                "text": text,
            })

            return NotificationResult(
                success=True,
                message_id=result.get("id") if isinstance(result, dict) else getattr(result, "id", None),
            )

        except Exception as e:
            logger.warning("Resend rejected email to %s: %s", to_email, e)
            return NotificationResult(
                success=False,
                error=str(e),
            )

    def send_price_drop_alert(
        self,
        to_email: str,
        customer_name: str,
        product_title: str,
        old_price: Price,
        new_price: Price,
        product_url: str,
        shop_name: str,
    ) -> NotificationResult:
        """
        Send a price drop alert email.

        Args:
            to_email: Recipient email
            customer_name: Name used in the greeting
            product_title: Title of the wishlisted product
            old_price: Price at the previous snapshot
            new_price: Current (lower) price
            product_url: Storefront link to the product
            shop_name: Shop name used as sender name

        Returns:
            NotificationResult with success status
        """
        old_label = self._format_price(old_price)
        new_label = self._format_price(new_price)

        html = _LAYOUT.format(
            customer_name=escape(customer_name),
            intro="Great news! A product on your wishlist just dropped in price.",
            product_title=escape(product_title),
            body=(
                "<p>"
                f'<span style="text-decoration: line-through; color: #999;">{old_label}</span>'
                f'<span style="color: #e53e3e; font-size: 1.2em; font-weight: bold; margin-left: 8px;">{new_label}</span>'
                "</p>"
            ),
            product_url=escape(product_url, quote=True),
            shop_name=escape(shop_name),
        )

        text = (
            f"Hi {customer_name},\n\n"
            "Great news! A product on your wishlist just dropped in price.\n\n"
            f"{product_title}\n"
            f"Was: {old_label}\n"
            f"Now: {new_label}\n\n"
            f"View product: {product_url}\n"
        )

        return self._send(to_email, shop_name, f"Price drop on {product_title}!", html, text)

    def send_back_in_stock_alert(
        self,
        to_email: str,
        customer_name: str,
        product_title: str,
        product_url: str,
        shop_name: str,
    ) -> NotificationResult:
        """Send alert when a wishlisted item is back in stock."""
        html = _LAYOUT.format(
            customer_name=escape(customer_name),
            intro="A product on your wishlist is back in stock!",
            product_title=escape(product_title),
            body='<p style="color: #38a169; font-weight: bold;">Back in Stock</p>',
            product_url=escape(product_url, quote=True),
            shop_name=escape(shop_name),
        )

        text = (
            f"Hi {customer_name},\n\n"
            "A product on your wishlist is back in stock!\n\n"
            f"{product_title}\n\n"
            f"View product: {product_url}\n"
        )

        return self._send(to_email, shop_name, f"{product_title} is back in stock!", html, text)
