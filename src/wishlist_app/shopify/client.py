"""Shopify Admin REST API client."""

from typing import Iterable, Optional

import httpx
from aiolimiter import AsyncLimiter

from .base import CustomerInfo, ProductState

# products.json accepts at most 250 ids per request
PRODUCT_BATCH_SIZE = 250


class ShopifyAPIError(Exception):
    """Raised when the Admin API answers with a non-success status."""

    def __init__(self, shop_domain: str, status_code: int, message: str = ""):
        self.shop_domain = shop_domain
        self.status_code = status_code
        super().__init__(f"Shopify API error for {shop_domain}: HTTP {status_code} {message}".strip())


class ShopifyClient:
    """Read products and customers for a single shop."""

    def __init__(
        self,
        shop_domain: str,
        access_token: Optional[str],
        api_version: str = "2025-01",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.shop_domain = shop_domain
        self.api_version = api_version
        self._headers = {
            "X-Shopify-Access-Token": access_token or "",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport
        # REST Admin API leaky bucket drains at 2 requests/second
        self._rate_limiter = AsyncLimiter(2, 1)

    @property
    def base_url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}"

    async def _get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        async with self._rate_limiter:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.get(
                    f"{self.base_url}{path}",
                    params=params,
                    headers=self._headers,
                )

    async def get_products(self, product_ids: Iterable[int]) -> list[ProductState]:
        """
        Fetch current state for the given product ids.

        Args:
            product_ids: Numeric product ids

        Returns:
            ProductState for every id the shop still knows about

        Raises:
            ShopifyAPIError: on any non-success response
        """
        ids = list(dict.fromkeys(int(pid) for pid in product_ids))
        products: list[ProductState] = []

        for i in range(0, len(ids), PRODUCT_BATCH_SIZE):
            batch = ids[i : i + PRODUCT_BATCH_SIZE]
            response = await self._get(
                "/products.json",
                params={
                    "ids": ",".join(str(pid) for pid in batch),
                    "fields": "id,title,handle,variants",
                    "limit": PRODUCT_BATCH_SIZE,
                },
            )
            if response.status_code != 200:
                raise ShopifyAPIError(self.shop_domain, response.status_code, response.text[:200])

            try:
                products.extend(ProductState.from_payload(item) for item in response.json().get("products", []))
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise ShopifyAPIError(self.shop_domain, response.status_code, f"malformed products body: {e}") from e

        return products

    async def get_customer(self, customer_id: int) -> Optional[CustomerInfo]:
        """
        Fetch a customer's contact details.

        Returns None when the customer no longer exists.
        """
        response = await self._get(
            f"/customers/{int(customer_id)}.json",
            params={"fields": "id,first_name,last_name,email"},
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ShopifyAPIError(self.shop_domain, response.status_code, response.text[:200])

        try:
            data = response.json().get("customer")
            return CustomerInfo.from_payload(data) if data else None
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ShopifyAPIError(self.shop_domain, response.status_code, f"malformed customer body: {e}") from e


def shopify_client_factory(api_version: str = "2025-01"):
    """Return a callable building a ShopifyClient for a Shop row."""

    def factory(shop) -> ShopifyClient:
        return ShopifyClient(shop.shop_domain, shop.access_token, api_version=api_version)

    return factory
