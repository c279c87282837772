"""
WooCommerce REST backend over httpx.

    backend = WooCommerceBackend.from_settings(get_settings())
    async with backend:
        match await backend.get_product(42):
            case Ok(product): ...
            case Error(NotFoundError()): ...

Credentials travel as consumer_key / consumer_secret query parameters and are
never logged.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from kungfu import Result, Ok, Error

from pawpass.catalog._types import Category, Product, ProductAttribute, parse_price
from pawpass.commerce._backend import BackendError, FetchError
from pawpass.errors import NotFoundError, RejectedError, TransportError
from pawpass.orders._types import CreatedOrder, Order, OrderSummary

if TYPE_CHECKING:
    from pawpass.config import Settings

logger = structlog.get_logger()

SUBMISSION_KEY_META = "session_token"
MANUAL_PAYMENT_METHODS = frozenset({"mercadopago"})


class WooCommerceBackend:
    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        *,
        api_version: str = "wc/v3",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = f"{base_url.rstrip('/')}/wp-json/{api_version.strip('/')}"
        self._auth = {"consumer_key": consumer_key, "consumer_secret": consumer_secret}
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> WooCommerceBackend:
        return cls(
            settings.commerce_url,
            settings.commerce_consumer_key.get_secret_value(),
            settings.commerce_consumer_secret.get_secret_value(),
            api_version=settings.commerce_api_version,
            timeout=settings.commerce_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WooCommerceBackend:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ═══════════════════════════════════════════════════════════════════════════
    # Catalog
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_products(
        self,
        page: int = 1,
        per_page: int = 10,
        category_id: int | None = None,
        search: str | None = None,
    ) -> Result[list[Product], BackendError]:
        params: dict[str, Any] = {"page": page, "per_page": per_page}
        if category_id is not None:
            params["category"] = category_id
        if search:
            params["search"] = search

        return await self._request(
            "list_products",
            "GET",
            "products",
            parse=lambda data: [_product(item) for item in data],
            params=params,
        )

    async def get_product(self, product_id: int) -> Result[Product, FetchError]:
        return await self._request(
            "get_product",
            "GET",
            f"products/{product_id}",
            parse=_product,
            entity="product",
            entity_id=product_id,
        )

    async def list_categories(self) -> Result[list[Category], BackendError]:
        return await self._request(
            "list_categories",
            "GET",
            "products/categories",
            parse=lambda data: [_category(item) for item in data],
            params={"per_page": 100},
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_order(self, order: Order) -> Result[CreatedOrder, BackendError]:
        return await self._request(
            "create_order",
            "POST",
            "orders",
            parse=lambda data: CreatedOrder(
                id=str(data["id"]), status=str(data.get("status", "pending"))
            ),
            json=order_payload(order),
        )

    async def get_order(self, order_id: str) -> Result[OrderSummary, FetchError]:
        return await self._request(
            "get_order",
            "GET",
            f"orders/{order_id}",
            parse=_order_summary,
            entity="order",
            entity_id=order_id,
        )

    async def list_orders(
        self, customer_email: str, per_page: int = 20
    ) -> Result[list[OrderSummary], BackendError]:
        return await self._request(
            "list_orders",
            "GET",
            "orders",
            parse=lambda data: [_order_summary(item) for item in data],
            params={"customer": customer_email, "per_page": per_page},
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Transport
    # ═══════════════════════════════════════════════════════════════════════════

    async def _request[T](
        self,
        operation: str,
        method: str,
        path: str,
        *,
        parse: Callable[[Any], T],
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        entity: str | None = None,
        entity_id: str | int | None = None,
    ) -> Result[T, Any]:
        try:
            response = await self._client.request(
                method,
                f"{self._base}/{path}",
                params={**(params or {}), **self._auth},
                json=json,
            )
        except httpx.HTTPError as e:
            logger.warning("commerce_unreachable", operation=operation, error=type(e).__name__)
            return Error(
                TransportError(
                    operation=operation,
                    message=f"{method} {path} failed: {type(e).__name__}",
                    cause=e,
                )
            )

        status = response.status_code
        # 404 is NotFoundError only for entity lookups, elsewhere it is a rejection
        if status == 404 and entity is not None:
            return Error(
                NotFoundError(
                    operation=operation,
                    message=f"{entity} {entity_id} not found",
                    entity=entity,
                    entity_id=entity_id,
                )
            )
        if 400 <= status < 500:
            logger.info("commerce_rejected", operation=operation, status=status)
            return Error(
                RejectedError(
                    operation=operation,
                    message=f"{method} {path} rejected with {status}",
                    status=status,
                    body=response.text[:500],
                )
            )
        if status >= 500:
            logger.warning("commerce_server_error", operation=operation, status=status)
            return Error(
                TransportError(
                    operation=operation,
                    message=f"{method} {path} answered {status}",
                )
            )

        try:
            return Ok(parse(response.json()))
        except (ValueError, KeyError, TypeError) as e:
            return Error(
                TransportError(
                    operation=operation,
                    message=f"{method} {path} returned a malformed body",
                    cause=e,
                )
            )


# ═══════════════════════════════════════════════════════════════════════════════
# Payloads
# ═══════════════════════════════════════════════════════════════════════════════


def order_payload(order: Order) -> dict[str, Any]:
    """WooCommerce `POST /orders` body for an order snapshot."""
    line_items: list[dict[str, Any]] = []
    for line in order.line_items:
        item: dict[str, Any] = {
            "product_id": line.product_id,
            "quantity": line.quantity,
            "subtotal": str(line.subtotal),
            "total": str(line.subtotal),
        }
        if line.variation_id is not None:
            item["variation_id"] = line.variation_id
        line_items.append(item)

    shipping = order.shipping.to_payload()
    shipping.pop("email", None)
    shipping.pop("phone", None)

    payload: dict[str, Any] = {
        "payment_method": order.payment_method,
        "payment_method_title": order.payment_method_title,
        # paid later through the provider's own checkout
        "set_paid": False if order.payment_method in MANUAL_PAYMENT_METHODS else order.set_paid,
        "billing": order.billing.to_payload(),
        "shipping": shipping,
        "line_items": line_items,
        "shipping_lines": [
            {"method_id": "flat_rate", "method_title": "Envío estándar", "total": "0.00"}
        ],
        "meta_data": [
            {"key": SUBMISSION_KEY_META, "value": order.submission_key},
            {"key": "premium_pricing", "value": "yes" if order.premium_pricing else "no"},
        ],
    }
    if order.customer_id is not None:
        payload["customer_id"] = order.customer_id
    return payload


def _category(data: dict[str, Any]) -> Category:
    return Category(
        id=int(data["id"]),
        name=str(data.get("name", "")),
        slug=str(data.get("slug", "")),
        count=int(data.get("count") or 0),
    )


def _product(data: dict[str, Any]) -> Product:
    stock_quantity = data.get("stock_quantity")
    return Product(
        id=int(data["id"]),
        name=str(data.get("name", "")),
        price=parse_price(data.get("price")),
        regular_price=parse_price(data.get("regular_price")),
        sale_price=parse_price(data.get("sale_price")),
        on_sale=bool(data.get("on_sale", False)),
        stock_status=str(data.get("stock_status") or "instock"),
        stock_quantity=int(stock_quantity) if stock_quantity is not None else None,
        categories=tuple(_category(c) for c in data.get("categories") or ()),
        attributes=tuple(
            ProductAttribute(
                name=str(a.get("name", "")),
                options=tuple(str(o) for o in a.get("options") or ()),
            )
            for a in data.get("attributes") or ()
        ),
        images=tuple(str(i["src"]) for i in data.get("images") or () if i.get("src")),
        permalink=data.get("permalink"),
    )


def _order_summary(data: dict[str, Any]) -> OrderSummary:
    return OrderSummary(
        id=str(data["id"]),
        status=str(data.get("status", "")),
        total=parse_price(data.get("total")),
        currency=str(data.get("currency", "")),
        created_at=data.get("date_created"),
        line_count=len(data.get("line_items") or ()),
    )


__all__ = ("WooCommerceBackend", "order_payload", "SUBMISSION_KEY_META")
