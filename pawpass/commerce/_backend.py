"""
Commerce backend protocol — the shop that owns products and orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from kungfu import Result

from pawpass.errors import NotFoundError, RejectedError, TransportError

if TYPE_CHECKING:
    from pawpass.catalog._types import Category, Product
    from pawpass.orders._types import CreatedOrder, Order, OrderSummary

type BackendError = TransportError | RejectedError
type FetchError = NotFoundError | TransportError | RejectedError


class CommerceBackend(Protocol):
    """
    Async, Result-returning view of the shop.

    Note: TransportError means the request may or may not have reached the
    shop. RejectedError means the shop answered and said no.
    """

    async def list_products(
        self,
        page: int = 1,
        per_page: int = 10,
        category_id: int | None = None,
        search: str | None = None,
    ) -> Result[list[Product], BackendError]: ...

    async def get_product(self, product_id: int) -> Result[Product, FetchError]: ...

    async def list_categories(self) -> Result[list[Category], BackendError]: ...

    async def create_order(self, order: Order) -> Result[CreatedOrder, BackendError]: ...

    async def get_order(self, order_id: str) -> Result[OrderSummary, FetchError]: ...

    async def list_orders(
        self, customer_email: str, per_page: int = 20
    ) -> Result[list[OrderSummary], BackendError]: ...


__all__ = ("CommerceBackend", "BackendError", "FetchError")
