"""
Catalog client — read-only product access plus member pricing.

Every call goes to the backend. Nothing is cached.

    catalog = CatalogClient(backend, policy=DiscountPolicy.from_settings(settings))

    match await catalog.get_product(42):
        case Ok(product):
            price = catalog.unit_price(product, is_premium=True)
"""

from __future__ import annotations

from combinators import lift as L

from pawpass._types import Lazy, Money
from pawpass.catalog._pricing import DiscountPolicy, unit_price
from pawpass.catalog._types import Category, Product
from pawpass.commerce._backend import BackendError, CommerceBackend, FetchError


class CatalogClient:
    def __init__(
        self,
        backend: CommerceBackend,
        *,
        policy: DiscountPolicy = DiscountPolicy(),
    ) -> None:
        self._backend = backend
        self._policy = policy

    @property
    def policy(self) -> DiscountPolicy:
        return self._policy

    def list_products(
        self,
        page: int = 1,
        per_page: int = 10,
        category_id: int | None = None,
    ) -> Lazy[list[Product], BackendError]:
        """One page of products. Pagination is driven by the caller."""
        return L.call(self._backend.list_products, page, per_page, category_id)

    def get_product(self, product_id: int) -> Lazy[Product, FetchError]:
        return L.call(self._backend.get_product, product_id)

    def search(
        self, term: str, page: int = 1, per_page: int = 10
    ) -> Lazy[list[Product], BackendError]:
        return L.call(self._backend.list_products, page, per_page, None, term)

    def list_categories(self) -> Lazy[list[Category], BackendError]:
        return L.call(self._backend.list_categories)

    def unit_price(self, product: Product, is_premium: bool) -> Money | None:
        return unit_price(product, is_premium, self._policy)


__all__ = ("CatalogClient",)
