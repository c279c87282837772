"""
Catalog — products, categories and membership pricing.

    from pawpass import catalog as C

    C.apply_membership_discount(Decimal("100.00"), is_premium=True)  # Decimal("90.00")

    client = C.CatalogClient(backend)
    products = await client.list_products(page=2, per_page=20)
"""

from pawpass.catalog._types import Category, ProductAttribute, Product, parse_price
from pawpass.catalog._pricing import DiscountPolicy, apply_membership_discount, unit_price
from pawpass.catalog._client import CatalogClient

__all__ = (
    # Types
    "Category",
    "ProductAttribute",
    "Product",
    "parse_price",
    # Pricing
    "DiscountPolicy",
    "apply_membership_discount",
    "unit_price",
    # Client
    "CatalogClient",
)
