"""
Catalog types — products and categories as the shop exposes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str
    slug: str
    count: int = 0


@dataclass(frozen=True, slots=True)
class ProductAttribute:
    name: str
    options: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Product:
    """
    A sellable product.

    Note: prices are exact decimals. `price` is what the shop charges right
    now (sale price when on sale) and is None for unpriced products.
    """

    id: int
    name: str
    price: Decimal | None
    regular_price: Decimal | None = None
    sale_price: Decimal | None = None
    on_sale: bool = False
    stock_status: str = "instock"
    stock_quantity: int | None = None
    categories: tuple[Category, ...] = ()
    attributes: tuple[ProductAttribute, ...] = ()
    images: tuple[str, ...] = ()
    permalink: str | None = None

    @property
    def in_stock(self) -> bool:
        return self.stock_status == "instock"


def parse_price(raw: str | int | float | None) -> Decimal | None:
    """
    Parse a backend price string.

        parse_price("1250.50")  # Decimal("1250.50")
        parse_price("")         # None
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


__all__ = ("Category", "ProductAttribute", "Product", "parse_price")
