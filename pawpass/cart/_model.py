"""
Cart — local, ordered line items.

Lines are keyed by (product_id, variation_id). Adding an existing key adds
to its quantity. Insertion order is kept. The cart holds no prices.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal

from kungfu import Result, Ok, Error

from pawpass.errors import InvalidQuantityError, NotFoundError

type LineKey = tuple[int, int | None]


@dataclass(frozen=True, slots=True)
class CartLineItem:
    product_id: int
    quantity: int
    variation_id: int | None = None

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.variation_id)


def _invalid_quantity(operation: str, quantity: int) -> InvalidQuantityError:
    return InvalidQuantityError(
        operation=operation,
        message=f"Quantity must be at least 1, got {quantity}",
        quantity=quantity,
    )


class Cart:
    """
    Mutable cart owned by one user session.

    Note: not persisted. Orders take an immutable snapshot of it.
    """

    def __init__(self, items: list[CartLineItem] | None = None) -> None:
        self._lines: dict[LineKey, CartLineItem] = {}
        for item in items or ():
            self.add_item(item.product_id, item.quantity, item.variation_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Mutations
    # ═══════════════════════════════════════════════════════════════════════════

    def add_item(
        self, product_id: int, quantity: int = 1, variation_id: int | None = None
    ) -> Result[CartLineItem, InvalidQuantityError]:
        if quantity < 1:
            return Error(_invalid_quantity("add_item", quantity))

        key = (product_id, variation_id)
        current = self._lines.get(key)
        if current is None:
            line = CartLineItem(product_id, quantity, variation_id)
        else:
            line = replace(current, quantity=current.quantity + quantity)
        self._lines[key] = line
        return Ok(line)

    def remove_item(self, product_id: int, variation_id: int | None = None) -> bool:
        """Drop the line. False if there was none."""
        return self._lines.pop((product_id, variation_id), None) is not None

    def set_quantity(
        self, product_id: int, quantity: int, variation_id: int | None = None
    ) -> Result[CartLineItem, InvalidQuantityError | NotFoundError]:
        if quantity < 1:
            return Error(_invalid_quantity("set_quantity", quantity))

        key = (product_id, variation_id)
        current = self._lines.get(key)
        if current is None:
            return Error(
                NotFoundError(
                    operation="set_quantity",
                    message=f"Product {product_id} is not in the cart",
                    entity="cart_line",
                    entity_id=product_id,
                )
            )
        line = replace(current, quantity=quantity)
        self._lines[key] = line
        return Ok(line)

    def clear(self) -> None:
        self._lines.clear()

    # ═══════════════════════════════════════════════════════════════════════════
    # Queries
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def lines(self) -> tuple[CartLineItem, ...]:
        return tuple(self._lines.values())

    @property
    def count(self) -> int:
        """Total units across all lines."""
        return sum(line.quantity for line in self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def contains(self, product_id: int, variation_id: int | None = None) -> bool:
        return (product_id, variation_id) in self._lines

    def total(self, price_lookup: Callable[[CartLineItem], Decimal]) -> Decimal:
        """
        Sum of unit price times quantity.

        Prices come from the caller. The cart never stores them.
        """
        return sum(
            (price_lookup(line) * line.quantity for line in self._lines.values()),
            Decimal(0),
        )

    def __len__(self) -> int:
        return len(self._lines)


__all__ = ("Cart", "CartLineItem", "LineKey")
